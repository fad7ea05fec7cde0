"""Tests for the next-slot proposal rule."""

import pytest

from salon_booking.booking.reconciler import BOOKINGS_COLLECTION
from salon_booking.scheduling.availability import AVAILABILITY_COLLECTION
from salon_booking.scheduling.slot_calculator import propose_slot
from salon_booking.schemas.booking_schema import BookingSource, Service
from salon_booking.services import default_service
from tests.conftest import TEST_DATE, make_details

NINE_TO_ONE = [{"start": "9:00 AM", "end": "1:00 PM"}]
NINE_TO_SIX = [{"start": "9:00 AM", "end": "6:00 PM"}]


class TestProposeSlot:
    def test_no_markers_means_no_slot(self):
        assert propose_slot([], [], 240) is None

    def test_first_marker_when_day_is_empty(self):
        assert propose_slot([600, 540, 660, 720], [], 240) == 540

    def test_window_closes_an_hour_after_last_marker(self):
        # 9 AM + 240 = 1 PM, exactly the window end
        assert propose_slot([540, 600, 660, 720], [], 240) == 540
        # without the 12 PM marker the window closes at noon
        assert propose_slot([540, 600, 660], [], 240) is None

    def test_staggers_after_latest_occupied_start(self):
        assert propose_slot(range(540, 1080, 60), [540], 240) == 690

    def test_uses_latest_start_regardless_of_order(self):
        assert propose_slot(range(540, 1200, 60), [690, 540], 240) == 840

    def test_proposal_rejected_past_window(self):
        assert propose_slot([540, 600, 660, 720], [540], 240) is None

    def test_custom_stagger_and_padding(self):
        assert propose_slot([540], [], 30, session_padding=30) == 540
        assert propose_slot([540, 600], [540], 30, stagger_interval=60, session_padding=60) == 600


class TestSlotCalculator:
    @pytest.mark.asyncio
    async def test_empty_day_has_no_slots(self, calculator, service):
        assert await calculator.available_slots(TEST_DATE, service) == []

    @pytest.mark.asyncio
    async def test_proposes_opening_when_nothing_booked(self, calculator, availability, service):
        await availability.set_ranges([TEST_DATE], NINE_TO_ONE)
        assert await calculator.available_slots(TEST_DATE, service) == ["9:00 AM"]

    @pytest.mark.asyncio
    async def test_booking_at_nine_leaves_short_day_full(
        self, calculator, availability, reconciler, service
    ):
        await availability.set_ranges([TEST_DATE], NINE_TO_ONE)
        await reconciler.add_manual_booking(make_details("9:00 AM"))
        assert await calculator.available_slots(TEST_DATE, service) == []

    @pytest.mark.asyncio
    async def test_booking_at_nine_offers_eleven_thirty_on_long_day(
        self, calculator, availability, reconciler, service
    ):
        await availability.set_ranges([TEST_DATE], NINE_TO_SIX)
        await reconciler.add_manual_booking(make_details("9:00 AM"))
        assert await calculator.available_slots(TEST_DATE, service) == ["11:30 AM"]

    @pytest.mark.asyncio
    async def test_pending_requests_count_as_occupied(
        self, calculator, availability, reconciler, service
    ):
        await availability.set_ranges([TEST_DATE], NINE_TO_SIX)
        await reconciler.create_request(make_details("9:00 AM"))
        await reconciler.create_request(make_details("11:30 AM"))
        assert await calculator.available_slots(TEST_DATE, service) == ["2:00 PM"]

    @pytest.mark.asyncio
    async def test_manual_and_online_bookings_count_equally(
        self, calculator, availability, reconciler, service
    ):
        await availability.set_ranges([TEST_DATE], NINE_TO_SIX)
        await reconciler.add_manual_booking(make_details("9:00 AM"), source=BookingSource.ONLINE)
        online = await calculator.available_slots(TEST_DATE, service)

        await reconciler.cancel_confirmed(
            (await reconciler.list_bookings(TEST_DATE))[0].id, release_slot=True
        )
        await reconciler.add_manual_booking(make_details("9:00 AM"))
        manual = await calculator.available_slots(TEST_DATE, service)

        assert online == manual == ["11:30 AM"]

    @pytest.mark.asyncio
    async def test_bookings_on_other_dates_ignored(
        self, calculator, availability, reconciler, service
    ):
        await availability.set_ranges([TEST_DATE], NINE_TO_ONE)
        await reconciler.add_manual_booking(make_details("9:00 AM", date="2025-03-19"))
        assert await calculator.available_slots(TEST_DATE, service) == ["9:00 AM"]

    @pytest.mark.asyncio
    async def test_malformed_markers_are_filtered(self, calculator, store, service):
        await store.set(
            AVAILABILITY_COLLECTION, TEST_DATE,
            {"slots": ["garbage", "9:00 AM", "10:00 AM", "11:00 AM", "12:00 PM"]},
        )
        assert await calculator.available_slots(TEST_DATE, service) == ["9:00 AM"]

    @pytest.mark.asyncio
    async def test_shorter_service_fits_late_in_day(self, calculator, availability, reconciler):
        trim = Service(id="2", name="Trim", duration=60, price=40)
        await availability.set_ranges([TEST_DATE], NINE_TO_ONE)
        await reconciler.add_manual_booking(make_details("9:00 AM", service=trim))
        assert await calculator.available_slots(TEST_DATE, trim) == ["11:30 AM"]

    @pytest.mark.asyncio
    async def test_repeated_queries_are_stable(self, calculator, availability, service):
        await availability.set_ranges([TEST_DATE], NINE_TO_ONE)
        first = await calculator.available_slots(TEST_DATE, service)
        second = await calculator.available_slots(TEST_DATE, service)
        assert first == second == ["9:00 AM"]

    @pytest.mark.asyncio
    async def test_late_marker_window_can_end_at_midnight(self, calculator, availability):
        await availability.set_single_day_slots(TEST_DATE, ["8:00 PM", "9:00 PM", "10:00 PM", "11:00 PM"])
        assert await calculator.available_slots(TEST_DATE, default_service()) == ["8:00 PM"]


class TestSlotCalculatorNeverRaises:
    @pytest.mark.asyncio
    async def test_malformed_date_has_no_slots(self, calculator, service):
        assert await calculator.available_slots("2025-3-18x", service) == []

    @pytest.mark.asyncio
    async def test_unreadable_booking_is_ignored(
        self, calculator, availability, reconciler, store, service
    ):
        await availability.set_ranges([TEST_DATE], NINE_TO_SIX)
        broken = await reconciler.add_manual_booking(make_details("9:00 AM"))
        await store.update(BOOKINGS_COLLECTION, broken.id, {"time": "garbage"})

        assert await calculator.available_slots(TEST_DATE, service) == ["9:00 AM"]

    @pytest.mark.asyncio
    async def test_unreadable_booking_beside_valid_one(
        self, calculator, availability, reconciler, store, service
    ):
        await availability.set_ranges([TEST_DATE], NINE_TO_SIX)
        await reconciler.add_manual_booking(make_details("9:00 AM"))
        broken = await reconciler.add_manual_booking(make_details("11:30 AM"))
        await store.update(BOOKINGS_COLLECTION, broken.id, {"time": "garbage"})

        assert await calculator.available_slots(TEST_DATE, service) == ["11:30 AM"]
