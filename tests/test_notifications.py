"""Tests for booking notifications and their delivery."""

import logging

import pytest

from salon_booking.booking.reconciler import BookingReconciler
from salon_booking.config import BusinessConfig
from salon_booking.notifications import (
    BookingNotification,
    LedgerNotificationSink,
    LoggingNotificationSink,
    NotificationEvent,
    build_notification,
    dispatch,
)
from salon_booking.schemas.booking_schema import Booking
from tests.conftest import make_details

BUSINESS = BusinessConfig(name="Test Salon", owner_id="owner-1", owner_name="Laura")


def _booking(**overrides) -> Booking:
    details = make_details("9:00 AM", **overrides)
    return Booking(**details.model_dump(), id="b-1")


class RecordingSink:
    def __init__(self):
        self.delivered: list[BookingNotification] = []

    async def deliver(self, notification: BookingNotification) -> None:
        self.delivered.append(notification)


class BrokenSink:
    async def deliver(self, notification: BookingNotification) -> None:
        raise RuntimeError("smtp down")


class TestBuildNotification:
    def test_confirmation_text(self):
        note = build_notification(NotificationEvent.CONFIRMED, _booking(), BUSINESS)
        assert note.subject == "Appointment Confirmed - Test Salon"
        assert note.body.startswith("Hi Jane Doe,")
        assert "Date: Tuesday, March 18" in note.body
        assert "Time: 9:00 AM" in note.body
        assert note.body.endswith("Laura\nTest Salon")
        assert not note.to_owner

    def test_request_goes_to_owner(self):
        note = build_notification(NotificationEvent.REQUESTED, _booking(), BUSINESS)
        assert note.to_owner
        assert note.body.startswith("Hi Laura,")
        assert "Jane Doe has requested an appointment" in note.body

    @pytest.mark.parametrize("event", list(NotificationEvent))
    def test_every_event_mentions_service(self, event):
        note = build_notification(event, _booking(), BUSINESS)
        assert "Hair Straightening Treatment" in note.body


class TestLedgerSink:
    @pytest.mark.asyncio
    async def test_confirmation_posted_from_owner(self, ledger):
        sink = LedgerNotificationSink(ledger, BUSINESS)
        booking = _booking(customer_id="client-jane")

        await sink.deliver(build_notification(NotificationEvent.CONFIRMED, booking, BUSINESS))

        thread = await ledger.thread("client-jane_owner-1")
        assert len(thread) == 1
        assert thread[0].sender_id == "owner-1"
        assert thread[0].recipient_id == "client-jane"
        assert thread[0].subject == "Appointment Confirmed - Test Salon"

    @pytest.mark.asyncio
    async def test_request_posted_to_owner(self, ledger):
        sink = LedgerNotificationSink(ledger, BUSINESS)
        booking = _booking(customer_id="client-jane")

        await sink.deliver(build_notification(NotificationEvent.REQUESTED, booking, BUSINESS))

        assert await ledger.unread_count("owner-1") == 1

    @pytest.mark.asyncio
    async def test_skips_bookings_without_client(self, ledger):
        sink = LedgerNotificationSink(ledger, BUSINESS)
        await sink.deliver(build_notification(NotificationEvent.CONFIRMED, _booking(), BUSINESS))
        assert await ledger.threads_for("owner-1") == []


class TestDispatch:
    @pytest.mark.asyncio
    async def test_no_sink_is_noop(self):
        await dispatch(None, NotificationEvent.CONFIRMED, _booking())

    @pytest.mark.asyncio
    async def test_failing_sink_is_logged_not_raised(self, caplog):
        with caplog.at_level(logging.WARNING, logger="salon_booking.notifications"):
            await dispatch(BrokenSink(), NotificationEvent.CONFIRMED, _booking())
        assert "smtp down" in caplog.text

    @pytest.mark.asyncio
    async def test_logging_sink_records_recipient(self, caplog):
        with caplog.at_level(logging.INFO, logger="salon_booking.notifications"):
            await dispatch(LoggingNotificationSink(), NotificationEvent.DECLINED, _booking())
        assert "jane@example.com" in caplog.text


class TestReconcilerNotifications:
    @pytest.mark.asyncio
    async def test_notify_flags_drive_delivery(self, store, availability):
        sink = RecordingSink()
        reconciler = BookingReconciler(store, availability, notifier=sink)

        request = await reconciler.create_request(make_details(), notify=True)
        await reconciler.confirm_request(request.id, notify=False)
        await reconciler.cancel_confirmed(request.id, release_slot=True, notify=True)

        assert [n.event for n in sink.delivered] == [
            NotificationEvent.REQUESTED, NotificationEvent.CANCELLED,
        ]

    @pytest.mark.asyncio
    async def test_broken_sink_does_not_fail_confirmation(self, store, availability):
        reconciler = BookingReconciler(store, availability, notifier=BrokenSink())
        request = await reconciler.create_request(make_details())

        booking = await reconciler.confirm_request(request.id, notify=True)

        assert booking is not None
        assert await reconciler.get_booking(request.id) is not None

    @pytest.mark.asyncio
    async def test_decline_notifies_client(self, store, availability):
        sink = RecordingSink()
        reconciler = BookingReconciler(store, availability, notifier=sink)
        request = await reconciler.create_request(make_details())

        await reconciler.decline_request(request.id, notify=True)

        assert sink.delivered[0].event == NotificationEvent.DECLINED
        assert not sink.delivered[0].to_owner
