"""Shared test fixtures and helpers."""

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from salon_booking.booking.reconciler import BookingReconciler
from salon_booking.messaging.ledger import MessagingLedger
from salon_booking.scheduling.availability import AvailabilityStore
from salon_booking.scheduling.slot_calculator import SlotCalculator
from salon_booking.schemas.booking_schema import BookingDetails, Service
from salon_booking.services import default_service
from salon_booking.store.memory import InMemoryDocumentStore

TEST_DATE = "2025-03-18"


class SteppingClock:
    """Deterministic clock that advances one minute per call."""

    def __init__(self, start: datetime = datetime(2025, 3, 15, 10, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        now = self.current
        self.current = now + timedelta(minutes=1)
        return now


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def availability(store):
    return AvailabilityStore(store)


@pytest.fixture
def reconciler(store, availability):
    return BookingReconciler(store, availability)


@pytest.fixture
def calculator(availability, reconciler):
    return SlotCalculator(availability, reconciler)


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def ledger(store, clock):
    return MessagingLedger(store, clock=clock)


@pytest.fixture
def service() -> Service:
    return default_service()


def make_details(
    time: str = "9:00 AM",
    date: str = TEST_DATE,
    service: Service = None,
    **overrides: Any,
) -> BookingDetails:
    """Helper to create BookingDetails with sensible defaults."""
    fields = {
        "service": service or default_service(),
        "date": date,
        "time": time,
        "customer_name": "Jane Doe",
        "customer_email": "jane@example.com",
    }
    fields.update(overrides)
    return BookingDetails(**fields)
