"""
Booking lifecycle: the explicit state graph for requests and bookings.

    requested --confirm--> confirmed --cancel--> cancelled
    requested --decline--> declined
    confirmed --edit_notes--> confirmed

Requests and confirmed bookings live in separate collections, so a
record's status is implied by where it is stored. Every mutation in the
reconciler is checked against this table first, and the resulting status
is reported back to the caller.

Usage:
    BookingLifecycle.apply(BookingStatus.REQUESTED, BookingTrigger.CONFIRM)
    # -> BookingStatus.CONFIRMED
"""

import logging
from dataclasses import dataclass
from enum import Enum

from salon_booking.errors import ValidationError

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    """All states a booking can be in."""
    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    CANCELLED = "cancelled"


class BookingTrigger(str, Enum):
    """Owner actions that move a booking between states."""
    CONFIRM = "confirm"
    DECLINE = "decline"
    CANCEL = "cancel"
    EDIT_NOTES = "edit_notes"


@dataclass(frozen=True)
class Transition:
    """A single valid state transition."""
    from_status: BookingStatus
    to_status: BookingStatus
    trigger: BookingTrigger


class InvalidTransitionError(ValidationError):
    """Raised when an action is not valid from the booking's current status."""


class BookingLifecycle:
    """Table-driven transition lookup. Stateless; the store holds the state."""

    TRANSITIONS: list[Transition] = [
        Transition(BookingStatus.REQUESTED, BookingStatus.CONFIRMED, BookingTrigger.CONFIRM),
        Transition(BookingStatus.REQUESTED, BookingStatus.DECLINED, BookingTrigger.DECLINE),
        Transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingTrigger.CANCEL),
        Transition(BookingStatus.CONFIRMED, BookingStatus.CONFIRMED, BookingTrigger.EDIT_NOTES),
    ]

    TERMINAL = frozenset({BookingStatus.DECLINED, BookingStatus.CANCELLED})

    @classmethod
    def apply(cls, status: BookingStatus, trigger: BookingTrigger) -> BookingStatus:
        """
        Resolve the status reached by ``trigger`` from ``status``.

        Raises:
            InvalidTransitionError: If no transition is defined.
        """
        for t in cls.TRANSITIONS:
            if t.from_status == status and t.trigger == trigger:
                logger.debug(
                    "Booking transition: %s -> %s (trigger: %s)",
                    status.value, t.to_status.value, trigger.value,
                )
                return t.to_status

        valid = [t.value for t in cls.valid_triggers(status)]
        raise InvalidTransitionError(
            f"No valid transition from '{status.value}' "
            f"with trigger '{trigger.value}'. Valid triggers: {valid}"
        )

    @classmethod
    def valid_triggers(cls, status: BookingStatus) -> list[BookingTrigger]:
        """Return all triggers valid from ``status``."""
        return [t.trigger for t in cls.TRANSITIONS if t.from_status == status]

    @classmethod
    def is_terminal(cls, status: BookingStatus) -> bool:
        return status in cls.TERMINAL
