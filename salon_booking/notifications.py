"""
Booking notifications.

The core decides *whether* to notify; delivery (e-mail, push, in-app
message) belongs to the sink. Delivery is fire-and-forget: a failing sink
is logged and never fails the booking operation that triggered it.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol

from salon_booking.config import BusinessConfig, settings
from salon_booking.messaging.ledger import MessagingLedger
from salon_booking.schemas.booking_schema import Booking
from salon_booking.schemas.client_schema import Actor, Role

logger = logging.getLogger(__name__)


class NotificationEvent(str, Enum):
    REQUESTED = "requested"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class BookingNotification:
    """Rendered notification ready for delivery."""
    event: NotificationEvent
    booking: Booking
    subject: str
    body: str

    @property
    def to_owner(self) -> bool:
        return self.event == NotificationEvent.REQUESTED


class NotificationSink(Protocol):
    async def deliver(self, notification: BookingNotification) -> None:
        ...


def _display_date(date: str) -> str:
    parsed = datetime.strptime(date, "%Y-%m-%d")
    return f"{parsed:%A, %B} {parsed.day}"


_SUBJECTS = {
    NotificationEvent.REQUESTED: "New Appointment Request",
    NotificationEvent.CONFIRMED: "Appointment Confirmed",
    NotificationEvent.DECLINED: "Appointment Request Declined",
    NotificationEvent.CANCELLED: "Appointment Cancelled",
}

_LEADS = {
    NotificationEvent.REQUESTED: "{name} has requested an appointment for {service}.",
    NotificationEvent.CONFIRMED: "Your appointment for {service} has been confirmed!",
    NotificationEvent.DECLINED: "Unfortunately we cannot accommodate your request for {service}.",
    NotificationEvent.CANCELLED: "Your appointment for {service} has been cancelled.",
}


def build_notification(
    event: NotificationEvent,
    booking: Booking,
    business: BusinessConfig = settings.business,
) -> BookingNotification:
    """Compose the subject and body for a booking event."""
    greeting = business.owner_name if event == NotificationEvent.REQUESTED else booking.customer_name
    lead = _LEADS[event].format(name=booking.customer_name, service=booking.service.name)
    body = (
        f"Hi {greeting},\n\n"
        f"{lead}\n\n"
        f"Details:\n"
        f"Date: {_display_date(booking.date)}\n"
        f"Time: {booking.time}\n\n"
        f"Best regards,\n"
        f"{business.owner_name}\n"
        f"{business.name}"
    )
    return BookingNotification(
        event=event,
        booking=booking,
        subject=f"{_SUBJECTS[event]} - {business.name}",
        body=body,
    )


class LoggingNotificationSink:
    """Default sink: records what would have been sent."""

    async def deliver(self, notification: BookingNotification) -> None:
        booking = notification.booking
        recipient = "owner" if notification.to_owner else booking.customer_email
        logger.info(
            "Notification '%s' for booking %s to %s",
            notification.event.value, booking.id, recipient,
        )


class LedgerNotificationSink:
    """Posts notifications into the owner/client message thread."""

    def __init__(self, ledger: MessagingLedger, business: BusinessConfig = settings.business) -> None:
        self._ledger = ledger
        self._owner = Actor(id=business.owner_id, name=business.owner_name, role=Role.OWNER)

    async def deliver(self, notification: BookingNotification) -> None:
        booking = notification.booking
        if not booking.customer_id:
            logger.info("Booking %s has no client id; message not posted", booking.id)
            return
        if notification.to_owner:
            sender = Actor(id=booking.customer_id, name=booking.customer_name)
            recipient_id = self._owner.id
        else:
            sender = self._owner
            recipient_id = booking.customer_id
        await self._ledger.send(sender, recipient_id, notification.subject, notification.body)


async def dispatch(
    sink: Optional[NotificationSink], event: NotificationEvent, booking: Booking
) -> None:
    """Build and deliver a notification, logging rather than raising on failure."""
    if sink is None:
        return
    notification = build_notification(event, booking)
    try:
        await sink.deliver(notification)
    except Exception as exc:
        logger.warning(
            "Notification '%s' for booking %s failed: %s", event.value, booking.id, exc,
            exc_info=True,
        )
