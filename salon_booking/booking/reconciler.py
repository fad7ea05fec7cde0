"""
Booking reconciler: requests, confirmations, cancellations and notes.

Pending requests and confirmed bookings are kept in two collections:

    booking_requests/<id>   client-submitted, awaiting the owner
    bookings/<id>           confirmed (approved requests and manual entries)

A request is promoted by copying it into ``bookings`` under the same id and
deleting the original. Declines and cancellations delete outright; nothing
is kept for history.

The only guard against double-booking is the conflict check in
``create_request``: a request for a (date, time) already held by a confirmed
booking is refused. Check and insert run inside ``store.transaction()``.
Stores that cannot isolate that block leave a window in which a booking
written between the two steps goes unnoticed.
"""

import uuid
from typing import Any, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from salon_booking.booking.lifecycle import BookingLifecycle, BookingStatus, BookingTrigger
from salon_booking.errors import ConflictError, NotFoundError, ValidationError
from salon_booking.logging_context import get_actor_logger
from salon_booking.notifications import NotificationEvent, NotificationSink, dispatch
from salon_booking.scheduling.availability import AvailabilityStore
from salon_booking.schemas.booking_schema import Booking, BookingDetails, BookingSource
from salon_booking.store.base import DocumentStore
from salon_booking.time_utils import parse_marker, validate_iso_date
from salon_booking.utils import normalize_email

logger = get_actor_logger(__name__)

REQUESTS_COLLECTION = "booking_requests"
BOOKINGS_COLLECTION = "bookings"

DetailsInput = Union[BookingDetails, dict[str, Any]]

_IMMUTABLE_FIELDS = frozenset({"id"})


def _parse_details(details: DetailsInput) -> BookingDetails:
    if isinstance(details, Booking):
        return BookingDetails.model_validate(details.model_dump(exclude={"id", "source"}))
    if isinstance(details, BookingDetails):
        return details
    try:
        return BookingDetails.model_validate(details)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid booking details: {exc}") from exc


def _to_booking(doc: dict[str, Any]) -> Booking:
    try:
        return Booking.model_validate(doc)
    except PydanticValidationError as exc:
        raise ValidationError(f"Stored booking {doc.get('id')!r} is malformed: {exc}") from exc


def _readable_bookings(docs: list[dict[str, Any]]) -> list[Booking]:
    """Parse stored docs, skipping and logging any that no longer validate."""
    bookings = []
    for doc in docs:
        try:
            bookings.append(_to_booking(doc))
        except ValidationError as exc:
            logger.warning("Skipping unreadable booking %r: %s", doc.get("id"), exc)
    return bookings


class BookingReconciler:
    """
    Lifecycle operations over booking requests and confirmed bookings.

    Also serves as the occupancy source for ``SlotCalculator``: bookings
    and pending requests on a date both count, whatever their source.
    """

    def __init__(
        self,
        store: DocumentStore,
        availability: AvailabilityStore,
        notifier: Optional[NotificationSink] = None,
    ) -> None:
        self._store = store
        self._availability = availability
        self._notifier = notifier

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def get_request(self, request_id: str) -> Optional[Booking]:
        doc = await self._store.get(REQUESTS_COLLECTION, request_id)
        return _to_booking(doc) if doc is not None else None

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        doc = await self._store.get(BOOKINGS_COLLECTION, booking_id)
        return _to_booking(doc) if doc is not None else None

    async def list_requests(self) -> list[Booking]:
        return [_to_booking(d) for d in await self._store.query(REQUESTS_COLLECTION)]

    async def list_bookings(self, date: Optional[str] = None) -> list[Booking]:
        filters = {"date": validate_iso_date(date)} if date is not None else {}
        return [_to_booking(d) for d in await self._store.query(BOOKINGS_COLLECTION, **filters)]

    async def occupancy_for_date(self, date: str) -> list[Booking]:
        """Bookings and pending requests on ``date``, earliest first.

        Stored records that no longer validate are logged and left out.
        """
        validate_iso_date(date)
        docs = [
            *await self._store.query(BOOKINGS_COLLECTION, date=date),
            *await self._store.query(REQUESTS_COLLECTION, date=date),
        ]
        return sorted(_readable_bookings(docs), key=lambda b: parse_marker(b.time))

    async def bookings_for_customer(self, email: str) -> list[Booking]:
        """Confirmed bookings whose customer e-mail matches, ignoring case."""
        wanted = normalize_email(email)
        return [
            b for b in await self.list_bookings()
            if normalize_email(b.customer_email) == wanted
        ]

    async def _find_conflict(self, date: str, time: str) -> Optional[Booking]:
        target = parse_marker(time)
        for booking in _readable_bookings(await self._store.query(BOOKINGS_COLLECTION, date=date)):
            if parse_marker(booking.time) == target:
                return booking
        return None

    # ------------------------------------------------------------------ #
    # Client actions
    # ------------------------------------------------------------------ #

    async def create_request(self, details: DetailsInput, notify: bool = False) -> Booking:
        """
        Submit a booking request for owner approval.

        Raises:
            ValidationError: Missing or malformed fields.
            ConflictError: A confirmed booking already holds the slot.
        """
        parsed = _parse_details(details)
        request = Booking(
            **parsed.model_dump(), id=str(uuid.uuid4()), source=BookingSource.ONLINE
        )
        async with self._store.transaction():
            existing = await self._find_conflict(request.date, request.time)
            if existing is not None:
                logger.info(
                    "Request for %s %s refused: held by booking %s",
                    request.date, request.time, existing.id,
                )
                raise ConflictError(
                    f"This time slot is no longer available ({request.date} {request.time})."
                )
            await self._store.set(
                REQUESTS_COLLECTION, request.id, request.model_dump(mode="json")
            )

        logger.info("Booking request %s created for %s %s", request.id, request.date, request.time)
        if notify:
            await dispatch(self._notifier, NotificationEvent.REQUESTED, request)
        return request

    # ------------------------------------------------------------------ #
    # Owner actions
    # ------------------------------------------------------------------ #

    async def confirm_request(self, request_id: str, notify: bool = False) -> Optional[Booking]:
        """
        Promote a request to a confirmed booking under the same id.

        Returns None without error if the request is already gone.
        """
        async with self._store.transaction():
            doc = await self._store.get(REQUESTS_COLLECTION, request_id)
            if doc is None:
                logger.info("Confirm of %s skipped: request no longer exists", request_id)
                return None
            BookingLifecycle.apply(BookingStatus.REQUESTED, BookingTrigger.CONFIRM)
            await self._store.set(BOOKINGS_COLLECTION, request_id, doc)
            await self._store.delete(REQUESTS_COLLECTION, request_id)

        booking = _to_booking(doc)
        logger.info("Booking request %s confirmed", request_id)
        if notify:
            await dispatch(self._notifier, NotificationEvent.CONFIRMED, booking)
        return booking

    async def decline_request(self, request_id: str, notify: bool = False) -> Optional[Booking]:
        """Delete a pending request. Returns the declined request, or None if absent."""
        doc = await self._store.get(REQUESTS_COLLECTION, request_id)
        if doc is None:
            logger.info("Decline of %s skipped: request no longer exists", request_id)
            return None
        BookingLifecycle.apply(BookingStatus.REQUESTED, BookingTrigger.DECLINE)
        await self._store.delete(REQUESTS_COLLECTION, request_id)

        request = _to_booking(doc)
        logger.info("Booking request %s declined", request_id)
        if notify:
            await dispatch(self._notifier, NotificationEvent.DECLINED, request)
        return request

    async def cancel_confirmed(
        self, booking_id: str, release_slot: bool, notify: bool = False
    ) -> Optional[Booking]:
        """
        Delete a confirmed booking and re-open or block its hour-start.

        Args:
            booking_id: The confirmed booking to remove.
            release_slot: True puts the booking's time back into the day's
                availability; False removes it, keeping the time blocked.

        Returns:
            The cancelled booking, or None if it no longer exists.

        Raises:
            InvalidTransitionError: The id belongs to a pending request.
        """
        doc = await self._store.get(BOOKINGS_COLLECTION, booking_id)
        if doc is None:
            if await self._store.get(REQUESTS_COLLECTION, booking_id) is not None:
                BookingLifecycle.apply(BookingStatus.REQUESTED, BookingTrigger.CANCEL)
            logger.info("Cancel of %s skipped: booking no longer exists", booking_id)
            return None

        BookingLifecycle.apply(BookingStatus.CONFIRMED, BookingTrigger.CANCEL)
        booking = _to_booking(doc)
        await self._store.delete(BOOKINGS_COLLECTION, booking_id)

        if release_slot:
            await self._availability.add_marker(booking.date, booking.time)
        else:
            await self._availability.remove_marker(booking.date, booking.time)
        logger.info(
            "Booking %s cancelled; %s %s %s",
            booking_id, booking.date, booking.time, "released" if release_slot else "kept blocked",
        )
        if notify:
            await dispatch(self._notifier, NotificationEvent.CANCELLED, booking)
        return booking

    async def update_booking(self, booking_id: str, **fields: Any) -> Booking:
        """
        Apply a partial update to a confirmed booking.

        Raises:
            ValidationError: Unknown, immutable or malformed fields.
            InvalidTransitionError: The id belongs to a pending request.
            NotFoundError: No such booking.
        """
        unknown = set(fields) - set(Booking.model_fields)
        if unknown or _IMMUTABLE_FIELDS & set(fields):
            raise ValidationError(
                f"Cannot update field(s): {sorted(unknown | (_IMMUTABLE_FIELDS & set(fields)))}"
            )

        current = await self.get_booking(booking_id)
        if current is None:
            if await self.get_request(booking_id) is not None:
                BookingLifecycle.apply(BookingStatus.REQUESTED, BookingTrigger.EDIT_NOTES)
            raise NotFoundError(f"Booking {booking_id} not found.")
        BookingLifecycle.apply(BookingStatus.CONFIRMED, BookingTrigger.EDIT_NOTES)

        try:
            updated = Booking.model_validate({**current.model_dump(), **fields})
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid booking update: {exc}") from exc

        changed = {k: v for k, v in updated.model_dump(mode="json").items() if k in fields}
        await self._store.update(BOOKINGS_COLLECTION, booking_id, changed)
        logger.info("Booking %s updated: %s", booking_id, sorted(changed))
        return updated

    async def update_notes(self, booking_id: str, owner_notes: str) -> Booking:
        """Replace the owner-private notes on a confirmed booking."""
        return await self.update_booking(booking_id, owner_notes=owner_notes)

    async def add_manual_booking(
        self, details: DetailsInput, source: Union[BookingSource, str] = BookingSource.MANUAL
    ) -> Booking:
        """Insert a confirmed booking directly, bypassing the request stage.

        ``source`` may be a ``BookingSource`` or its string value.
        """
        try:
            source = BookingSource(source)
        except ValueError:
            raise ValidationError(f"Unknown booking source: {source!r}") from None
        parsed = _parse_details(details)
        booking = Booking(**parsed.model_dump(), id=str(uuid.uuid4()), source=source)
        async with self._store.transaction():
            await self._store.set(BOOKINGS_COLLECTION, booking.id, booking.model_dump(mode="json"))
        logger.info(
            "Manual booking %s added for %s %s (source=%s)",
            booking.id, booking.date, booking.time, booking.source.value,
        )
        return booking
