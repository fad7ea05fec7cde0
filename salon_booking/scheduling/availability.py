"""
Per-day availability markers declared by the owner.

Each marker is the start of a bookable one-hour block, stored as integer
minutes since midnight under the date's document:

    availability/2025-03-18 -> {"slots": [540, 600, 660, 720]}

Labels are converted only at the boundary. Records written by older
clients may still hold 12-hour or 24-hour strings; reads normalise them and
silently drop anything unparsable.

Writes overwrite the whole day. Two owners editing the same date race
last-write-wins; there is no merge.
"""

from typing import AsyncIterator, Iterable, Union

from pydantic import ValidationError as PydanticValidationError

from salon_booking.config import SchedulingConfig, settings
from salon_booking.errors import ValidationError
from salon_booking.logging_context import get_actor_logger
from salon_booking.schemas.booking_schema import TimeRange
from salon_booking.store.base import Document, DocumentStore
from salon_booking.time_utils import (
    minutes_to_time,
    parse_marker,
    try_parse_marker,
    validate_iso_date,
)

logger = get_actor_logger(__name__)

AVAILABILITY_COLLECTION = "availability"

MarkerInput = Union[int, str]
RangeInput = Union[TimeRange, dict]


def _markers_from_doc(doc: Document) -> list[int]:
    markers = set()
    for raw in doc.get("slots") or []:
        if isinstance(raw, int) and not isinstance(raw, bool):
            markers.add(raw)
            continue
        parsed = try_parse_marker(raw)
        if parsed is None:
            logger.debug("Dropping unparsable availability marker: %r", raw)
            continue
        markers.add(parsed)
    return sorted(markers)


def _coerce_marker(value: MarkerInput) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        if not 0 <= value < 24 * 60:
            raise ValidationError(f"Marker out of range: {value}")
        return value
    return parse_marker(value)


def _coerce_range(value: RangeInput) -> TimeRange:
    if isinstance(value, TimeRange):
        return value
    try:
        return TimeRange.model_validate(value)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid time range {value!r}: {exc}") from exc


class AvailabilityStore:
    """Reads and overwrites the owner's open hours, one document per date."""

    def __init__(
        self, store: DocumentStore, config: SchedulingConfig = settings.scheduling
    ) -> None:
        self._store = store
        self._step = config.marker_step_minutes

    def expand_ranges(self, ranges: Iterable[RangeInput]) -> list[int]:
        """
        One marker per step from each range's start (inclusive) to end (exclusive).

        A range whose end is not after its start contributes nothing.

        Raises:
            ValidationError: If a range holds an unparsable label.
        """
        markers: set[int] = set()
        for time_range in [_coerce_range(r) for r in ranges]:
            start, end = time_range.bounds()
            if end <= start:
                logger.debug("Empty range %s-%s ignored", time_range.start, time_range.end)
                continue
            markers.update(range(start, end, self._step))
        return sorted(markers)

    async def set_ranges(self, dates: Iterable[str], ranges: Iterable[RangeInput]) -> list[int]:
        """
        Replace each date's markers with those generated from ``ranges``.

        Input is validated before anything is written. Dates are then written
        one at a time, so a store failure part-way leaves earlier dates
        updated. Replaying the call is safe.

        Returns:
            The markers written to every date.
        """
        dates = [validate_iso_date(d) for d in dates]
        markers = self.expand_ranges(ranges)
        for date in dates:
            await self._store.set(AVAILABILITY_COLLECTION, date, {"slots": markers})
        logger.info("Availability set for %d date(s): %d marker(s) each", len(dates), len(markers))
        return markers

    async def clear_dates(self, dates: Iterable[str]) -> None:
        """Delete the availability record for each date."""
        dates = [validate_iso_date(d) for d in dates]
        for date in dates:
            await self._store.delete(AVAILABILITY_COLLECTION, date)
        logger.info("Availability cleared for %d date(s)", len(dates))

    async def set_single_day_slots(self, date: str, markers: Iterable[MarkerInput]) -> list[int]:
        """Overwrite one day's markers. Labels and minutes are both accepted."""
        validate_iso_date(date)
        normalized = sorted({_coerce_marker(m) for m in markers})
        await self._store.set(AVAILABILITY_COLLECTION, date, {"slots": normalized})
        logger.info("Availability for %s overwritten with %d marker(s)", date, len(normalized))
        return normalized

    async def read(self, date: str) -> list[int]:
        """Sorted markers for a date. Absent and empty records both read as []."""
        doc = await self._store.get(AVAILABILITY_COLLECTION, validate_iso_date(date))
        if doc is None:
            return []
        return _markers_from_doc(doc)

    async def read_labels(self, date: str) -> list[str]:
        return [minutes_to_time(m) for m in await self.read(date)]

    async def add_marker(self, date: str, marker: MarkerInput) -> list[int]:
        """Re-open one hour-start on a date (read, merge, overwrite)."""
        current = await self.read(date)
        return await self.set_single_day_slots(date, [*current, _coerce_marker(marker)])

    async def remove_marker(self, date: str, marker: MarkerInput) -> list[int]:
        """Block one hour-start on a date (read, filter, overwrite)."""
        target = _coerce_marker(marker)
        current = await self.read(date)
        return await self.set_single_day_slots(date, [m for m in current if m != target])

    async def watch(self) -> AsyncIterator[dict[str, list[int]]]:
        """Stream ``{date: markers}`` for every date, re-emitted on each change."""
        async for snapshot in self._store.subscribe(AVAILABILITY_COLLECTION):
            yield {date: _markers_from_doc(doc) for date, doc in snapshot.items()}
