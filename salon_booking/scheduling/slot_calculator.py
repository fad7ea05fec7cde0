"""
Next-slot proposal for a single chair and a fixed-duration service.

Rules, applied to one day:
1. The day's window opens at the earliest marker and closes one padding
   period (an hour by default) after the latest marker, since markers are
   hour-block starts rather than the window's true end.
2. With nothing booked or requested that day, the proposal is the opening.
3. Otherwise the proposal is the latest occupied start plus the stagger
   interval (2.5 hours by default). Sessions overlap the owner's attention
   on purpose: the 4-hour service is longer than the stagger gap.
4. The proposal is dropped if the service would run past the window.

At most one slot is ever proposed. This is not a free-window search.
Confirmed bookings and pending requests count equally, whatever their
source.
"""

from typing import Iterable, Optional, Protocol

from salon_booking.config import SchedulingConfig, settings
from salon_booking.errors import ValidationError
from salon_booking.logging_context import get_actor_logger
from salon_booking.scheduling.availability import AvailabilityStore
from salon_booking.schemas.booking_schema import Booking, Service
from salon_booking.time_utils import minutes_to_time, parse_marker

logger = get_actor_logger(__name__)


class OccupancySource(Protocol):
    async def occupancy_for_date(self, date: str) -> list[Booking]:
        ...


def propose_slot(
    markers: Iterable[int],
    occupied_starts: Iterable[int],
    duration: int,
    stagger_interval: int = settings.scheduling.stagger_interval_minutes,
    session_padding: int = settings.scheduling.session_padding_minutes,
) -> Optional[int]:
    """
    Pure slot rule over minute values.

    Args:
        markers: Open hour-starts for the day, any order.
        occupied_starts: Start minutes of bookings and requests that day.
        duration: Service length in minutes.

    Returns:
        The proposed start in minutes, or None if nothing fits.
    """
    ordered = sorted(markers)
    if not ordered:
        return None

    day_start = ordered[0]
    day_end = ordered[-1] + session_padding

    occupied = sorted(occupied_starts)
    if not occupied:
        proposed = day_start
    else:
        proposed = occupied[-1] + stagger_interval

    if proposed + duration > day_end:
        return None
    return proposed


class SlotCalculator:
    """Combines a day's availability with its occupancy into one proposal."""

    def __init__(
        self,
        availability: AvailabilityStore,
        occupancy: OccupancySource,
        config: SchedulingConfig = settings.scheduling,
    ) -> None:
        self._availability = availability
        self._occupancy = occupancy
        self._config = config

    async def available_slots(self, date: str, service: Service) -> list[str]:
        """
        Proposable start labels for ``service`` on ``date``.

        Returns an empty list, never raises, when the date is malformed, the
        day has no markers, or the single candidate does not fit. Occupancy
        sources drop unreadable bookings before they reach here.
        """
        try:
            markers = await self._availability.read(date)
        except ValidationError as exc:
            logger.debug("No slots for unparsable date %r: %s", date, exc)
            return []
        if not markers:
            return []

        bookings = await self._occupancy.occupancy_for_date(date)
        occupied = [parse_marker(booking.time) for booking in bookings]

        proposed = propose_slot(
            markers,
            occupied,
            service.duration,
            stagger_interval=self._config.stagger_interval_minutes,
            session_padding=self._config.session_padding_minutes,
        )
        if proposed is None:
            logger.debug(
                "No slot for %s on %s (%d marker(s), %d occupied)",
                service.name, date, len(markers), len(occupied),
            )
            return []
        return [minutes_to_time(proposed)]
