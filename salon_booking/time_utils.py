"""
Time-of-day arithmetic between 12-hour labels and minutes since midnight.

Integer minutes are the canonical internal representation. Labels such as
``"9:00 AM"`` only appear at the boundary (input from the owner or client,
output to the UI). Owner-entered 24-hour ``"HH:MM"`` markers are accepted
by ``parse_marker`` and converted on the way in.

Arithmetic is confined to a single day: values outside ``[0, 1440)`` are
rejected instead of wrapped, so an end time past midnight raises
``ValidationError``.
"""

from datetime import datetime
from typing import Optional

from salon_booking.errors import ValidationError

MINUTES_PER_DAY = 24 * 60

_LABEL_FORMAT = "%I:%M %p"
_MARKER_24H_FORMAT = "%H:%M"


def _to_minutes(parsed: datetime) -> int:
    return parsed.hour * 60 + parsed.minute


def time_to_minutes(label: str) -> int:
    """
    Parse a 12-hour label (``"H:MM AM"``/``"H:MM PM"``) into minutes.

    ``12:xx AM`` is the midnight hour and ``12:xx PM`` the noon hour.

    Raises:
        ValidationError: If the label is not a well-formed 12-hour time.
    """
    if not isinstance(label, str):
        raise ValidationError(f"Time label must be a string, got {type(label).__name__}")
    try:
        parsed = datetime.strptime(label.strip(), _LABEL_FORMAT)
    except ValueError:
        raise ValidationError(f"Unparsable time label: {label!r}") from None
    return _to_minutes(parsed)


def minutes_to_time(total_minutes: int) -> str:
    """Format minutes since midnight as a 12-hour label, e.g. ``780 -> "1:00 PM"``."""
    if not 0 <= total_minutes < MINUTES_PER_DAY:
        raise ValidationError(
            f"Minutes must be within a single day [0, {MINUTES_PER_DAY}), got {total_minutes}"
        )
    hours, minutes = divmod(total_minutes, 60)
    hour12 = 12 if hours % 12 == 0 else hours % 12
    suffix = "AM" if hours < 12 else "PM"
    return f"{hour12}:{minutes:02d} {suffix}"


def calculate_end_time(start: str, duration_minutes: int) -> str:
    """End label for a service starting at ``start`` lasting ``duration_minutes``.

    Raises:
        ValidationError: If the start label is malformed or the end falls
            on or past midnight.
    """
    return minutes_to_time(time_to_minutes(start) + duration_minutes)


def parse_marker(value: str) -> int:
    """
    Parse an availability marker written in either 12-hour or 24-hour form.

    Raises:
        ValidationError: If neither format matches.
    """
    if isinstance(value, str):
        try:
            return _to_minutes(datetime.strptime(value.strip(), _MARKER_24H_FORMAT))
        except ValueError:
            pass
    return time_to_minutes(value)


def try_parse_marker(value: str) -> Optional[int]:
    """Like ``parse_marker`` but returns None for malformed input."""
    try:
        return parse_marker(value)
    except ValidationError:
        return None


def normalize_label(value: str) -> str:
    """Canonical 12-hour label for a 12- or 24-hour time string."""
    return minutes_to_time(parse_marker(value))


def validate_iso_date(value: str) -> str:
    """Check a calendar date is ``YYYY-MM-DD`` and return it unchanged.

    Dates are local calendar days; no timezone conversion is applied.
    """
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except (TypeError, ValueError):
        raise ValidationError(f"Date must be YYYY-MM-DD, got {value!r}") from None
    return value
