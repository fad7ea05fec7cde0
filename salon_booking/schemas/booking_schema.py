"""Service, availability range and booking data models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from salon_booking.time_utils import (
    normalize_label,
    parse_marker,
    validate_iso_date,
)


class BookingSource(str, Enum):
    ONLINE = "online"
    MANUAL = "manual"


class Service(BaseModel):
    """Bookable service. Immutable reference data."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    duration: int = Field(ge=1, description="Duration in minutes")
    price: float = Field(ge=0)
    description: str = ""


class TimeRange(BaseModel):
    """Owner-entered open hours for one day, start inclusive, end exclusive."""

    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def _parseable(cls, value: str) -> str:
        parse_marker(value)
        return value.strip()

    def bounds(self) -> tuple[int, int]:
        return parse_marker(self.start), parse_marker(self.end)


class BookingDetails(BaseModel):
    """Client or owner supplied booking data, before an id is assigned."""

    model_config = ConfigDict(str_strip_whitespace=True)

    service: Service
    date: str
    time: str
    customer_name: str = Field(min_length=1)
    customer_email: str = Field(min_length=3)
    customer_phone: Optional[str] = None
    customer_notes: Optional[str] = None
    owner_notes: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=1)
    customer_id: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _iso_date(cls, value: str) -> str:
        return validate_iso_date(value)

    @field_validator("time")
    @classmethod
    def _canonical_time(cls, value: str) -> str:
        return normalize_label(value)

    @field_validator("customer_email")
    @classmethod
    def _looks_like_email(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError(f"Invalid email address: {value!r}")
        return value


class Booking(BookingDetails):
    """Stored booking request or confirmed booking.

    The service is a snapshot copied at booking time, not a live reference.
    """

    id: str
    source: BookingSource = BookingSource.ONLINE

    @property
    def effective_duration(self) -> int:
        return self.duration or self.service.duration
