"""Error taxonomy shared by the scheduling, booking and messaging layers.

Every error carries a stable ``code`` so a UI can render a specific
message (slot taken vs. generic failure) without parsing text.
"""


class BookingError(Exception):
    """Base class for all salon booking errors."""

    code = "error"


class ConflictError(BookingError):
    """The requested slot collides with an existing confirmed booking."""

    code = "slot_taken"


class ValidationError(BookingError, ValueError):
    """Malformed input: bad time label, bad date, missing fields."""

    code = "invalid_input"


class NotFoundError(BookingError):
    """The referenced document does not exist."""

    code = "not_found"


class StoreError(BookingError):
    """The document store failed (network or backend error)."""

    code = "store_failure"
