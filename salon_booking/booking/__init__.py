from salon_booking.booking.lifecycle import (
    BookingLifecycle,
    BookingStatus,
    BookingTrigger,
    InvalidTransitionError,
)
from salon_booking.booking.reconciler import BookingReconciler

__all__ = [
    "BookingLifecycle",
    "BookingStatus",
    "BookingTrigger",
    "InvalidTransitionError",
    "BookingReconciler",
]
