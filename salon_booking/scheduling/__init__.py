from salon_booking.scheduling.availability import AvailabilityStore
from salon_booking.scheduling.slot_calculator import SlotCalculator, propose_slot

__all__ = ["AvailabilityStore", "SlotCalculator", "propose_slot"]
