from salon_booking.messaging.ledger import MESSAGES_COLLECTION, MessagingLedger

__all__ = ["MessagingLedger", "MESSAGES_COLLECTION"]
