from salon_booking.store.base import Document, DocumentStore, Snapshot
from salon_booking.store.memory import InMemoryDocumentStore

__all__ = ["Document", "DocumentStore", "Snapshot", "InMemoryDocumentStore"]
