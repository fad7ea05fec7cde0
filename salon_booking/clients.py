"""
Client directory.

Client records are owned by the registration subsystem; the booking core
only reads identity fields to attribute bookings and route messages, and
lets the owner keep private notes per client. E-mail is the matching key
between clients and bookings and is compared case-insensitively.
"""

import logging
from typing import Optional

from salon_booking.schemas.client_schema import Client
from salon_booking.store.base import DocumentStore
from salon_booking.utils import normalize_email, normalize_phone

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"


class ClientDirectory:
    """Lookup and owner-notes access over the users collection."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def register(
        self, client_id: str, name: str, email: str, phone: Optional[str] = None
    ) -> Client:
        """Create or replace a client record (used when seeding from the auth layer)."""
        client = Client(
            id=client_id,
            name=name.strip(),
            email=email.strip(),
            phone=normalize_phone(phone) if phone else None,
        )
        await self._store.set(USERS_COLLECTION, client.id, client.model_dump(mode="json"))
        logger.info("Client registered: %s", client.id)
        return client

    async def get(self, client_id: str) -> Optional[Client]:
        doc = await self._store.get(USERS_COLLECTION, client_id)
        return Client.model_validate(doc) if doc is not None else None

    async def find_by_email(self, email: str) -> Optional[Client]:
        """Find a client by e-mail, ignoring case and surrounding whitespace."""
        wanted = normalize_email(email)
        for client in await self.list_clients():
            if normalize_email(client.email) == wanted:
                return client
        return None

    async def list_clients(self) -> list[Client]:
        docs = await self._store.query(USERS_COLLECTION)
        return sorted((Client.model_validate(d) for d in docs), key=lambda c: c.name.lower())

    async def update_notes(self, client_id: str, notes: str) -> None:
        """Replace the owner's private notes. Raises NotFoundError for unknown clients."""
        await self._store.update(USERS_COLLECTION, client_id, {"owner_notes": notes})
        logger.info("Owner notes updated for client %s", client_id)

    async def delete(self, client_id: str) -> None:
        await self._store.delete(USERS_COLLECTION, client_id)
        logger.info("Client %s deleted", client_id)
