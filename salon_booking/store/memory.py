"""
In-memory document store.

Used by tests and local development in place of a hosted backend. Each
call yields to the event loop once to model a round trip: reads observe the
state at the moment they are issued, writes land when they are acknowledged.
A write issued alongside a read is therefore not seen by that read, exactly
as with a remote store. Documents are deep-copied on the way in and out.
"""

import asyncio
import copy
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from salon_booking.errors import NotFoundError
from salon_booking.store.base import Document, DocumentStore, Snapshot

logger = logging.getLogger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store with snapshot subscriptions and a serialising transaction."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, Document]] = defaultdict(dict)
        self._subscribers: dict[str, list[asyncio.Queue]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def _round_trip(self) -> None:
        await asyncio.sleep(0)

    def _snapshot(self, collection: str) -> Snapshot:
        return copy.deepcopy(self._collections[collection])

    def _publish(self, collection: str) -> None:
        if not self._subscribers[collection]:
            return
        snapshot = self._snapshot(collection)
        for queue in self._subscribers[collection]:
            queue.put_nowait(snapshot)

    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        doc = self._collections[collection].get(doc_id)
        result = copy.deepcopy(doc) if doc is not None else None
        await self._round_trip()
        return result

    async def set(self, collection: str, doc_id: str, doc: Document) -> None:
        await self._round_trip()
        self._collections[collection][doc_id] = copy.deepcopy(doc)
        logger.debug("set %s/%s", collection, doc_id)
        self._publish(collection)

    async def update(self, collection: str, doc_id: str, fields: Document) -> None:
        await self._round_trip()
        existing = self._collections[collection].get(doc_id)
        if existing is None:
            raise NotFoundError(f"No document {collection}/{doc_id} to update")
        existing.update(copy.deepcopy(fields))
        logger.debug("update %s/%s fields=%s", collection, doc_id, sorted(fields))
        self._publish(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        await self._round_trip()
        if self._collections[collection].pop(doc_id, None) is not None:
            logger.debug("delete %s/%s", collection, doc_id)
            self._publish(collection)

    async def query(self, collection: str, **equals: Any) -> list[Document]:
        matches = [
            copy.deepcopy(doc)
            for doc in self._collections[collection].values()
            if all(doc.get(key) == value for key, value in equals.items())
        ]
        await self._round_trip()
        return matches

    async def subscribe(self, collection: str) -> AsyncIterator[Snapshot]:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers[collection].append(queue)
        try:
            yield self._snapshot(collection)
            while True:
                yield await queue.get()
        finally:
            self._subscribers[collection].remove(queue)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        async with self._lock:
            yield
