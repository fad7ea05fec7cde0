"""
Document store contract consumed by the booking core.

The core depends only on per-collection keyed reads and writes, equality
queries, and snapshot subscriptions. Any backend (hosted document database,
Redis, SQL table of JSON blobs) can sit behind it. Every read may be stale
and every write is fire-and-confirm; callers never assume a cache.

Backends raise ``StoreError`` for transport failures and ``NotFoundError``
when ``update`` targets a missing document.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

Document = dict[str, Any]
Snapshot = dict[str, Document]


class DocumentStore(ABC):
    """Async keyed document store with equality queries and subscriptions."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Document]:
        """Return a copy of the document, or None if absent."""

    @abstractmethod
    async def set(self, collection: str, doc_id: str, doc: Document) -> None:
        """Create or fully replace a document."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Document) -> None:
        """Merge ``fields`` into an existing document.

        Raises:
            NotFoundError: If the document does not exist.
        """

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing document is a no-op."""

    @abstractmethod
    async def query(self, collection: str, **equals: Any) -> list[Document]:
        """Return documents whose fields equal every given value.

        With no filters the whole collection is returned.
        """

    @abstractmethod
    def subscribe(self, collection: str) -> AsyncIterator[Snapshot]:
        """Stream ``{doc_id: doc}`` snapshots, starting with the current one."""

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Group a read-check-write sequence.

        The default provides no isolation: stores without a compare-and-swap
        primitive leave check-then-insert sequences open to races.
        """
        yield
