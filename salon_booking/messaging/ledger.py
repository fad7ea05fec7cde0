"""
Append-only message store grouped into conversation threads.

A thread id is either given explicitly (replies) or derived from the two
participant ids sorted and joined, so both sides of a conversation land in
the same thread regardless of who wrote first. Messages are hard-deleted;
nothing is recoverable.
"""

import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from salon_booking.config import MessagingConfig, settings
from salon_booking.errors import StoreError
from salon_booking.logging_context import actor_scope, get_actor_logger
from salon_booking.schemas.client_schema import Actor
from salon_booking.schemas.message_schema import Message, ThreadSummary
from salon_booking.store.base import DocumentStore
from salon_booking.utils import derive_thread_id

logger = get_actor_logger(__name__)

MESSAGES_COLLECTION = "messages"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def years_before(moment: datetime, years: int) -> datetime:
    """Same calendar instant ``years`` earlier; 29 February maps to the 28th."""
    try:
        return moment.replace(year=moment.year - years)
    except ValueError:
        return moment.replace(year=moment.year - years, day=28)


class MessagingLedger:
    """Message send, read-state, thread listing, deletion and retention."""

    def __init__(
        self,
        store: DocumentStore,
        config: MessagingConfig = settings.messaging,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._retention_years = config.retention_years
        self._clock = clock

    async def send(
        self,
        sender: Actor,
        recipient_id: str,
        subject: str,
        body: str,
        thread_id: Optional[str] = None,
    ) -> Message:
        """Append an unread message, deriving the thread id when not given."""
        message = Message(
            id=str(uuid.uuid4()),
            sender_id=sender.id,
            sender_name=sender.name,
            recipient_id=recipient_id,
            subject=subject,
            body=body,
            timestamp=self._clock(),
            read=False,
            thread_id=thread_id or derive_thread_id(sender.id, recipient_id),
        )
        with actor_scope(sender.id):
            await self._store.set(MESSAGES_COLLECTION, message.id, message.model_dump(mode="json"))
            logger.info(
                "Message %s sent to %s in thread %s", message.id, recipient_id, message.thread_id
            )
        return message

    async def get(self, message_id: str) -> Optional[Message]:
        doc = await self._store.get(MESSAGES_COLLECTION, message_id)
        return Message.model_validate(doc) if doc is not None else None

    async def mark_message_read(self, message_id: str) -> None:
        await self._store.update(MESSAGES_COLLECTION, message_id, {"read": True})

    async def mark_thread_read(self, thread_id: str, reader_id: str) -> int:
        """Mark every unread message in the thread addressed to ``reader_id``.

        Returns:
            Number of messages marked.
        """
        unread = [
            m for m in await self.thread(thread_id)
            if m.recipient_id == reader_id and not m.read
        ]
        for message in unread:
            await self._store.update(MESSAGES_COLLECTION, message.id, {"read": True})
        if unread:
            logger.debug("Marked %d message(s) read in thread %s", len(unread), thread_id)
        return len(unread)

    async def thread(self, thread_id: str) -> list[Message]:
        """All messages of a thread, oldest first."""
        docs = await self._store.query(MESSAGES_COLLECTION, thread_id=thread_id)
        return sorted((Message.model_validate(d) for d in docs), key=lambda m: m.timestamp)

    async def _messages_involving(self, user_id: str) -> list[Message]:
        sent = await self._store.query(MESSAGES_COLLECTION, sender_id=user_id)
        received = await self._store.query(MESSAGES_COLLECTION, recipient_id=user_id)
        by_id = {d["id"]: d for d in [*sent, *received]}
        return [Message.model_validate(d) for d in by_id.values()]

    async def threads_for(self, user_id: str) -> list[ThreadSummary]:
        """Inbox for ``user_id``: one summary per thread, most recent first."""
        groups: dict[str, list[Message]] = {}
        for message in await self._messages_involving(user_id):
            groups.setdefault(message.thread_id, []).append(message)

        summaries = []
        for thread_id, messages in groups.items():
            messages.sort(key=lambda m: m.timestamp)
            last = messages[-1]
            partner = last.recipient_id if last.sender_id == user_id else last.sender_id
            summaries.append(ThreadSummary(
                thread_id=thread_id,
                partner_id=partner,
                subject=last.subject,
                last_message=last,
                unread_count=sum(1 for m in messages if m.recipient_id == user_id and not m.read),
                message_count=len(messages),
            ))
        summaries.sort(key=lambda s: s.last_message.timestamp, reverse=True)
        return summaries

    async def unread_count(self, user_id: str) -> int:
        docs = await self._store.query(MESSAGES_COLLECTION, recipient_id=user_id, read=False)
        return len(docs)

    async def delete_message(self, message_id: str) -> None:
        await self._store.delete(MESSAGES_COLLECTION, message_id)
        logger.info("Message %s deleted", message_id)

    async def delete_thread(self, thread_id: str) -> int:
        """Delete every message in a thread. Returns the number removed."""
        docs = await self._store.query(MESSAGES_COLLECTION, thread_id=thread_id)
        for doc in docs:
            await self._store.delete(MESSAGES_COLLECTION, doc["id"])
        logger.info("Thread %s deleted (%d message(s))", thread_id, len(docs))
        return len(docs)

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """
        Delete messages older than the retention window.

        Best-effort: a store failure is logged and the count deleted so far
        is returned; the next run picks up the remainder.
        """
        cutoff = years_before(now or self._clock(), self._retention_years)
        deleted = 0
        try:
            docs = await self._store.query(MESSAGES_COLLECTION)
            for message in (Message.model_validate(d) for d in docs):
                if message.timestamp < cutoff:
                    await self._store.delete(MESSAGES_COLLECTION, message.id)
                    deleted += 1
        except StoreError as exc:
            logger.warning("Retention purge stopped after %d deletion(s): %s", deleted, exc)
            return deleted
        if deleted:
            logger.info("Retention purge deleted %d message(s) older than %s", deleted, cutoff.date())
        return deleted
