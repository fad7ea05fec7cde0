"""Message and thread summary models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class Message(BaseModel):
    """A single message between two participants."""

    id: str
    sender_id: str
    sender_name: str = ""
    recipient_id: str
    subject: str
    body: str
    timestamp: datetime
    read: bool = False
    thread_id: str


class ThreadSummary(BaseModel):
    """Inbox row for one conversation, as seen by one participant."""

    thread_id: str
    partner_id: Optional[str] = None
    subject: str
    last_message: Message
    unread_count: int = 0
    message_count: int = 0
