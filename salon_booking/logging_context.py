"""Actor-aware logging context for tracing owner and client actions.

Provides a logger that attaches the id of the acting user to every log
message, so a single session's booking and messaging writes can be
followed across modules.

Usage:
    from salon_booking.logging_context import actor_scope, get_actor_logger, set_actor_id

    set_actor_id("owner-1")
    logger = get_actor_logger(__name__)
    logger.info("Request confirmed")  # record.actor_id == "owner-1"

    with actor_scope("client-9"):
        logger.info("Message sent")  # record.actor_id == "client-9"
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

_actor_id: ContextVar[str] = ContextVar("actor_id", default="anonymous")


def set_actor_id(actor_id: str) -> None:
    """Set the acting user id for the current async context."""
    _actor_id.set(actor_id)


def get_actor_id() -> str:
    """Retrieve the current acting user id."""
    return _actor_id.get()


@contextmanager
def actor_scope(actor_id: str) -> Iterator[None]:
    """Attribute log records to ``actor_id`` for the duration of the block."""
    token = _actor_id.set(actor_id)
    try:
        yield
    finally:
        _actor_id.reset(token)


class ActorIdFilter(logging.Filter):
    """Injects actor_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.actor_id = _actor_id.get()  # type: ignore[attr-defined]
        return True


def get_actor_logger(name: str) -> logging.Logger:
    """Return a logger with the ActorIdFilter attached.

    The filter adds ``actor_id`` to each record so formatters can
    include ``%(actor_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, ActorIdFilter) for f in logger.filters):
        logger.addFilter(ActorIdFilter())
    return logger
