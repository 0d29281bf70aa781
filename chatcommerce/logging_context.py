"""Per-customer correlation ID for log records.

Every message is processed under its customer's conversation ID, so
one message can be followed through analysis, scoring, the order flow
and persistence by filtering on ``%(conversation_id)s``.

Usage:
    from chatcommerce.logging_context import conversation_scope, get_conversation_logger

    logger = get_conversation_logger(__name__)
    with conversation_scope("psid-1234"):
        logger.info("Processing message")  # record.conversation_id == "psid-1234"
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

NO_CONVERSATION = "-"

_conversation_id: ContextVar[str] = ContextVar("conversation_id", default=NO_CONVERSATION)


def get_conversation_id() -> str:
    return _conversation_id.get()


@contextmanager
def conversation_scope(conversation_id: str) -> Iterator[None]:
    """Tag log records with ``conversation_id`` until the block exits."""
    token = _conversation_id.set(conversation_id)
    try:
        yield
    finally:
        _conversation_id.reset(token)


class ConversationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.conversation_id = _conversation_id.get()  # type: ignore[attr-defined]
        return True


def get_conversation_logger(name: str) -> logging.Logger:
    """Module logger whose records always carry ``conversation_id``."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, ConversationIdFilter) for f in logger.filters):
        logger.addFilter(ConversationIdFilter())
    return logger
