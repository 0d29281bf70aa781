"""
Outbound message delivery.

In production, this would post to the chat platform's send API
(e.g. Messenger Send API with quick-reply buttons). The default
sender logs the reply and keeps an outbox for demos and tests.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class MessageSender(Protocol):
    async def send(
        self, customer_id: str, text: str, quick_replies: Optional[list[dict[str, str]]] = None
    ) -> None: ...


@dataclass
class SentMessage:
    customer_id: str
    text: str
    quick_replies: list[dict[str, str]] = field(default_factory=list)


class LoggingMessageSender:
    """Records outgoing messages instead of calling a platform API."""

    def __init__(self) -> None:
        self.outbox: list[SentMessage] = []

    async def send(
        self, customer_id: str, text: str, quick_replies: Optional[list[dict[str, str]]] = None
    ) -> None:
        message = SentMessage(customer_id, text, list(quick_replies or []))
        self.outbox.append(message)
        logger.info(
            "Sent to %s (%d quick replies): %s",
            customer_id, len(message.quick_replies), text[:80],
        )
