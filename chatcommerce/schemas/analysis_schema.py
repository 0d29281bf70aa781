"""Structured analysis of a single inbound customer message."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class Intent(str, Enum):
    GREETING = "greeting"
    PRODUCT_INQUIRY = "product_inquiry"
    PRICE_INQUIRY = "price_inquiry"
    PURCHASE_INTENT = "purchase_intent"
    AVAILABILITY_CHECK = "availability_check"
    SUPPORT = "support"
    COMPARISON = "comparison"
    GENERAL = "general"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class BuyingSignal(BaseModel):
    """A buying-signal keyword and the category it was matched under."""
    category: str
    keyword: str


class ContactInfo(BaseModel):
    """Contact details shared by the customer."""
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.name or self.phone or self.email)


class OrderDetails(BaseModel):
    """Order specifics mentioned in a message."""
    quantity: Optional[int] = None
    variant: Optional[str] = None
    address: Optional[str] = None

    def is_empty(self) -> bool:
        return self.quantity is None and not self.variant and not self.address


class MessageAnalysis(BaseModel):
    """
    Output contract shared by every message analyzer.

    Rule-based and LLM-backed analyzers both produce this model. The
    validators coerce loose analyzer output: unknown intents fall back
    to ``general``, confidence is clamped to [0, 1], and bare string
    buying signals are wrapped with an ``unclassified`` category.
    """

    intent: Intent = Intent.GENERAL
    sentiment: Sentiment = Sentiment.NEUTRAL
    confidence: float = 0.5
    urgency_indicators: list[str] = Field(default_factory=list)
    buying_signals: list[BuyingSignal] = Field(default_factory=list)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    order_details: OrderDetails = Field(default_factory=OrderDetails)
    mentioned_products: list[str] = Field(default_factory=list)
    degraded: bool = False

    @field_validator("intent", mode="before")
    @classmethod
    def _default_intent(cls, value: Any) -> Any:
        if isinstance(value, Intent):
            return value
        try:
            return Intent(str(value).strip().lower())
        except ValueError:
            return Intent.GENERAL

    @field_validator("sentiment", mode="before")
    @classmethod
    def _default_sentiment(cls, value: Any) -> Any:
        if isinstance(value, Sentiment):
            return value
        try:
            return Sentiment(str(value).strip().lower())
        except ValueError:
            return Sentiment.NEUTRAL

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0
        return max(0.0, min(1.0, number))

    @field_validator("buying_signals", mode="before")
    @classmethod
    def _wrap_signals(cls, value: Any) -> Any:
        if value is None:
            return []
        return [
            {"category": "unclassified", "keyword": item.lower()} if isinstance(item, str) else item
            for item in value
        ]

    @field_validator("contact_info", "order_details", mode="before")
    @classmethod
    def _empty_when_null(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("urgency_indicators", "mentioned_products", mode="before")
    @classmethod
    def _list_when_null(cls, value: Any) -> Any:
        return [] if value is None else value

    def signal_categories(self) -> set[str]:
        return {signal.category for signal in self.buying_signals}
