"""Customer context, tags and sales profile models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ConversationContext(BaseModel):
    """
    Long-lived per-customer context, created lazily on the first message.

    ``interaction_count`` only ever grows and ``previous_purchase`` flips
    to True once an order completes.
    """
    customer_id: str
    interaction_count: int = 0
    topics: list[str] = Field(default_factory=list)
    last_interaction: Optional[datetime] = None
    total_lead_score: int = 0
    previous_purchase: bool = False


class TagCategory(str, Enum):
    BUYING_STAGE = "buying_stage"
    INTEREST_LEVEL = "interest_level"
    CUSTOMER_TYPE = "customer_type"
    BEHAVIOR = "behavior"
    PRIORITY = "priority"
    SEGMENT = "segment"


class TagPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class CustomerTag(BaseModel):
    """A categorical sales-triage label."""

    model_config = {"frozen": True}

    category: TagCategory
    tag: str
    priority: TagPriority


class TagRecord(BaseModel):
    """A persisted tag, unique per (customer_id, category, tag)."""
    customer_id: str
    category: TagCategory
    tag: str
    priority: TagPriority
    created_at: datetime
    updated_at: datetime


class ActionRecommendation(BaseModel):
    action: str
    reason: str
    timeframe: str


class SalesRecommendations(BaseModel):
    sales_approach: str
    messaging_tone: str
    offer_strategy: str
    follow_up_timing: str


class CustomerProfile(BaseModel):
    """Aggregated tag insights for the seller dashboard."""
    customer_id: str
    buying_stage: Optional[str] = None
    interest_level: Optional[str] = None
    customer_type: Optional[str] = None
    priority: Optional[str] = None
    is_urgent: bool = False
    is_price_conscious: bool = False
    is_returning_customer: bool = False
    lead_score: int = 0
    sentiment: str = "neutral"
    confidence: float = 0.0
    recommended_actions: list[ActionRecommendation] = Field(default_factory=list)
    next_best_action: str = "continue_conversation"
    sales_recommendations: Optional[SalesRecommendations] = None
    updated_at: datetime
