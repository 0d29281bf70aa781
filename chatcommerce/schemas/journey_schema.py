"""Longitudinal customer journey through the conversion funnel."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class FunnelStage(str, Enum):
    AWARENESS = "awareness"
    INTEREST = "interest"
    CONSIDERATION = "consideration"
    INTENT = "intent"
    PURCHASE = "purchase"


FUNNEL_ORDER: list[FunnelStage] = [
    FunnelStage.AWARENESS,
    FunnelStage.INTEREST,
    FunnelStage.CONSIDERATION,
    FunnelStage.INTENT,
    FunnelStage.PURCHASE,
]


class JourneyStatus(str, Enum):
    ACTIVE = "active"
    CONVERTED = "converted"


class FunnelEntry(BaseModel):
    reached: bool = False
    timestamp: Optional[datetime] = None
    interactions: int = 0


class LeadScoreEntry(BaseModel):
    score: int
    timestamp: datetime
    delta: int


class Interaction(BaseModel):
    timestamp: datetime
    message: str
    response: str
    lead_score: int
    intent: str
    order_status: Optional[str] = None
    products: list[str] = Field(default_factory=list)


class ConversionEvent(BaseModel):
    type: str
    timestamp: datetime
    data: dict[str, Any] = Field(default_factory=dict)


class JourneyProducts(BaseModel):
    """Product ids per engagement depth. Each list holds unique ids."""
    viewed: list[str] = Field(default_factory=list)
    inquired: list[str] = Field(default_factory=list)
    ordered: list[str] = Field(default_factory=list)


class JourneyMetrics(BaseModel):
    total_interactions: int = 0
    average_lead_score: float = 0.0
    peak_lead_score: int = 0
    engagement_score: int = 0
    time_to_conversion: Optional[float] = None  # seconds
    conversion_value: float = 0.0


class CustomerJourney(BaseModel):
    """
    Append-only record of one customer's path through the funnel.

    Funnel stages are monotonic: once reached they stay reached, and every
    stage below a reached stage is reached too. ``status`` only moves
    from active to converted.
    """

    customer_id: str
    start_date: datetime
    current_stage: FunnelStage = FunnelStage.AWARENESS
    status: JourneyStatus = JourneyStatus.ACTIVE
    interactions: list[Interaction] = Field(default_factory=list)
    lead_score_history: list[LeadScoreEntry] = Field(default_factory=list)
    conversion_events: list[ConversionEvent] = Field(default_factory=list)
    funnel: dict[FunnelStage, FunnelEntry] = Field(default_factory=dict)
    products: JourneyProducts = Field(default_factory=JourneyProducts)
    tags: list[str] = Field(default_factory=list)
    metrics: JourneyMetrics = Field(default_factory=JourneyMetrics)
    last_interaction: datetime

    @classmethod
    def start(cls, customer_id: str, now: datetime) -> "CustomerJourney":
        funnel = {stage: FunnelEntry() for stage in FUNNEL_ORDER}
        funnel[FunnelStage.AWARENESS] = FunnelEntry(reached=True, timestamp=now)
        return cls(
            customer_id=customer_id,
            start_date=now,
            funnel=funnel,
            last_interaction=now,
        )

    def stages_reached(self) -> int:
        return sum(1 for entry in self.funnel.values() if entry.reached)
