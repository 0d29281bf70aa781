"""
Customer journey tracking through the conversion funnel.

Every processed message is folded into the customer's journey: the
interaction log, lead-score history, product engagement, conversion
events, funnel progression and the engagement score. The tracker is
pure; it returns an updated copy and the orchestrator persists it.

Usage:
    tracker = ConversionTracker()
    journey = tracker.track_interaction(journey, customer_id, record, now)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from chatcommerce.schemas.journey_schema import (
    FUNNEL_ORDER,
    ConversionEvent,
    CustomerJourney,
    FunnelStage,
    Interaction,
    JourneyStatus,
    LeadScoreEntry,
)

logger = logging.getLogger(__name__)

HIGH_ENGAGEMENT_SCORE = 70
CONSIDERATION_SCORE = 60
INTEREST_SCORE = 30
CONSIDERATION_INTENTS = frozenset({"purchase_intent", "price_inquiry"})
INTEREST_INTENTS = frozenset({"product_inquiry", "availability_check", "comparison"})
PURCHASE_INTENT_WORDS = ("buy", "purchase", "order")


@dataclass
class InteractionRecord:
    """Everything the tracker needs to know about one processed message."""
    message: str
    response: str
    lead_score: int
    intent: str
    order_status: Optional[str] = None
    product_ids: list[str] = field(default_factory=list)
    product_names: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    order_total: Optional[float] = None
    session_id: Optional[str] = None


@dataclass
class RealTimeMetrics:
    total_customers: int
    active_customers: int
    total_conversions: int
    conversion_rate: float
    average_engagement: float


def determine_funnel_stage(
    lead_score: int, intent: str, order_status: Optional[str]
) -> FunnelStage:
    """Stage implied by a single message."""
    if order_status == "completed":
        return FunnelStage.PURCHASE
    if order_status and order_status != "inquiry":
        return FunnelStage.INTENT
    if lead_score >= CONSIDERATION_SCORE or intent in CONSIDERATION_INTENTS:
        return FunnelStage.CONSIDERATION
    if lead_score >= INTEREST_SCORE or intent in INTEREST_INTENTS:
        return FunnelStage.INTEREST
    return FunnelStage.AWARENESS


def calculate_engagement_score(journey: CustomerJourney, now: datetime) -> int:
    """Composite 0-100 score, recomputed from scratch on every interaction."""
    metrics = journey.metrics
    score = min(metrics.total_interactions * 5, 30)
    score += metrics.average_lead_score * 0.3
    score += len(journey.products.viewed) * 3
    score += len(journey.products.inquired) * 7
    score += len(journey.products.ordered) * 15
    score += journey.stages_reached() * 8

    days_idle = (now - journey.last_interaction).total_seconds() / 86400
    if days_idle <= 1:
        score += 10
    elif days_idle <= 7:
        score += 5
    return min(round(score), 100)


def _add_unique(target: list[str], values: Iterable[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


class ConversionTracker:
    """Folds interactions into customer journeys."""

    def track_interaction(
        self,
        journey: Optional[CustomerJourney],
        customer_id: str,
        record: InteractionRecord,
        now: datetime,
    ) -> CustomerJourney:
        journey = (
            journey.model_copy(deep=True)
            if journey is not None
            else CustomerJourney.start(customer_id, now)
        )
        self._record_interaction(journey, record, now)
        self._record_products(journey, record)
        _add_unique(journey.tags, record.tags)
        self._record_events(journey, record, now)
        self.update_funnel(journey, record, now)
        journey.metrics.engagement_score = calculate_engagement_score(journey, now)
        return journey

    def _record_interaction(
        self, journey: CustomerJourney, record: InteractionRecord, now: datetime
    ) -> None:
        journey.interactions.append(Interaction(
            timestamp=now,
            message=record.message,
            response=record.response,
            lead_score=record.lead_score,
            intent=record.intent,
            order_status=record.order_status,
            products=list(record.product_names),
        ))
        journey.last_interaction = now
        journey.metrics.total_interactions += 1

        previous = journey.lead_score_history[-1].score if journey.lead_score_history else 0
        journey.lead_score_history.append(
            LeadScoreEntry(score=record.lead_score, timestamp=now, delta=record.lead_score - previous)
        )
        scores = [entry.score for entry in journey.lead_score_history]
        journey.metrics.average_lead_score = sum(scores) / len(scores)
        journey.metrics.peak_lead_score = max(journey.metrics.peak_lead_score, record.lead_score)

    def _record_products(self, journey: CustomerJourney, record: InteractionRecord) -> None:
        products = journey.products
        _add_unique(products.viewed, record.product_ids)
        if "inquiry" in record.intent:
            _add_unique(products.inquired, record.product_ids)
        if record.order_status and record.order_status != "inquiry":
            _add_unique(products.ordered, record.product_ids)

    def _record_events(
        self, journey: CustomerJourney, record: InteractionRecord, now: datetime
    ) -> None:
        events = []
        if record.product_names:
            events.append(ConversionEvent(
                type="product_interest", timestamp=now, data={"products": record.product_names},
            ))
        if record.lead_score >= HIGH_ENGAGEMENT_SCORE:
            events.append(ConversionEvent(
                type="high_engagement", timestamp=now, data={"lead_score": record.lead_score},
            ))
        if any(word in record.intent for word in PURCHASE_INTENT_WORDS):
            events.append(ConversionEvent(
                type="purchase_intent", timestamp=now, data={"intent": record.intent},
            ))
        if record.order_status:
            events.append(ConversionEvent(
                type=f"order_{record.order_status}",
                timestamp=now,
                data={"order_status": record.order_status, "products": record.product_names},
            ))
            if record.order_status == "completed":
                if self._converted(journey, record.session_id):
                    logger.info("Conversion for session %s already recorded", record.session_id)
                else:
                    events.append(self._convert(journey, record, now))
        journey.conversion_events.extend(events)

    @staticmethod
    def _converted(journey: CustomerJourney, session_id: Optional[str]) -> bool:
        """True if a conversion for this order session is already in the journey."""
        if session_id is None:
            return False
        return any(
            event.type == "conversion" and event.data.get("session_id") == session_id
            for event in journey.conversion_events
        )

    def _convert(
        self, journey: CustomerJourney, record: InteractionRecord, now: datetime
    ) -> ConversionEvent:
        elapsed = (now - journey.start_date).total_seconds()
        if journey.metrics.time_to_conversion is None:
            journey.metrics.time_to_conversion = elapsed
        journey.metrics.conversion_value += record.order_total or 0.0
        journey.status = JourneyStatus.CONVERTED
        logger.info(
            "Conversion: %s after %d interactions (value %.2f)",
            journey.customer_id, journey.metrics.total_interactions, record.order_total or 0.0,
        )
        return ConversionEvent(
            type="conversion",
            timestamp=now,
            data={
                "session_id": record.session_id,
                "time_to_conversion": elapsed,
                "total_interactions": journey.metrics.total_interactions,
                "products": record.product_names,
                "value": record.order_total or 0.0,
            },
        )

    def update_funnel(
        self, journey: CustomerJourney, record: InteractionRecord, now: datetime
    ) -> FunnelStage:
        """Mark every stage up to the message's stage as reached; never un-mark."""
        stage = determine_funnel_stage(record.lead_score, record.intent, record.order_status)
        for current in FUNNEL_ORDER[: FUNNEL_ORDER.index(stage) + 1]:
            entry = journey.funnel[current]
            if not entry.reached:
                entry.reached = True
                entry.timestamp = now
            entry.interactions += 1
        journey.current_stage = stage
        return stage

    def real_time_metrics(self, journeys: Iterable[CustomerJourney]) -> RealTimeMetrics:
        journeys = list(journeys)
        total = len(journeys)
        converted = sum(1 for j in journeys if j.status == JourneyStatus.CONVERTED)
        return RealTimeMetrics(
            total_customers=total,
            active_customers=sum(1 for j in journeys if j.status == JourneyStatus.ACTIVE),
            total_conversions=converted,
            conversion_rate=round(converted / total * 100, 2) if total else 0.0,
            average_engagement=(
                round(sum(j.metrics.engagement_score for j in journeys) / total, 1) if total else 0.0
            ),
        )
