"""
Lead tagging for sales triage.

Each tag category is derived by its own rule table:

    buying_stage    order status, else intent
    interest_level  lead-score band, plus focus across mentioned products
    customer_type   returning flag, engagement depth, buying-signal style
    behavior        urgency, research intent, decision signals, contact, sentiment
    priority        order status, lead-score band, urgency
    segment         product categories and average price band

Tags are de-duplicated on (category, tag) in generation order, so the
same inputs always give the same list.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from chatcommerce.schemas.analysis_schema import Intent, MessageAnalysis, Sentiment
from chatcommerce.schemas.business_schema import Product
from chatcommerce.schemas.customer_schema import (
    ActionRecommendation,
    ConversationContext,
    CustomerProfile,
    CustomerTag,
    SalesRecommendations,
    TagCategory,
    TagPriority,
)
from chatcommerce.utils import utc_now

logger = logging.getLogger(__name__)

PREMIUM_PRICE = 10000
MID_RANGE_PRICE = 5000

# First matching tag wins; most actionable first.
NEXT_BEST_ACTIONS: list[tuple[str, str]] = [
    ("immediate_action", "process_order_immediately"),
    ("ready_to_buy", "confirm_order_details"),
    ("hot_lead", "personalized_offer"),
    ("follow_up_needed", "collect_contact_info"),
    ("warm_lead", "send_product_details"),
    ("price_conscious", "offer_discount"),
    ("researcher", "provide_comparison"),
    ("cold_lead", "nurture_relationship"),
]
DEFAULT_NEXT_ACTION = "continue_conversation"

INTENT_STAGES: dict[Intent, tuple[str, TagPriority]] = {
    Intent.PURCHASE_INTENT: ("ready_to_buy", TagPriority.CRITICAL),
    Intent.PRICE_INQUIRY: ("evaluation", TagPriority.HIGH),
    Intent.AVAILABILITY_CHECK: ("evaluation", TagPriority.HIGH),
    Intent.COMPARISON: ("consideration", TagPriority.MEDIUM),
    Intent.PRODUCT_INQUIRY: ("interest", TagPriority.MEDIUM),
}

ORDER_STAGES: dict[str, tuple[str, TagPriority]] = {
    "completed": ("customer", TagPriority.HIGH),
    "confirming": ("ready_to_buy", TagPriority.CRITICAL),
    "processing": ("ready_to_buy", TagPriority.CRITICAL),
    "collecting_info": ("qualifying", TagPriority.HIGH),
}


def _tag(category: TagCategory, tag: str, priority: TagPriority) -> CustomerTag:
    return CustomerTag(category=category, tag=tag, priority=priority)


def _has(tags: Sequence[CustomerTag], name: str) -> bool:
    return any(t.tag == name for t in tags)


def _has_priority(tags: Sequence[CustomerTag], priority: TagPriority) -> bool:
    return any(t.priority == priority for t in tags)


class LeadTagger:
    """Pure mapping from one message's signals to triage tags and advice."""

    def buying_stage_tags(
        self, analysis: MessageAnalysis, order_status: Optional[str]
    ) -> list[CustomerTag]:
        if order_status:
            tag, priority = ORDER_STAGES.get(order_status, ("awareness", TagPriority.LOW))
        else:
            tag, priority = INTENT_STAGES.get(analysis.intent, ("awareness", TagPriority.LOW))
        return [_tag(TagCategory.BUYING_STAGE, tag, priority)]

    def interest_level_tags(
        self, lead_score: int, products: Sequence[Product]
    ) -> list[CustomerTag]:
        if lead_score >= 70:
            band = ("very_high", TagPriority.CRITICAL)
        elif lead_score >= 50:
            band = ("high", TagPriority.HIGH)
        elif lead_score >= 30:
            band = ("medium", TagPriority.MEDIUM)
        elif lead_score >= 15:
            band = ("low", TagPriority.LOW)
        else:
            band = ("very_low", TagPriority.LOW)
        tags = [_tag(TagCategory.INTEREST_LEVEL, *band)]

        if len(products) >= 3:
            tags.append(_tag(TagCategory.INTEREST_LEVEL, "exploring_multiple", TagPriority.MEDIUM))
        elif products:
            tags.append(_tag(TagCategory.INTEREST_LEVEL, "focused_interest", TagPriority.HIGH))
        return tags

    def customer_type_tags(
        self, analysis: MessageAnalysis, context: ConversationContext
    ) -> list[CustomerTag]:
        tags = []
        if context.previous_purchase:
            tags.append(_tag(TagCategory.CUSTOMER_TYPE, "returning_customer", TagPriority.HIGH))
        else:
            tags.append(_tag(TagCategory.CUSTOMER_TYPE, "new_prospect", TagPriority.MEDIUM))

        if context.interaction_count >= 5:
            tags.append(_tag(TagCategory.CUSTOMER_TYPE, "highly_engaged", TagPriority.HIGH))
        elif context.interaction_count >= 2:
            tags.append(_tag(TagCategory.CUSTOMER_TYPE, "engaged", TagPriority.MEDIUM))
        else:
            tags.append(_tag(TagCategory.CUSTOMER_TYPE, "first_time_visitor", TagPriority.LOW))

        categories = analysis.signal_categories()
        if "purchase_ready" in categories:
            tags.append(_tag(TagCategory.CUSTOMER_TYPE, "impulse_buyer", TagPriority.CRITICAL))
        elif "price_conscious" in categories:
            tags.append(_tag(TagCategory.CUSTOMER_TYPE, "price_conscious", TagPriority.MEDIUM))
        return tags

    def behavior_tags(self, analysis: MessageAnalysis) -> list[CustomerTag]:
        tags = []
        if analysis.urgency_indicators:
            tags.append(_tag(TagCategory.BEHAVIOR, "urgent_buyer", TagPriority.CRITICAL))
        if analysis.intent in (Intent.PRODUCT_INQUIRY, Intent.COMPARISON):
            tags.append(_tag(TagCategory.BEHAVIOR, "researcher", TagPriority.MEDIUM))
        if "decision_making" in analysis.signal_categories():
            tags.append(_tag(TagCategory.BEHAVIOR, "comparison_shopper", TagPriority.MEDIUM))
        if not analysis.contact_info.is_empty():
            tags.append(_tag(TagCategory.BEHAVIOR, "information_sharer", TagPriority.HIGH))
        if analysis.sentiment == Sentiment.POSITIVE:
            tags.append(_tag(TagCategory.BEHAVIOR, "positive_engagement", TagPriority.MEDIUM))
        elif analysis.sentiment == Sentiment.NEGATIVE:
            tags.append(_tag(TagCategory.BEHAVIOR, "needs_attention", TagPriority.HIGH))
        return tags

    def priority_tags(
        self, analysis: MessageAnalysis, lead_score: int, order_status: Optional[str]
    ) -> list[CustomerTag]:
        tags = []
        if order_status in ("confirming", "processing"):
            tags.append(_tag(TagCategory.PRIORITY, "immediate_action", TagPriority.CRITICAL))
        elif order_status == "collecting_info":
            tags.append(_tag(TagCategory.PRIORITY, "follow_up_needed", TagPriority.HIGH))

        if lead_score >= 60:
            tags.append(_tag(TagCategory.PRIORITY, "hot_lead", TagPriority.CRITICAL))
        elif lead_score >= 40:
            tags.append(_tag(TagCategory.PRIORITY, "warm_lead", TagPriority.HIGH))
        elif lead_score >= 20:
            tags.append(_tag(TagCategory.PRIORITY, "cold_lead", TagPriority.MEDIUM))

        if analysis.urgency_indicators:
            tags.append(_tag(TagCategory.PRIORITY, "time_sensitive", TagPriority.CRITICAL))
        return tags

    def segment_tags(self, products: Sequence[Product]) -> list[CustomerTag]:
        if not products:
            return []
        tags = []
        seen: list[str] = []
        for product in products:
            if product.category and product.category not in seen:
                seen.append(product.category)
                slug = product.category.lower().replace(" ", "_")
                tags.append(_tag(TagCategory.SEGMENT, f"{slug}_buyer", TagPriority.MEDIUM))

        average = sum(p.price for p in products) / len(products)
        if average >= PREMIUM_PRICE:
            tags.append(_tag(TagCategory.SEGMENT, "premium_buyer", TagPriority.HIGH))
        elif average >= MID_RANGE_PRICE:
            tags.append(_tag(TagCategory.SEGMENT, "mid_range_buyer", TagPriority.MEDIUM))
        else:
            tags.append(_tag(TagCategory.SEGMENT, "budget_buyer", TagPriority.MEDIUM))
        return tags

    def generate_tags(
        self,
        analysis: MessageAnalysis,
        lead_score: int,
        order_status: Optional[str],
        context: ConversationContext,
        products: Sequence[Product] = (),
    ) -> list[CustomerTag]:
        tags = [
            *self.buying_stage_tags(analysis, order_status),
            *self.interest_level_tags(lead_score, products),
            *self.customer_type_tags(analysis, context),
            *self.behavior_tags(analysis),
            *self.priority_tags(analysis, lead_score, order_status),
            *self.segment_tags(products),
        ]
        unique: list[CustomerTag] = []
        seen: set[tuple[TagCategory, str]] = set()
        for tag in tags:
            key = (tag.category, tag.tag)
            if key not in seen:
                seen.add(key)
                unique.append(tag)
        logger.debug("Generated %d tags", len(unique))
        return unique

    # --- Advice ---

    def next_best_action(self, tags: Sequence[CustomerTag]) -> str:
        for tag_name, action in NEXT_BEST_ACTIONS:
            if _has(tags, tag_name):
                return action
        return DEFAULT_NEXT_ACTION

    def recommended_actions(self, tags: Sequence[CustomerTag]) -> list[ActionRecommendation]:
        actions = []
        if _has_priority(tags, TagPriority.CRITICAL):
            actions.append(ActionRecommendation(
                action="immediate_response",
                reason="High-priority lead detected",
                timeframe="within 5 minutes",
            ))
        if _has(tags, "ready_to_buy"):
            actions.append(ActionRecommendation(
                action="process_order", reason="Customer ready to purchase", timeframe="immediate",
            ))
        if _has(tags, "follow_up_needed"):
            actions.append(ActionRecommendation(
                action="collect_information",
                reason="Missing customer details",
                timeframe="within 10 minutes",
            ))
        if _has(tags, "researcher"):
            actions.append(ActionRecommendation(
                action="provide_detailed_info",
                reason="Customer is gathering information",
                timeframe="within 30 minutes",
            ))
        return actions

    def build_profile(
        self,
        customer_id: str,
        tags: Sequence[CustomerTag],
        analysis: MessageAnalysis,
        lead_score: int,
        now: Optional[datetime] = None,
    ) -> CustomerProfile:
        def first(category: TagCategory) -> Optional[str]:
            return next((t.tag for t in tags if t.category == category), None)

        profile = CustomerProfile(
            customer_id=customer_id,
            buying_stage=first(TagCategory.BUYING_STAGE),
            interest_level=first(TagCategory.INTEREST_LEVEL),
            customer_type=first(TagCategory.CUSTOMER_TYPE),
            priority=first(TagCategory.PRIORITY),
            is_urgent=_has(tags, "urgent_buyer") or _has(tags, "time_sensitive"),
            is_price_conscious=_has(tags, "price_conscious"),
            is_returning_customer=_has(tags, "returning_customer"),
            lead_score=lead_score,
            sentiment=analysis.sentiment.value,
            confidence=analysis.confidence,
            recommended_actions=self.recommended_actions(tags),
            next_best_action=self.next_best_action(tags),
            updated_at=now or utc_now(),
        )
        profile.sales_recommendations = self.sales_recommendations(tags, profile)
        return profile

    def sales_recommendations(
        self, tags: Sequence[CustomerTag], profile: CustomerProfile
    ) -> SalesRecommendations:
        if _has(tags, "researcher"):
            approach = "educational"
        elif _has(tags, "price_conscious"):
            approach = "value_focused"
        elif _has(tags, "urgent_buyer"):
            approach = "direct_close"
        else:
            approach = "consultative"

        if profile.sentiment == Sentiment.POSITIVE.value:
            tone = "enthusiastic"
        elif profile.is_urgent:
            tone = "responsive"
        elif profile.is_price_conscious:
            tone = "value_oriented"
        else:
            tone = "professional"

        if _has(tags, "price_conscious"):
            offer = "discount_focused"
        elif _has(tags, "premium_buyer"):
            offer = "quality_focused"
        elif _has(tags, "urgent_buyer"):
            offer = "urgency_based"
        else:
            offer = "benefit_focused"

        if _has_priority(tags, TagPriority.CRITICAL):
            timing = "immediate"
        elif _has_priority(tags, TagPriority.HIGH):
            timing = "within_hour"
        elif _has_priority(tags, TagPriority.MEDIUM):
            timing = "within_day"
        else:
            timing = "within_week"

        return SalesRecommendations(
            sales_approach=approach,
            messaging_tone=tone,
            offer_strategy=offer,
            follow_up_timing=timing,
        )
