"""
Additive lead scoring.

Every keyword table in the scoring rules adds its fixed points once per
keyword found in the message. Matches are not de-duplicated within a
category, so near-synonyms stack. The sum is clamped to [0, 100] only
at the very end, letting the sentiment penalty offset positive points
first.

Usage:
    scorer = LeadScorer(rules.scoring)
    score = scorer.score(message, analysis, context)
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any

from chatcommerce.rules.loader import ScoringRules, WeightedKeywords
from chatcommerce.schemas.analysis_schema import MessageAnalysis
from chatcommerce.schemas.customer_schema import ConversationContext
from chatcommerce.utils import find_keywords

logger = logging.getLogger(__name__)

MIN_SCORE = 0
MAX_SCORE = 100


@dataclass
class ScoreBreakdown:
    """Per-step point contributions before clamping."""
    intent: int = 0
    signals: int = 0
    urgency: int = 0
    decision_stage: int = 0
    sentiment: int = 0
    context: int = 0
    products: int = 0
    qualification: int = 0
    contact_sharing: int = 0
    order_processing: int = 0

    @property
    def raw_total(self) -> int:
        return sum(asdict(self).values())

    @property
    def total(self) -> int:
        return max(MIN_SCORE, min(MAX_SCORE, self.raw_total))

    def to_dict(self) -> dict[str, Any]:
        return {**asdict(self), "raw_total": self.raw_total, "total": self.total}


def _keyword_points(message: str, table: WeightedKeywords) -> int:
    return table.points * len(find_keywords(message, table.keywords))


class LeadScorer:
    """Pure scoring function over a message, its analysis and the prior context."""

    def __init__(self, rules: ScoringRules) -> None:
        self.rules = rules

    def breakdown(
        self, message: str, analysis: MessageAnalysis, context: ConversationContext
    ) -> ScoreBreakdown:
        rules = self.rules
        result = ScoreBreakdown()
        result.intent = rules.intent_points.get(
            analysis.intent.value, rules.intent_points.get("general", 0)
        )
        result.signals = sum(_keyword_points(message, c) for c in rules.signal_categories)
        result.urgency = _keyword_points(message, rules.urgency)
        result.decision_stage = sum(_keyword_points(message, s) for s in rules.decision_stages)
        result.sentiment = rules.sentiment_points.get(analysis.sentiment.value, 0)

        bonuses = rules.context
        if context.interaction_count > bonuses.engaged_after:
            result.context += bonuses.engaged_bonus
        if context.interaction_count > bonuses.very_engaged_after:
            result.context += bonuses.very_engaged_bonus
        if context.previous_purchase:
            result.context += bonuses.previous_purchase_bonus

        result.products = rules.product_mention_points * len(analysis.mentioned_products)
        result.qualification = _keyword_points(message, rules.qualification)
        result.contact_sharing = _keyword_points(message, rules.contact_sharing)
        result.order_processing = _keyword_points(message, rules.order_processing)
        return result

    def score(
        self, message: str, analysis: MessageAnalysis, context: ConversationContext
    ) -> int:
        """Lead score in [0, 100]. Same inputs always give the same score."""
        result = self.breakdown(message, analysis, context)
        logger.debug("Lead score %d (raw %d): %s", result.total, result.raw_total, result)
        return result.total


def determine_urgency(analysis: MessageAnalysis, lead_score: int) -> str:
    """Map score and urgency indicators to high / medium / low."""
    indicators = len(analysis.urgency_indicators)
    if lead_score >= 25 or indicators >= 2:
        return "high"
    if lead_score >= 15 or indicators >= 1:
        return "medium"
    return "low"
