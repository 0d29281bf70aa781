"""
Versioned keyword rule tables.

The rule-based analyzer, the lead scorer and the order flow all read
their keyword lists and point values from a JSON rule file loaded once
at startup. Tuning a weight or adding a keyword is a data change, not a
code change.

Usage:
    rules = load_rules()
    rules.scoring.intent_points["price_inquiry"]  # 30
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

RULES_VERSION = 1
DEFAULT_RULES_PATH = Path(__file__).with_name("keyword_rules_v1.json")

REQUIRED_SECTIONS = (
    "intents",
    "sentiment",
    "urgency_keywords",
    "buying_signals",
    "specificity_indicators",
    "order",
    "scoring",
)


@dataclass(frozen=True)
class WeightedKeywords:
    """A keyword list that adds a fixed number of points per match."""
    name: str
    points: int
    keywords: tuple[str, ...]


@dataclass(frozen=True)
class ContextBonuses:
    engaged_after: int
    engaged_bonus: int
    very_engaged_after: int
    very_engaged_bonus: int
    previous_purchase_bonus: int


@dataclass(frozen=True)
class ScoringRules:
    intent_points: Mapping[str, int]
    signal_categories: tuple[WeightedKeywords, ...]
    urgency: WeightedKeywords
    decision_stages: tuple[WeightedKeywords, ...]
    sentiment_points: Mapping[str, int]
    context: ContextBonuses
    product_mention_points: int
    qualification: WeightedKeywords
    contact_sharing: WeightedKeywords
    order_processing: WeightedKeywords


@dataclass(frozen=True)
class OrderRules:
    strong_signals: tuple[str, ...]
    intents: tuple[str, ...]
    confirmation_keywords: tuple[str, ...]
    cancellation_keywords: tuple[str, ...]


@dataclass(frozen=True)
class RuleSet:
    """All keyword tables, in classification order where order matters."""
    version: int
    intents: tuple[tuple[str, tuple[str, ...]], ...]
    positive_words: tuple[str, ...]
    negative_words: tuple[str, ...]
    urgency_keywords: tuple[str, ...]
    buying_signals: tuple[tuple[str, tuple[str, ...]], ...]
    specificity_indicators: tuple[str, ...]
    order: OrderRules
    scoring: ScoringRules


def _weighted(raw: Mapping[str, Any]) -> WeightedKeywords:
    return WeightedKeywords(
        name=raw["name"],
        points=int(raw["points"]),
        keywords=tuple(k.lower() for k in raw["keywords"]),
    )


def _categories(raw: list) -> tuple[tuple[str, tuple[str, ...]], ...]:
    return tuple((name, tuple(k.lower() for k in keywords)) for name, keywords in raw)


def parse_rules(data: Mapping[str, Any]) -> RuleSet:
    """Build a RuleSet from a decoded rule document.

    Raises:
        ValueError: If a section is missing or the version is unsupported.
    """
    missing = [section for section in REQUIRED_SECTIONS if section not in data]
    if missing:
        raise ValueError(f"Rule file is missing sections: {', '.join(missing)}")
    version = data.get("version")
    if version != RULES_VERSION:
        raise ValueError(f"Unsupported rule file version {version!r}, expected {RULES_VERSION}")

    scoring = data["scoring"]
    try:
        scoring_rules = ScoringRules(
            intent_points=dict(scoring["intent_points"]),
            signal_categories=tuple(_weighted(c) for c in scoring["signal_categories"]),
            urgency=_weighted(scoring["urgency"]),
            decision_stages=tuple(_weighted(s) for s in scoring["decision_stages"]),
            sentiment_points=dict(scoring["sentiment_points"]),
            context=ContextBonuses(**scoring["context"]),
            product_mention_points=int(scoring["product_mention_points"]),
            qualification=_weighted(scoring["qualification"]),
            contact_sharing=_weighted(scoring["contact_sharing"]),
            order_processing=_weighted(scoring["order_processing"]),
        )
        order = data["order"]
        order_rules = OrderRules(
            strong_signals=tuple(order["strong_signals"]),
            intents=tuple(order["intents"]),
            confirmation_keywords=tuple(order["confirmation_keywords"]),
            cancellation_keywords=tuple(order["cancellation_keywords"]),
        )
        sentiment = data["sentiment"]
        positive_words = tuple(sentiment["positive"])
        negative_words = tuple(sentiment["negative"])
    except KeyError as exc:
        raise ValueError(f"Rule file is missing key {exc}") from None

    return RuleSet(
        version=version,
        intents=_categories(data["intents"]),
        positive_words=positive_words,
        negative_words=negative_words,
        urgency_keywords=tuple(data["urgency_keywords"]),
        buying_signals=_categories(data["buying_signals"]),
        specificity_indicators=tuple(data["specificity_indicators"]),
        order=order_rules,
        scoring=scoring_rules,
    )


def load_rules(path: Optional[str] = None) -> RuleSet:
    """Load the rule tables from ``path`` or the bundled default file."""
    rules_path = Path(path) if path else DEFAULT_RULES_PATH
    data = json.loads(rules_path.read_text(encoding="utf-8"))
    rules = parse_rules(data)
    logger.info("Loaded keyword rules v%d from %s", rules.version, rules_path.name)
    return rules
