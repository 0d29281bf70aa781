"""
Keyword-rule message analyzer.

Classifies intent and sentiment from the versioned rule tables and pulls
contact and order details out of free text with regular expressions.
Used directly in ``rule`` mode and as the degraded fallback whenever the
LLM analyzer fails.
"""

import logging
import re
from typing import Optional

from chatcommerce.rules.loader import RuleSet
from chatcommerce.schemas.analysis_schema import (
    BuyingSignal,
    ContactInfo,
    Intent,
    MessageAnalysis,
    OrderDetails,
    Sentiment,
)
from chatcommerce.schemas.business_schema import BusinessConfig
from chatcommerce.tools.catalog import ProductCatalog
from chatcommerce.utils import compile_patterns, find_keywords, normalize_phone

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.5
MAX_CONFIDENCE = 0.95
MAX_QUANTITY = 999
MIN_ADDRESS_LENGTH = 5
MAX_NAME_WORDS = 3

MOBILE_PATTERN = re.compile(r"(?:\+63|63|0)[\s-]?9\d{2}[\s-]?\d{3}[\s-]?\d{4}")
LANDLINE_PATTERN = re.compile(r"(?:\+63|63|0)[\s-]?\d{1,2}[\s-]?\d{3}[\s-]?\d{4}")
EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")

NAME_PATTERNS = [
    re.compile(r"\bmy name is\s+([A-Za-z][A-Za-z .'-]*)", re.IGNORECASE),
    re.compile(r"\bname is\s+([A-Za-z][A-Za-z .'-]*)", re.IGNORECASE),
    re.compile(r"\bname\s*:\s*([A-Za-z][A-Za-z .'-]*)", re.IGNORECASE),
    re.compile(r"\bI(?:'m| am)\s+([A-Z][A-Za-z'-]*(?:\s+[A-Z][A-Za-z'-]*)*)"),
]
NAME_STOP_WORDS = frozenset(
    {"and", "my", "phone", "email", "from", "here", "at", "number", "address"}
)

QUANTITY_PATTERNS = [
    re.compile(r"(\d+)\s*(?:pieces?|pcs?|items?)\b", re.IGNORECASE),
    re.compile(r"quantity[:\s]*(\d+)", re.IGNORECASE),
    re.compile(r"\bi want (\d+)\b", re.IGNORECASE),
    re.compile(r"\border (\d+)\b", re.IGNORECASE),
]
VARIANT_PATTERNS = [
    re.compile(r"\bsize[:\s]+([A-Za-z0-9]+)", re.IGNORECASE),
    re.compile(r"\bcolou?r[:\s]+([A-Za-z]+)", re.IGNORECASE),
    re.compile(r"\bvariant[:\s]+([A-Za-z0-9 ]+?)(?:[,.]|$)", re.IGNORECASE),
]
ADDRESS_PATTERN = re.compile(
    r"\b(?:address|deliver to|location)(?:\s+is)?[:\s]+(.+)", re.IGNORECASE
)


def _clean_name(raw: str) -> Optional[str]:
    words = []
    for word in raw.replace(",", " ").split():
        if word.lower().strip(".") in NAME_STOP_WORDS:
            break
        words.append(word.strip("."))
        if len(words) == MAX_NAME_WORDS:
            break
    name = " ".join(w for w in words if w)
    return name.title() if name else None


def extract_contact_info(text: str) -> ContactInfo:
    """Pull a name, phone number and e-mail address out of a message."""
    phone_match = MOBILE_PATTERN.search(text) or LANDLINE_PATTERN.search(text)
    email_match = EMAIL_PATTERN.search(text)

    name = None
    for pattern in NAME_PATTERNS:
        match = pattern.search(text)
        if match:
            name = _clean_name(match.group(1))
            if name:
                break

    return ContactInfo(
        name=name,
        phone=normalize_phone(phone_match.group(0)) if phone_match else None,
        email=email_match.group(0).lower() if email_match else None,
    )


def extract_order_details(text: str) -> OrderDetails:
    """Pull quantity, variant and delivery address out of a message."""
    quantity = None
    for pattern in QUANTITY_PATTERNS:
        match = pattern.search(text)
        if match:
            value = int(match.group(1))
            if 0 < value <= MAX_QUANTITY:
                quantity = value
            break

    variant = None
    for pattern in VARIANT_PATTERNS:
        match = pattern.search(text)
        if match:
            variant = match.group(1).strip()
            break

    address = None
    match = ADDRESS_PATTERN.search(text)
    if match and len(match.group(1).strip()) >= MIN_ADDRESS_LENGTH:
        address = match.group(1).strip()

    return OrderDetails(quantity=quantity, variant=variant, address=address)


class RuleBasedAnalyzer:
    """Analyzes messages using the keyword tables of a RuleSet."""

    def __init__(self, rules: RuleSet) -> None:
        self.rules = rules
        self._intent_patterns = [
            (name, compile_patterns(keywords, inflections=True)) for name, keywords in rules.intents
        ]
        self._positive = compile_patterns(rules.positive_words, inflections=True)
        self._negative = compile_patterns(rules.negative_words, inflections=True)

    def classify_intent(self, text: str) -> Intent:
        """First intent, in rule order, with a keyword on word boundaries."""
        for name, pattern in self._intent_patterns:
            if pattern.search(text):
                return Intent(name)
        return Intent.GENERAL

    def classify_sentiment(self, text: str) -> Sentiment:
        positive = len(self._positive.findall(text))
        negative = len(self._negative.findall(text))
        if positive > negative:
            return Sentiment.POSITIVE
        if negative > positive:
            return Sentiment.NEGATIVE
        return Sentiment.NEUTRAL

    def find_buying_signals(self, text: str) -> list[BuyingSignal]:
        return [
            BuyingSignal(category=category, keyword=keyword)
            for category, keywords in self.rules.buying_signals
            for keyword in find_keywords(text, keywords)
        ]

    def estimate_confidence(self, text: str) -> float:
        """Confidence grows with message length and specific vocabulary."""
        words = len(text.split())
        confidence = BASE_CONFIDENCE
        if words > 5:
            confidence += 0.2
        if words > 10:
            confidence += 0.1
        confidence += 0.05 * len(find_keywords(text, self.rules.specificity_indicators))
        return min(confidence, MAX_CONFIDENCE)

    async def analyze(self, text: str, business: BusinessConfig) -> MessageAnalysis:
        catalog = ProductCatalog(business.products)
        analysis = MessageAnalysis(
            intent=self.classify_intent(text),
            sentiment=self.classify_sentiment(text),
            confidence=self.estimate_confidence(text),
            urgency_indicators=find_keywords(text, self.rules.urgency_keywords),
            buying_signals=self.find_buying_signals(text),
            contact_info=extract_contact_info(text),
            order_details=extract_order_details(text),
            mentioned_products=[p.name for p in catalog.find_mentioned(text)],
        )
        logger.debug(
            "Rule analysis: intent=%s sentiment=%s confidence=%.2f",
            analysis.intent.value, analysis.sentiment.value, analysis.confidence,
        )
        return analysis
