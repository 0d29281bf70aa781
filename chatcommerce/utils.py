"""Shared utilities used across the chat-commerce pipeline."""

import re
from datetime import datetime, timezone
from typing import Iterable


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("0917 123 4567")
        '09171234567'
        >>> normalize_phone("+63 (917) 123-4567")
        '+639171234567'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


INFLECTION_SUFFIX = r"(?:s|es|d|ed|ing)?"
MIN_INFLECTED_WORD = 3


def compile_patterns(phrases: Iterable[str], inflections: bool = False) -> re.Pattern[str]:
    """Compile a list of phrases into a single word-boundary regex.

    With ``inflections``, a phrase whose last word has at least three
    letters also matches with a plural or verb ending ("prices",
    "ordered", "buying"). Shorter words stay exact so "hi" never
    matches "his".

    Examples:
        >>> bool(compile_patterns(["price"], inflections=True).search("Your prices?"))
        True
        >>> bool(compile_patterns(["hi"], inflections=True).search("his order"))
        False
    """
    alternatives = []
    for phrase in phrases:
        escaped = re.escape(phrase)
        if inflections and len(phrase.split()[-1]) >= MIN_INFLECTED_WORD:
            escaped += INFLECTION_SUFFIX
        alternatives.append(escaped)
    return re.compile(r"\b(?:" + "|".join(alternatives) + r")\b", re.IGNORECASE)


def find_keywords(text: str, keywords: Iterable[str]) -> list[str]:
    """Return every keyword contained in text, case-insensitive, in keyword order."""
    lower = text.lower()
    return [kw for kw in keywords if kw in lower]


def format_price(amount: float) -> str:
    """Format a price with thousands separators, dropping a zero fraction.

    Examples:
        >>> format_price(1250)
        '1,250'
        >>> format_price(99.5)
        '99.50'
    """
    if float(amount).is_integer():
        return f"{int(amount):,}"
    return f"{amount:,.2f}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
