"""
Guardrails around the message pipeline.

Two layers, each checking a different concern:
1. InputGuardrail    rejects unusable inbound messages before any state is read
2. ResponseGuardrail blocks replies that would leak internals to the customer

Composed into a GuardrailPipeline for pre-pipeline and post-pipeline checks.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from chatcommerce.errors import InvalidInputError
from chatcommerce.prompts.response_templates import FALLBACK_RESPONSE

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000


@dataclass
class GuardrailResult:
    """Outcome of a single guardrail check."""
    passed: bool
    violation_type: Optional[str] = None
    message: Optional[str] = None
    severity: str = "warning"  # "warning" | "block"


class InputGuardrail:
    """Validates the (customer_id, text) pair of an inbound message."""

    def __init__(self, max_length: int = MAX_MESSAGE_LENGTH) -> None:
        self.max_length = max_length

    def check(self, customer_id: Optional[str], text: Optional[str]) -> GuardrailResult:
        if not customer_id or not str(customer_id).strip():
            return GuardrailResult(
                passed=False,
                violation_type="missing_customer_id",
                message="Message has no customer id.",
                severity="block",
            )
        if text is None or not text.strip():
            return GuardrailResult(
                passed=False,
                violation_type="empty_message",
                message="Message text is empty.",
                severity="block",
            )
        if len(text) > self.max_length:
            return GuardrailResult(
                passed=False,
                violation_type="message_too_long",
                message=f"Message exceeds {self.max_length} characters.",
                severity="block",
            )
        return GuardrailResult(passed=True)

    def validate(self, customer_id: Optional[str], text: Optional[str]) -> None:
        """Raise InvalidInputError if the message must not enter the pipeline."""
        result = self.check(customer_id, text)
        if not result.passed:
            raise InvalidInputError(result.message)


class ResponseGuardrail:
    """Keeps stack traces, exception names and internal ids out of replies."""

    LEAK_PATTERNS = [
        ("stack_trace", re.compile(r"Traceback \(most recent call last\)|File \"[^\"]+\", line \d+")),
        ("exception_name", re.compile(r"\b[A-Z][A-Za-z]*(?:Error|Exception)\b")),
        ("internal_id", re.compile(r"\border_[\w.-]+_\d{10,}\b")),
    ]

    def check_response(self, text: str) -> GuardrailResult:
        for violation, pattern in self.LEAK_PATTERNS:
            if pattern.search(text):
                logger.warning("Response blocked: %s", violation)
                return GuardrailResult(
                    passed=False,
                    violation_type=violation,
                    message=f"Response leaks {violation.replace('_', ' ')}.",
                    severity="block",
                )
        return GuardrailResult(passed=True)

    def sanitize(self, text: str) -> str:
        """Return text unchanged, or the generic fallback if it leaks internals."""
        return text if self.check_response(text).passed else FALLBACK_RESPONSE


class GuardrailPipeline:
    """Composes the input and response guardrails."""

    def __init__(self, max_length: int = MAX_MESSAGE_LENGTH) -> None:
        self.input = InputGuardrail(max_length)
        self.response = ResponseGuardrail()

    def validate_input(self, customer_id: Optional[str], text: Optional[str]) -> None:
        self.input.validate(customer_id, text)

    def sanitize_response(self, text: str) -> str:
        return self.response.sanitize(text)
