"""Tests for input validation and response leak guardrails."""

import pytest

from chatcommerce.conversation.guardrails import (
    MAX_MESSAGE_LENGTH,
    GuardrailPipeline,
    InputGuardrail,
    ResponseGuardrail,
)
from chatcommerce.errors import InvalidInputError
from chatcommerce.prompts.response_templates import FALLBACK_RESPONSE


class TestInputGuardrail:
    def setup_method(self):
        self.guard = InputGuardrail()

    def test_valid_message(self):
        assert self.guard.check("psid-1", "how much is the diffuser?").passed is True

    @pytest.mark.parametrize("customer_id", [None, "", "   "])
    def test_missing_customer_id(self, customer_id):
        result = self.guard.check(customer_id, "hello")
        assert result.passed is False
        assert result.violation_type == "missing_customer_id"
        assert result.severity == "block"

    @pytest.mark.parametrize("text", [None, "", " \n\t "])
    def test_empty_message(self, text):
        assert self.guard.check("psid-1", text).violation_type == "empty_message"

    def test_length_limit(self):
        assert self.guard.check("psid-1", "a" * MAX_MESSAGE_LENGTH).passed is True
        result = self.guard.check("psid-1", "a" * (MAX_MESSAGE_LENGTH + 1))
        assert result.violation_type == "message_too_long"

    def test_custom_limit(self):
        assert InputGuardrail(max_length=5).check("psid-1", "toolong").passed is False

    def test_validate_raises(self):
        with pytest.raises(InvalidInputError):
            self.guard.validate("psid-1", "")


class TestResponseGuardrail:
    def setup_method(self):
        self.guard = ResponseGuardrail()

    def test_clean_response_passes(self):
        result = self.guard.check_response("Lavender Oil is priced at ₱350.")
        assert result.passed is True

    @pytest.mark.parametrize("text,violation", [
        ("Traceback (most recent call last):\n  boom", "stack_trace"),
        ('File "/app/chatcommerce/main.py", line 12', "stack_trace"),
        ("Sorry, KeyError while loading", "exception_name"),
        ("ValidationException raised", "exception_name"),
        ("Session order_psid-1_1741996800000 updated", "internal_id"),
    ])
    def test_leaks_blocked(self, text, violation):
        result = self.guard.check_response(text)
        assert result.passed is False
        assert result.violation_type == violation

    def test_order_number_is_not_internal(self):
        assert self.guard.check_response("Order #ORD-800000-A1B").passed is True

    def test_sanitize(self):
        assert self.guard.sanitize("All good!") == "All good!"
        assert self.guard.sanitize("RuntimeError: db down") == FALLBACK_RESPONSE


class TestGuardrailPipeline:
    def test_validate_input(self):
        pipeline = GuardrailPipeline(max_length=10)
        pipeline.validate_input("psid-1", "short")
        with pytest.raises(InvalidInputError):
            pipeline.validate_input("psid-1", "far too long for this")

    def test_sanitize_response(self):
        pipeline = GuardrailPipeline()
        assert pipeline.sanitize_response("TypeError") == FALLBACK_RESPONSE
