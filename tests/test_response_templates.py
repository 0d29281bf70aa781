"""Tests for customer-facing response text and variant pickers."""

import pytest

from chatcommerce.prompts.response_picker import FirstPicker, RandomPicker, RoundRobinPicker
from chatcommerce.prompts.response_templates import (
    DEFAULT_QUICK_REPLIES,
    build_intent_response,
    build_missing_info_request,
    build_order_confirmation,
    quick_replies_for,
)
from chatcommerce.schemas.analysis_schema import Intent
from chatcommerce.schemas.order_schema import OrderState
from tests.conftest import make_product, make_session

CHAIR = make_product("p5", "Shiatsu Massage Chair", 15999, "Massage Chairs", 3)


class TestPickers:
    def test_first(self):
        assert FirstPicker().pick(["a", "b"]) == "a"

    def test_round_robin(self):
        picker = RoundRobinPicker()
        assert [picker.pick(["a", "b"]) for _ in range(3)] == ["a", "b", "a"]

    def test_seeded_random_is_reproducible(self):
        options = ["a", "b", "c", "d"]
        first = [RandomPicker(3).pick(options) for _ in range(5)]
        second = [RandomPicker(3).pick(options) for _ in range(5)]
        assert first == second

    @pytest.mark.parametrize("picker", [FirstPicker(), RandomPicker(), RoundRobinPicker()])
    def test_empty_options(self, picker):
        with pytest.raises(ValueError):
            picker.pick([])


class TestQuickReplies:
    def test_known_action(self):
        titles = [r["title"] for r in quick_replies_for("await_confirmation")]
        assert titles == ["Yes, confirm", "Cancel order"]

    def test_default(self):
        assert quick_replies_for(None) == DEFAULT_QUICK_REPLIES
        assert quick_replies_for("unknown_action") == DEFAULT_QUICK_REPLIES

    def test_returned_lists_are_copies(self):
        replies = quick_replies_for(None)
        replies[0]["title"] = "changed"
        assert DEFAULT_QUICK_REPLIES[0]["title"] == "View Products"


class TestOrderText:
    def test_confirmation_lists_items_and_total(self, business):
        session = make_session(OrderState.CONFIRMING, name="Juan", phone="09171234567")
        text = build_order_confirmation(session, business)
        assert "Customer: Juan" in text
        assert "Contact: 09171234567" in text
        assert f"Total: {business.currency_symbol}350" in text
        assert "**" not in text

    def test_missing_info_joins_fields(self):
        text = build_missing_info_request(["your name", "phone number or email"])
        assert text == (
            "Almost there! I just need your name and phone number or email to complete your order."
        )


class TestIntentResponses:
    def test_greeting_returning(self, business):
        text = build_intent_response(Intent.GREETING, [], business, FirstPicker(), returning=True)
        assert text.startswith(f"Welcome back to {business.shop_name}")

    def test_greeting_new(self, business):
        text = build_intent_response(Intent.GREETING, [], business, FirstPicker())
        assert text == f"Welcome to {business.shop_name}! How can I help you today?"

    def test_price_with_low_stock(self, business):
        text = build_intent_response(Intent.PRICE_INQUIRY, [CHAIR], business, FirstPicker())
        assert f"priced at {business.currency_symbol}15,999" in text
        assert "only 3 units left" in text

    def test_price_without_product(self, business):
        text = build_intent_response(Intent.PRICE_INQUIRY, [], business, FirstPicker())
        assert "Which product" in text

    def test_out_of_stock_purchase(self, business):
        sold_out = make_product("p9", "Rose Oil", 400, stock=0)
        text = build_intent_response(Intent.PURCHASE_INTENT, [sold_out], business, FirstPicker())
        assert "out of stock" in text

    def test_comparison_needs_two(self, business):
        lavender = make_product()
        text = build_intent_response(
            Intent.COMPARISON, [lavender, CHAIR], business, FirstPicker()
        )
        assert "Lavender Oil" in text and "Shiatsu Massage Chair" in text
        single = build_intent_response(Intent.COMPARISON, [lavender], business, FirstPicker())
        assert "Which products" in single

    def test_general(self, business):
        text = build_intent_response(Intent.GENERAL, [], business, FirstPicker())
        assert text.startswith("I'd be happy to help you!")
