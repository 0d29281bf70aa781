"""Tests for the order-collection flow."""

import re

import pytest

from chatcommerce.conversation.order_processor import suggest_order_action
from chatcommerce.errors import OrderCreationError
from chatcommerce.schemas.analysis_schema import Intent
from chatcommerce.schemas.order_schema import OrderState
from tests.conftest import (
    NOW,
    make_analysis,
    make_product,
    make_session,
    minutes_later,
)

LAVENDER = make_product()
DIFFUSER = make_product("p3", "Bamboo Diffuser", 1250, "Diffusers", 8, ["diffuser"])


def run(processor, business, session, message, analysis, products=(), score=50, now=NOW):
    return processor.process(
        "cust-1", session, message, analysis, list(products), business, score, now
    )


class TestFullOrderFlow:
    def test_buy_share_contact_confirm(self, processor, business):
        first = run(
            processor, business, None, "I want to buy the Lavender Oil",
            make_analysis(intent=Intent.PURCHASE_INTENT, products=["Lavender Oil"]),
            [LAVENDER], score=83,
        )
        assert first.created is True
        assert first.session.state == OrderState.COLLECTING_INFO
        assert first.order_status == "collecting_info"
        assert first.next_action == "collect_contact_info"
        assert "Lavender Oil" in first.response

        second = run(
            processor, business, first.session, "My name is Juan, phone 09171234567",
            make_analysis(name="Juan", phone="09171234567"), now=minutes_later(1),
        )
        assert second.session.state == OrderState.CONFIRMING
        assert second.response.startswith("Order Confirmation")
        assert second.order_total == 350
        assert second.next_action == "await_confirmation"

        third = run(processor, business, second.session, "yes", make_analysis(), now=minutes_later(2))
        assert third.session.state == OrderState.COMPLETED
        assert third.order is not None
        assert third.order.total_amount == 350
        assert third.order.customer_name == "Juan"
        assert third.order.session_id == first.session.id
        assert re.fullmatch(r"ORD-\d{6}-[0-9A-Z]{3}", third.order.order_number)
        assert third.order.order_number in third.response
        assert third.next_action == "order_fulfilled"
        assert [h.state for h in third.session.history] == [
            OrderState.INQUIRY,
            OrderState.COLLECTING_INFO,
            OrderState.CONFIRMING,
            OrderState.PROCESSING,
            OrderState.COMPLETED,
        ]

    def test_processing_never_mutates_input_session(self, processor, business):
        session = make_session(OrderState.CONFIRMING, name="Juan")
        outcome = run(processor, business, session, "yes", make_analysis())
        assert outcome.session.state == OrderState.COMPLETED
        assert session.state == OrderState.CONFIRMING

    def test_contact_in_first_message_skips_to_confirming(self, processor, business):
        outcome = run(
            processor, business, None, "I want to buy the Lavender Oil, I'm Juan",
            make_analysis(intent=Intent.PURCHASE_INTENT, name="Juan"), [LAVENDER],
        )
        assert outcome.session.state == OrderState.CONFIRMING

    def test_quantity_updates_single_line_session(self, processor, business):
        outcome = run(
            processor, business, None, "I want to buy 2 pcs of Lavender Oil",
            make_analysis(intent=Intent.PURCHASE_INTENT, quantity=2), [LAVENDER],
        )
        assert outcome.session.products[0].quantity == 2
        assert outcome.session.total_amount == 700


class TestInquiry:
    def test_strong_signal_without_product_asks_which(self, processor, business):
        outcome = run(
            processor, business, None, "I want to buy something",
            make_analysis(intent=Intent.PURCHASE_INTENT),
        )
        assert outcome.session.state == OrderState.INQUIRY
        assert outcome.next_action == "select_products"
        assert "Which product" in outcome.response

    def test_product_named_later_is_added(self, processor, business):
        session = make_session(products=[])
        outcome = run(
            processor, business, session, "the diffuser please", make_analysis(), [DIFFUSER],
        )
        assert outcome.created is False
        assert outcome.session.state == OrderState.COLLECTING_INFO
        assert [item.product_id for item in outcome.session.products] == ["p3"]


class TestCollectingInfo:
    def test_partial_contact_lists_missing(self, processor, business):
        session = make_session(OrderState.COLLECTING_INFO)
        outcome = run(processor, business, session, "I'm Juan", make_analysis(name="Juan"))
        assert outcome.session.state == OrderState.COLLECTING_INFO
        assert outcome.missing_fields == ["phone number or email"]
        assert outcome.next_action == "collect_missing_info"
        assert "phone number or email" in outcome.response

    def test_email_completes_contact(self, processor, business):
        session = make_session(OrderState.COLLECTING_INFO, name="Juan")
        outcome = run(
            processor, business, session, "juan@example.com", make_analysis(email="juan@example.com")
        )
        assert outcome.session.state == OrderState.CONFIRMING


class TestConfirming:
    def test_cancel(self, processor, business):
        session = make_session(OrderState.CONFIRMING, name="Juan")
        outcome = run(processor, business, session, "no, cancel", make_analysis())
        assert outcome.session.state == OrderState.CANCELLED
        assert outcome.order is None
        assert outcome.next_action == "continue_browsing"

    @pytest.mark.parametrize("message", ["okay", "Yep, go for it"])
    def test_casual_confirmation(self, processor, business, message):
        session = make_session(OrderState.CONFIRMING, name="Juan")
        outcome = run(processor, business, session, message, make_analysis())
        assert outcome.session.state == OrderState.COMPLETED
        assert outcome.order is not None

    @pytest.mark.parametrize("message", ["maybe", "hmm what about shipping?"])
    def test_neither_keyword_asks_again(self, processor, business, message):
        session = make_session(OrderState.CONFIRMING, name="Juan")
        outcome = run(processor, business, session, message, make_analysis())
        assert outcome.session.state == OrderState.CONFIRMING
        assert outcome.next_action == "await_confirmation"
        assert "Just to be sure" in outcome.response

    def test_both_keywords_are_unclear(self, processor, business):
        session = make_session(OrderState.CONFIRMING, name="Juan")
        outcome = run(processor, business, session, "yes, no wait, cancel", make_analysis())
        assert outcome.session.state == OrderState.CONFIRMING
        assert outcome.order is None

    def test_confirm_keyword_needs_word_boundary(self, processor, business):
        session = make_session(OrderState.CONFIRMING, name="Juan")
        outcome = run(processor, business, session, "yesterday I asked", make_analysis())
        assert outcome.session.state == OrderState.CONFIRMING

    def test_session_left_in_processing_is_recovered(self, processor, business):
        session = make_session(OrderState.PROCESSING, name="Juan")
        outcome = run(processor, business, session, "yes", make_analysis())
        assert outcome.session.state == OrderState.COMPLETED
        assert outcome.order is not None

    def test_empty_session_cannot_become_order(self, processor, business):
        session = make_session(OrderState.CONFIRMING, products=[], name="Juan")
        with pytest.raises(OrderCreationError):
            run(processor, business, session, "yes", make_analysis())


class TestNoSession:
    def test_price_question_without_product_opens_nothing(self, processor, business):
        outcome = run(
            processor, business, None, "how much is it?",
            make_analysis(intent=Intent.PRICE_INQUIRY), score=47,
        )
        assert outcome.session is None
        assert outcome.response is None
        assert outcome.next_action == "product_discovery"

    def test_general_interest_in_product_is_nurtured(self, processor, business):
        outcome = run(processor, business, None, "nice diffuser", make_analysis(), [DIFFUSER])
        assert outcome.session is None
        assert outcome.next_action == "qualify_interest"
        assert "Bamboo Diffuser" in outcome.response

    def test_finished_session_is_replaced_not_reopened(self, processor, business):
        old = make_session(OrderState.CANCELLED)
        outcome = run(
            processor, business, old, "I want to buy the Lavender Oil",
            make_analysis(intent=Intent.PURCHASE_INTENT), [LAVENDER], now=minutes_later(10),
        )
        assert outcome.created is True
        assert outcome.session.id != old.id
        assert old.state == OrderState.CANCELLED


class TestOrderIntent:
    def test_ready_with_product(self, processor):
        intent = processor.detect_order_intent(
            make_analysis(intent=Intent.AVAILABILITY_CHECK), [LAVENDER], 60
        )
        assert intent.is_order_ready is True
        assert intent.confidence == pytest.approx(0.9)
        assert intent.suggested_action == "process_order"

    def test_not_ready_for_non_order_intent(self, processor):
        intent = processor.detect_order_intent(make_analysis(intent=Intent.GREETING), [LAVENDER], 10)
        assert intent.is_order_ready is False

    def test_strong_signal_from_analysis(self, processor):
        analysis = make_analysis(
            intent=Intent.PURCHASE_INTENT, signals=[("purchase_ready", "checkout")]
        )
        assert processor.detect_order_intent(analysis, [], 40).is_order_ready is True

    def test_confidence_capped(self, processor):
        analysis = make_analysis(name="Juan", quantity=1)
        assert processor.order_confidence(analysis, [LAVENDER], 90) == 1.0

    @pytest.mark.parametrize("confidence,action", [
        (0.9, "process_order"),
        (0.6, "collect_details"),
        (0.45, "qualify_interest"),
        (0.1, "nurture_lead"),
    ])
    def test_suggested_actions(self, confidence, action):
        assert suggest_order_action(confidence) == action
