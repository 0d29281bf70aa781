"""Tests for additive lead scoring and urgency classification."""

import pytest

from chatcommerce.conversation.lead_scorer import determine_urgency
from chatcommerce.schemas.analysis_schema import Intent, Sentiment
from tests.conftest import make_analysis, make_context


class TestScenarios:
    def test_price_inquiry_without_product(self, scorer):
        analysis = make_analysis(intent=Intent.PRICE_INQUIRY)
        breakdown = scorer.breakdown("how much is it?", analysis, make_context())
        assert breakdown.intent == 30
        assert breakdown.signals == 15
        assert breakdown.total == 47

    def test_purchase_with_product(self, scorer):
        analysis = make_analysis(intent=Intent.PURCHASE_INTENT, products=["Lavender Oil"])
        score = scorer.score("I want to buy the Lavender Oil", analysis, make_context())
        assert score == 83


class TestBounds:
    def test_negative_raw_total_clamps_to_zero(self, scorer):
        analysis = make_analysis(sentiment=Sentiment.NEGATIVE)
        breakdown = scorer.breakdown("meh", analysis, make_context())
        assert breakdown.raw_total == -5
        assert breakdown.total == 0

    def test_keyword_flood_clamps_to_hundred(self, scorer):
        message = (
            "I want to buy now, ready to order, checkout now, add to cart, how much, "
            "cost, delivery, shipping, urgent asap today"
        )
        analysis = make_analysis(intent=Intent.PURCHASE_INTENT, sentiment=Sentiment.POSITIVE)
        assert scorer.score(message, analysis, make_context()) == 100

    @pytest.mark.parametrize("message", ["", "hello", "yes", "no, cancel", "???"])
    def test_always_within_range(self, scorer, message):
        for intent in Intent:
            for sentiment in Sentiment:
                analysis = make_analysis(intent=intent, sentiment=sentiment)
                assert 0 <= scorer.score(message, analysis, make_context()) <= 100


class TestContributions:
    def test_synonyms_in_one_category_stack(self, scorer):
        breakdown = scorer.breakdown("how much does it cost", make_analysis(), make_context())
        assert breakdown.signals == 30

    def test_extra_buying_signal_never_lowers_score(self, scorer):
        analysis = make_analysis(intent=Intent.PRICE_INQUIRY)
        base = scorer.score("how much is it?", analysis, make_context())
        more = scorer.score("how much is it? any discount?", analysis, make_context())
        assert more == base + 20

    def test_urgency_stacking(self, scorer):
        analysis = make_analysis(intent=Intent.PURCHASE_INTENT)
        one = scorer.breakdown("I need this urgent", analysis, make_context())
        two = scorer.breakdown("I need this urgent today", analysis, make_context())
        assert one.urgency == 12
        assert two.urgency == 24
        assert two.total > one.total

    @pytest.mark.parametrize("count,expected", [(0, 0), (1, 0), (2, 8), (3, 8), (4, 20)])
    def test_engagement_context_bonus(self, scorer, count, expected):
        context = make_context(interaction_count=count)
        assert scorer.breakdown("meh", make_analysis(), context).context == expected

    def test_previous_purchase_bonus(self, scorer):
        context = make_context(previous_purchase=True)
        assert scorer.breakdown("meh", make_analysis(), context).context == 25

    def test_product_mentions(self, scorer):
        analysis = make_analysis(products=["Lavender Oil", "Bamboo Diffuser"])
        assert scorer.breakdown("meh", analysis, make_context()).products == 10

    def test_same_inputs_same_score(self, scorer):
        analysis = make_analysis(intent=Intent.COMPARISON)
        first = scorer.score("which one is better?", analysis, make_context())
        second = scorer.score("which one is better?", analysis, make_context())
        assert first == second

    def test_breakdown_dict_includes_totals(self, scorer):
        data = scorer.breakdown("hello", make_analysis(intent=Intent.GREETING), make_context()).to_dict()
        assert data["intent"] == 5
        assert data["total"] == data["raw_total"] == 7


class TestUrgency:
    def test_low(self):
        assert determine_urgency(make_analysis(), 10) == "low"

    def test_medium_by_score(self):
        assert determine_urgency(make_analysis(), 15) == "medium"

    def test_high_by_score(self):
        assert determine_urgency(make_analysis(), 25) == "high"

    def test_single_indicator_is_medium(self):
        assert determine_urgency(make_analysis(urgency=["today"]), 0) == "medium"

    def test_two_indicators_are_high(self):
        assert determine_urgency(make_analysis(urgency=["today", "asap"]), 0) == "high"
