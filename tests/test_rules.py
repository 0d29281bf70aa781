"""Tests for the versioned keyword rule tables."""

import json

import pytest

from chatcommerce.rules.loader import DEFAULT_RULES_PATH, load_rules, parse_rules


def _raw_rules() -> dict:
    return json.loads(DEFAULT_RULES_PATH.read_text(encoding="utf-8"))


class TestBundledRules:
    def test_loads_version_one(self, rules):
        assert rules.version == 1

    def test_intent_order_is_preserved(self, rules):
        names = [name for name, _ in rules.intents]
        assert names[0] == "greeting"
        assert names.index("purchase_intent") < names.index("price_inquiry")

    def test_scoring_tables(self, rules):
        assert rules.scoring.intent_points["purchase_intent"] == 35
        assert rules.scoring.intent_points["price_inquiry"] == 30
        assert rules.scoring.urgency.points == 12
        assert rules.scoring.sentiment_points["negative"] == -8

    def test_order_keyword_sets(self, rules):
        assert "yes" in rules.order.confirmation_keywords
        assert "cancel" in rules.order.cancellation_keywords
        assert "i want to buy" in rules.order.strong_signals

    def test_rules_are_frozen(self, rules):
        with pytest.raises(AttributeError):
            rules.version = 2  # type: ignore[misc]

    def test_load_from_explicit_path(self, tmp_path):
        data = _raw_rules()
        data["scoring"]["intent_points"]["general"] = 9
        path = tmp_path / "rules.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        assert load_rules(str(path)).scoring.intent_points["general"] == 9


class TestRuleValidation:
    def test_missing_section_rejected(self):
        data = _raw_rules()
        del data["scoring"]
        with pytest.raises(ValueError, match="scoring"):
            parse_rules(data)

    def test_wrong_version_rejected(self):
        data = _raw_rules()
        data["version"] = 2
        with pytest.raises(ValueError, match="version"):
            parse_rules(data)

    def test_missing_nested_key_rejected(self):
        data = _raw_rules()
        del data["order"]["confirmation_keywords"]
        with pytest.raises(ValueError, match="confirmation_keywords"):
            parse_rules(data)

    def test_keywords_are_lowercased(self):
        data = _raw_rules()
        data["scoring"]["urgency"]["keywords"] = ["URGENT"]
        assert parse_rules(data).scoring.urgency.keywords == ("urgent",)
