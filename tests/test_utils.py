"""Tests for shared utility functions."""

from chatcommerce.utils import compile_patterns, find_keywords, format_price, normalize_phone


class TestNormalizePhone:
    def test_strips_spaces(self):
        assert normalize_phone("0917 123 4567") == "09171234567"

    def test_strips_dashes(self):
        assert normalize_phone("0917-123-4567") == "09171234567"

    def test_preserves_leading_plus(self):
        assert normalize_phone("+63 917 123 4567") == "+639171234567"

    def test_mixed_separators(self):
        assert normalize_phone("+63 (917) 123-4567") == "+639171234567"

    def test_strips_whitespace(self):
        assert normalize_phone("  09171234567  ") == "09171234567"


class TestKeywordMatching:
    def test_compiled_patterns_respect_word_boundaries(self):
        pattern = compile_patterns(["yes", "ok"])
        assert pattern.search("Yes please")
        assert not pattern.search("yesterday was fine")
        assert not pattern.search("bookstore")

    def test_compiled_patterns_match_phrases(self):
        pattern = compile_patterns(["go ahead"])
        assert pattern.search("Sure, go ahead!")

    def test_inflections_are_opt_in(self):
        assert not compile_patterns(["price"]).search("What are your prices?")
        assert compile_patterns(["price"], inflections=True).search("What are your prices?")
        assert compile_patterns(["hate"], inflections=True).search("I hated it")
        assert not compile_patterns(["hi"], inflections=True).search("his order")

    def test_find_keywords_is_substring_and_ordered(self):
        found = find_keywords("Is it AVAILABLE today? I want it now", ["now", "today", "urgent"])
        assert found == ["now", "today"]

    def test_find_keywords_empty(self):
        assert find_keywords("hello", ["buy"]) == []


class TestFormatPrice:
    def test_thousands_separator(self):
        assert format_price(15999) == "15,999"

    def test_whole_float_drops_fraction(self):
        assert format_price(350.0) == "350"

    def test_fraction_kept(self):
        assert format_price(99.5) == "99.50"
