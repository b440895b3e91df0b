"""
Tests for intent classification and specificity detection
"""
import pytest

from core.intent_classifier import classify
from core.keyword_tables import DEFAULT_TABLES, KeywordTables, find_keywords, keyword_pattern
from core.models import MIXED
from core.specificity import is_accessibility_instruction, is_specific


PROMPTS = [
    "",
    "   ",
    "Click the login button",
    "Check color contrast and keyboard navigation with a screen reader",
    "Send a GET request to https://api.example.com/users",
    "Test SQL injection on the login form with an invalid token",
    "api api api json schema response status code endpoint rest graphql",
    "x" * 600,
]


class TestKeywordMatching:
    """Word-boundary aware keyword lookup"""

    def test_keyword_does_not_match_inside_word(self):
        assert not keyword_pattern("api").search("capital")
        assert not keyword_pattern("get").search("target")

    def test_keyword_matches_case_insensitively(self):
        assert keyword_pattern("aria").search("Check ARIA labels")

    def test_symbol_edged_keyword_matches(self):
        assert keyword_pattern("alert(").search("<script>alert(1)</script>")
        assert keyword_pattern("<script>").search("payload <script>")

    def test_find_keywords_keeps_table_order(self):
        assert find_keywords("click the button on the page", ("page", "click", "menu")) == ["page", "click"]


class TestClassify:
    """classify() is pure and bounded"""

    @pytest.mark.parametrize("text", PROMPTS)
    def test_confidence_bounded(self, text):
        intent = classify(text)
        assert 0.0 <= intent.confidence <= 1.0

    @pytest.mark.parametrize("text", PROMPTS)
    def test_referentially_transparent(self, text):
        assert classify(text) == classify(text)

    def test_empty_text_defaults_to_functional(self):
        intent = classify("   ")
        assert intent.primary_type == "functional"
        assert intent.confidence == 0.0
        assert intent.secondary_types == []

    def test_unmatched_text_defaults_to_functional(self):
        intent = classify("zzz qqq")
        assert intent.primary_type == "functional"
        assert intent.confidence == 0.0

    def test_api_prompt(self):
        intent = classify("Send a GET request to https://api.example.com/users")
        assert intent.primary_type == "api"
        assert intent.confidence >= 0.7
        assert "get" in intent.detected_keywords["api"]

    def test_single_match_scores_base(self):
        intent = classify("click")
        assert intent.primary_type == "functional"
        assert intent.confidence == pytest.approx(0.7)

    def test_mixed_when_two_domains_strong(self):
        intent = classify("Check color contrast and aria labels, then send a GET request to the api endpoint")
        assert intent.primary_type == MIXED
        assert "accessibility" in intent.secondary_types
        assert "api" in intent.secondary_types

    def test_secondary_excludes_primary(self):
        intent = classify("click the button and check the api")
        assert intent.primary_type not in intent.secondary_types

    def test_enhanced_flag_when_accessibility_involved(self):
        intent = classify("Verify keyboard navigation on the login form")
        assert "accessibility" == intent.primary_type or "accessibility" in intent.secondary_types
        assert intent.use_enhanced_accessibility_parser is True

    def test_enhanced_flag_in_mixed_intent(self):
        intent = classify("Check color contrast and aria labels, then send a GET request to the api endpoint")
        assert intent.use_enhanced_accessibility_parser is True

    def test_no_enhanced_flag_for_plain_api(self):
        intent = classify("Send a GET request to https://api.example.com/users")
        assert intent.use_enhanced_accessibility_parser is False

    def test_page_context_boosts_functional(self, sample_analysis):
        plain = classify("click")
        boosted = classify("click", sample_analysis)
        assert boosted.confidence > plain.confidence

    def test_injected_tables(self):
        tables = KeywordTables(functional=("zap",), accessibility=(), api=(), security=())
        intent = classify("zap the widget", tables=tables)
        assert intent.primary_type == "functional"
        assert intent.detected_keywords["functional"] == ["zap"]

    def test_default_tables_are_frozen(self):
        with pytest.raises(Exception):
            DEFAULT_TABLES.functional = ("x",)


class TestSpecificity:
    """Instruction-based vs template-based gate"""

    def test_action_verb_is_specific(self):
        assert is_specific("Click the login button")
        assert is_specific("Send a GET request to https://api.example.com/users", "api")

    def test_goal_statement_is_generic(self):
        assert not is_specific("Test the API", "api")
        assert not is_specific("Test the homepage")
        assert not is_specific("")

    def test_typo_tolerant(self):
        assert is_specific("clcik the submit button")

    def test_accessibility_gate_uses_sequencing_cues(self):
        assert is_accessibility_instruction("Press tab twice and check the focused element")
        assert is_accessibility_instruction("1. Open the page 2. Inspect headings")
        assert not is_accessibility_instruction("Accessibility audit for WCAG AA")
        assert is_specific("press tab", "accessibility")
