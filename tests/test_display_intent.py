"""
Tests for display-gating intent detection.
"""

import pytest

from offerscope.parsing.display_intent import (
    COMPARATIVE,
    DISPLAY_FAMILIES,
    DISPLAY_RULE_ORDER,
    DISPLAY_RULES,
    EVALUATIVE,
    INFORMATIONAL,
    NAVIGATIONAL,
    TECHNICAL,
    TRANSACTIONAL,
    detect_display_intent,
    detect_display_intent_advanced,
    extract_brand_mentions,
)


class TestFamilies:
    @pytest.mark.parametrize("query,intent,show", [
        ("I forgot my password", TECHNICAL, False),
        ("buy iviskin g3", TRANSACTIONAL, True),
        ("is the g3 good", EVALUATIVE, True),
        ("g3 vs g4", COMPARATIVE, True),
        ("visit their homepage", NAVIGATIONAL, True),
        ("tell me about ipl", INFORMATIONAL, True),
    ])
    def test_detection(self, query, intent, show):
        result = detect_display_intent(query)
        assert result.intent == intent
        assert result.should_show_products is show

    def test_technical_wins_over_transactional(self):
        result = detect_display_intent("login error buy")
        assert result.intent == TECHNICAL
        assert result.should_show_products is False
        assert result.keywords == ["login"]

    def test_support_with_order(self):
        assert detect_display_intent("support for my order").intent == TECHNICAL

    def test_domain_suffix(self):
        result = detect_display_intent("iviskin.com")
        assert result.intent == NAVIGATIONAL
        assert result.keywords == [".com"]

    def test_informational_defaults(self):
        result = detect_display_intent("tell me about ipl")
        assert result.confidence == 0.5
        assert result.keywords == []


class TestRuleTable:
    def test_order(self):
        assert DISPLAY_RULE_ORDER == (TECHNICAL, TRANSACTIONAL, EVALUATIVE, COMPARATIVE, NAVIGATIONAL)

    def test_weights_match_family_confidence(self):
        for rule in DISPLAY_RULES:
            assert rule.weight == DISPLAY_FAMILIES[rule.category].confidence

    def test_only_technical_suppresses(self):
        hidden = [name for name, family in DISPLAY_FAMILIES.items() if not family.should_show_products]
        assert hidden == [TECHNICAL]


class TestAdvanced:
    def test_question_with_evaluative_word(self):
        result = detect_display_intent_advanced("Which one is right for me?")
        assert result.intent == EVALUATIVE
        assert result.confidence == pytest.approx(0.7)

    def test_follow_up_on_comparison(self):
        result = detect_display_intent_advanced("and the other one", previous_intent=COMPARATIVE)
        assert result.intent == COMPARATIVE
        assert result.confidence == pytest.approx(0.6)

    def test_no_previous_intent(self):
        assert detect_display_intent_advanced("and the other one").intent == INFORMATIONAL

    def test_basic_match_is_kept(self):
        result = detect_display_intent_advanced("g3 vs g4", previous_intent=TECHNICAL)
        assert result.intent == COMPARATIVE
        assert result.confidence == 0.9

    def test_to_dict(self):
        payload = detect_display_intent("I forgot my password").to_dict()
        assert payload["shouldShowProducts"] is False
        assert payload["intent"] == TECHNICAL


def test_brand_mentions():
    mentions = extract_brand_mentions("Is IVISKIN G3 better than Philips?")
    assert "IVISKIN" in mentions
    assert "G3" in mentions
    assert "Is" not in mentions
