"""
Tests for conversation term extraction and follow-up detection.
"""

from offerscope.parsing.conversation import (
    TermExtractor,
    build_conversation_context,
    extract_text_from_messages,
    is_follow_up_query,
)


def _messages(*texts):
    roles = ("user", "assistant")
    return [{"role": roles[i % 2], "content": t} for i, t in enumerate(texts)]


class TestTermExtractor:
    def test_bigrams_and_model_codes_rank_first(self):
        terms = TermExtractor().extract_terms("IVISKIN G-3 battery life")
        assert terms.tokens == ["iviskin", "g3", "battery", "life"]
        assert terms.combined[:4] == ["iviskin g3", "g3 battery", "battery life", "g3"]
        assert len(terms.combined) == 5

    def test_non_latin_returns_none(self):
        extractor = TermExtractor()
        assert extractor.is_non_latin("これは何ですか")
        assert extractor.extract_terms("これは何ですか") is None

    def test_short_tokens_dropped(self):
        terms = TermExtractor(min_length=3).extract_terms("a bb ccc")
        assert terms.tokens == ["ccc"]


class TestMessages:
    def test_content_and_parts(self):
        messages = [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "parts": [{"type": "text", "text": "hello"}, {"type": "image"}]},
            {"role": "user", "parts": []},
        ]
        assert extract_text_from_messages(messages) == ["hi", "hello"]

    def test_context_skips_current_query(self):
        messages = _messages(
            "Tell me about IVISKIN G3",
            "The G3 has 5 energy levels",
            "what about battery?",
        )
        terms = build_conversation_context(messages)
        assert terms[0] == "iviskin g3"
        assert len(terms) <= 5
        assert not any("battery" in t for t in terms)

    def test_window_limits_turns(self):
        messages = _messages("old laser topic", "sure", "IVISKIN G3", "ok", "now?")
        terms = build_conversation_context(messages, last_turns=1)
        assert not any("laser" in t for t in terms)

    def test_empty(self):
        assert build_conversation_context(None) == []
        assert build_conversation_context(_messages("only the query")) == []
        assert build_conversation_context(_messages("a b", "c d", "e"), last_turns=0) == []


class TestFollowUp:
    def test_short_query(self):
        assert is_follow_up_query("what about it?")

    def test_demonstrative(self):
        assert is_follow_up_query("tell me more about the battery of that")
        assert is_follow_up_query("hvor lenge varer batteriet på den")

    def test_standalone_query(self):
        assert not is_follow_up_query("tell me everything about the IVISKIN G3 battery")

    def test_empty(self):
        assert not is_follow_up_query("")
