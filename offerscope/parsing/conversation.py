"""
Conversation context for retrieval.

Builds a short list of terms from the last few turns so follow-ups like
"what about the battery?" keep the topic of the previous messages.
Language-agnostic: no stop-word lists, no product hardcoding.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

# Scripts where whitespace tokenization is meaningless; callers fall back to trigram search
_NON_LATIN_RANGES = (
    (0x0590, 0x05FF),  # Hebrew
    (0x0600, 0x06FF),  # Arabic
    (0x0750, 0x077F),  # Arabic supplement
    (0x0E00, 0x0E7F),  # Thai
    (0x1100, 0x11FF),  # Hangul jamo
    (0x3040, 0x309F),  # Hiragana
    (0x30A0, 0x30FF),  # Katakana
    (0x3130, 0x318F),  # Hangul compatibility jamo
    (0x3400, 0x4DBF),  # Han extension A
    (0x4E00, 0x9FFF),  # Han
    (0xAC00, 0xD7AF),  # Hangul syllables
)
_NON_LATIN_RE = re.compile(
    "[" + "".join(f"{chr(lo)}-{chr(hi)}" for lo, hi in _NON_LATIN_RANGES) + "]"
)
_SEPARATOR_RE = re.compile(r"([a-z])[\s\-.]+([0-9])")
_NOT_ALNUM_RE = re.compile(r"[\W_]")

FOLLOW_UP_HINTS = frozenset({
    # English
    "it", "this", "that", "they", "them", "those", "these",
    # Norwegian/Swedish/Danish
    "den", "det", "dette", "denne", "disse",
    # German
    "es", "das", "dies", "diese",
    # French
    "il", "elle", "ça", "cela", "ceci", "ces",
    # Spanish/Portuguese
    "eso", "esto", "esa", "ese", "isto", "isso", "eles", "elas",
    # Italian
    "esso", "questa", "questo", "quello", "quelle", "questi",
    # Dutch
    "het", "dit", "dat", "deze",
})


@dataclass
class ExtractedTerms:
    tokens: List[str]
    bigrams: List[str]
    combined: List[str]
    script: str = "latin"


class TermExtractor:
    """Extracts ranked terms (bigrams, then digit-bearing, then longer words)."""

    def __init__(self, min_length: int = 2, default_max_terms: int = 5):
        self.min_length = min_length
        self.default_max_terms = default_max_terms

    def is_non_latin(self, text: str) -> bool:
        return _NON_LATIN_RE.search(text or "") is not None

    def extract_terms(self, text: str, max_terms: Optional[int] = None) -> Optional[ExtractedTerms]:
        """Return ranked terms, or None for non-Latin scripts."""
        if self.is_non_latin(text):
            return None
        max_terms = max_terms or self.default_max_terms

        normalized = _SEPARATOR_RE.sub(r"\1\2", (text or "").lower())
        tokens = self._tokenize(normalized)
        bigrams = [f"{a} {b}" for a, b in zip(tokens, tokens[1:])]
        combined = self._rank(bigrams + tokens, max_terms)
        return ExtractedTerms(tokens=tokens, bigrams=bigrams, combined=combined)

    def _tokenize(self, text: str) -> List[str]:
        tokens = (_NOT_ALNUM_RE.sub("", t) for t in text.split())
        return [t for t in tokens if len(t) >= self.min_length]

    def _rank(self, terms: List[str], max_terms: int) -> List[str]:
        kept = [t for t in terms if len(t) >= self.min_length]
        kept.sort(key=lambda t: (" " not in t, not any(c.isdigit() for c in t), -len(t)))
        return kept[:max_terms]


def extract_text_from_messages(messages: Sequence[Dict[str, Any]]) -> List[str]:
    """Plain text from chat messages: a string `content` or the text `parts`."""
    texts = []
    for message in messages or []:
        content = message.get("content") if isinstance(message, dict) else None
        if isinstance(content, str):
            texts.append(content)
            continue
        parts = message.get("parts") if isinstance(message, dict) else None
        if isinstance(parts, list):
            text = " ".join(
                p.get("text", "") for p in parts if isinstance(p, dict) and p.get("type") == "text"
            ).strip()
            if text:
                texts.append(text)
    return texts


def build_conversation_context(
    messages: Optional[Sequence[Dict[str, Any]]],
    last_turns: int = 2,
    max_terms: int = 5,
    extractor: Optional[TermExtractor] = None,
) -> List[str]:
    """Compact context terms from the turns before the current query.

    The last message is the current query and is skipped; up to
    2 * last_turns earlier messages (user + assistant) are used.
    """
    if not messages or last_turns <= 0:
        return []

    prior = list(messages[:-1])
    window = prior[-last_turns * 2:] if prior else []
    texts = extract_text_from_messages(window)
    if not texts:
        return []

    extractor = extractor or TermExtractor()
    terms: List[str] = []
    for text in texts:
        extracted = extractor.extract_terms(text, max_terms)
        if extracted:
            terms.extend(extracted.combined)

    unique: List[str] = []
    for term in terms:
        key = term.strip()
        if key and key not in unique:
            unique.append(key)
            if len(unique) >= max_terms:
                break
    return unique


def is_follow_up_query(query: str) -> bool:
    """Short queries and pronoun/demonstrative references read as follow-ups."""
    tokens = (query or "").lower().split()
    if not tokens:
        return False
    if len(tokens) <= 3:
        return True
    return any(token in FOLLOW_UP_HINTS for token in tokens)
