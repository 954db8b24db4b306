"""
Brand and model reference extraction.

Finds the tokens a conversational query can anchor to in the catalog:
letter-prefixed model codes (g3, x1, a2) and other bare identifier words
(brand names, generic codes). Both sides of a comparison are extracted, so
"G3 vs G4" yields ["g3", "g4"].
"""
from __future__ import annotations

import re
from typing import List

from offerscope.parsing.normalizer import normalize_text

# Letter-prefixed alphanumeric model codes after separator collapse (g3, x1, mk2s)
MODEL_TOKEN_RE = re.compile(r"\b[a-z]+[0-9]+[a-z0-9]*\b")
# Bare identifier tokens: letters/digits, international letters included
IDENTIFIER_RE = re.compile(r"[^\W_]+")

STOPWORDS = frozenset({
    # English
    "a", "an", "the", "and", "or", "but", "if", "of", "to", "in", "on", "at", "for",
    "with", "by", "from", "as", "is", "are", "was", "were", "be", "been", "am", "do",
    "does", "did", "have", "has", "had", "i", "you", "we", "they", "he", "she", "it",
    "me", "my", "your", "our", "this", "that", "these", "those", "what", "which",
    "who", "how", "why", "when", "where", "can", "could", "would", "should", "will",
    "about", "vs", "versus", "than", "any", "some", "there", "here", "its", "so",
    "not", "no", "yes", "between", "good", "best", "better", "difference",
    "differences", "compare", "comparison",
    # Norwegian / Danish / Swedish (normalized spelling)
    "er", "og", "eller", "en", "et", "ei", "den", "det", "de", "som", "paa", "til",
    "med", "av", "om", "hva", "hvor", "hvordan", "jeg", "du", "vi", "har",
    "bra", "ikke", "mellom", "forskjell", "aer", "och", "att",
    "vad", "hur", "skillnad", "mye", "koster", "da",
    # German (normalized spelling)
    "der", "die", "das", "und", "oder", "ist", "sind", "ein", "eine", "mit", "von",
    "zu", "wie", "was", "gut", "unterschied",
})


def extract_model_tokens(text: str) -> List[str]:
    """Return only the letter-prefixed model codes, in text order, deduplicated."""
    normalized = normalize_text(text)
    return _dedupe(MODEL_TOKEN_RE.findall(normalized))


def extract_model_references(text: str) -> List[str]:
    """Extract model codes and other identifier tokens from (normalized) text.

    Normalizes internally; normalize_text is idempotent so already-normalized
    input is unaffected. Returns tokens in text order without duplicates.
    """
    normalized = normalize_text(text)
    tokens: List[str] = []
    for token in IDENTIFIER_RE.findall(normalized):
        if MODEL_TOKEN_RE.fullmatch(token):
            tokens.append(token)
        elif token not in STOPWORDS and not token.isdigit() and len(token) > 1:
            tokens.append(token)
    return _dedupe(tokens)


def is_model_query(text: str) -> bool:
    """True when the text references at least one model code."""
    return bool(MODEL_TOKEN_RE.search(normalize_text(text)))


def _dedupe(tokens: List[str]) -> List[str]:
    seen = set()
    unique = []
    for token in tokens:
        if token not in seen:
            seen.add(token)
            unique.append(token)
    return unique
