"""
Context keyword extraction from retrieved chunks.

Picks domain words that recur across the retrieved content (e.g. "ipl",
"hårfjerning", "laser") so short, ambiguous references like "G3" can be
disambiguated. Frequency does the stop-word work: no per-language lists.
"""
import re
from collections import Counter
from typing import Iterable, List, Optional, Protocol

from offerscope.utils.logger import get_logger

logger = get_logger("parsing.context_keywords")

_NON_WORD_RE = re.compile(r"[^A-Za-z0-9_\sæøåäöü]")
_HAS_LETTER_RE = re.compile(r"[a-zæøåäöü]")
_MODEL_CODE_RE = re.compile(r"^[a-zæøåäöü]\d+$|^\d+[a-zæøåäöü]$")
_PURE_NUMBER_RE = re.compile(r"^\d+$")
_MARKER_RE = re.compile(r"[\dgqx]")

MIN_WORD_LENGTH = 2
MAX_WORD_LENGTH = 20
MAX_FREQUENCY = 50


class TitledContent(Protocol):
    content: str
    material_title: str


def tokenize(text: str) -> List[str]:
    cleaned = _NON_WORD_RE.sub(" ", (text or "").lower())
    return [
        word for word in cleaned.split()
        if MIN_WORD_LENGTH <= len(word) <= MAX_WORD_LENGTH and _HAS_LETTER_RE.search(word)
    ]


def is_relevant_keyword(word: str, frequency: int, allow_singletons: bool = False) -> bool:
    if not MIN_WORD_LENGTH <= len(word) <= MAX_WORD_LENGTH:
        return False
    if _PURE_NUMBER_RE.match(word) and len(word) > 3:
        return False
    if frequency < 1 or frequency > MAX_FREQUENCY:
        return False
    # Model codes (g3, 4k) count even when seen once
    if _MODEL_CODE_RE.match(word):
        return True
    if frequency < 2 and not allow_singletons:
        return False
    if len(word) >= 4:
        return True
    return bool(_MARKER_RE.search(word))


def extract_context_keywords(
    chunks: Iterable[TitledContent],
    query: Optional[str] = None,
    max_keywords: int = 15,
) -> List[str]:
    """Most frequent relevant words across chunk content, titles and the query."""
    chunks = list(chunks)
    parts = [c.content for c in chunks] + [c.material_title for c in chunks] + [query or ""]
    frequency = Counter(tokenize(" ".join(parts)))

    # most_common keeps first-seen order among equal counts
    keywords = [
        word for word, count in frequency.most_common()
        if is_relevant_keyword(word, count)
    ][:max_keywords]
    logger.debug(f"Extracted context keywords: {keywords}")
    return keywords


def extract_query_keywords(query: str, max_keywords: int = 8) -> List[str]:
    """Keywords from the query alone, used when no chunks are available."""
    words = [w for w in tokenize(query) if is_relevant_keyword(w, 1, allow_singletons=True)]
    return list(dict.fromkeys(words))[:max_keywords]


def has_context_keyword(text: str, keywords: List[str]) -> bool:
    """True when no keywords are known or any keyword occurs in text."""
    if not keywords:
        return True
    lowered = (text or "").lower()
    return any(keyword.lower() in lowered for keyword in keywords)
