"""
Content-type detection for retrieved chunks.

Labels a chunk as ranking, comparison, product_page, review, service or
tutorial content by counting pattern hits over title + content. Weak evidence
(fewer than two hits for the best type) falls back to 'general'.
"""
import re
from typing import Dict, List, Pattern

CONTENT_TYPES = ("ranking", "comparison", "product_page", "review", "service", "tutorial", "general")

CONTENT_TYPE_PATTERNS: Dict[str, List[Pattern]] = {
    "ranking": [
        re.compile(r"\btop\s+\d+", re.I),
        re.compile(r"\bbest\s+\d+", re.I),
        re.compile(r"\d+\s+best", re.I),
        re.compile(r"ranking", re.I),
        re.compile(r"rated\s+\d+", re.I),
        re.compile(r"#\d+"),
        re.compile(r"first\s+place|second\s+place|third\s+place", re.I),
        re.compile(r"\d+\.\s*[A-Z]"),
    ],
    "comparison": [
        re.compile(r"\bvs\b|\bversus\b", re.I),
        re.compile(r"compare|comparison", re.I),
        re.compile(r"\bbetter\s+than\b", re.I),
        re.compile(r"\bdifference\s+between\b", re.I),
        re.compile(r"pros\s+and\s+cons", re.I),
        re.compile(r"which\s+is\s+better", re.I),
    ],
    "product_page": [
        re.compile(r"\$\d+|€\d+|£\d+|\d+\s*kr"),
        re.compile(r"price:|cost:|buy\s+now|add\s+to\s+cart", re.I),
        re.compile(r"specifications|features|description", re.I),
        re.compile(r"in\s+stock|out\s+of\s+stock|available", re.I),
    ],
    "review": [
        re.compile(r"review|rating|stars", re.I),
        re.compile(r"\d+/\d+|\d+\s*stars|\d+\.\d+\s*/\s*\d+"),
        re.compile(r"pros:|cons:|verdict", re.I),
        re.compile(r"tested|experience|opinion", re.I),
    ],
    "service": [
        re.compile(r"service|solution|platform|software", re.I),
        re.compile(r"plan|subscription|tier", re.I),
        re.compile(r"consultation|support|help", re.I),
        re.compile(r"enterprise|business|professional", re.I),
    ],
    "tutorial": [
        re.compile(r"how\s+to|guide|tutorial|step", re.I),
        re.compile(r"instructions|setup|install", re.I),
        re.compile(r"\d+\s*steps|\d+\.\s*[A-Z]"),
    ],
}


def _count_pattern_matches(text: str, patterns: List[Pattern]) -> int:
    return sum(len(pattern.findall(text)) for pattern in patterns)


def detect_content_type(title: str, content: str) -> str:
    """Return the dominant content type of a chunk, or 'general'."""
    combined = f"{title or ''} {content or ''}"
    scores = {
        content_type: _count_pattern_matches(combined, patterns)
        for content_type, patterns in CONTENT_TYPE_PATTERNS.items()
    }

    best_type = "general"
    best_score = 0
    for content_type, score in scores.items():
        if score > best_score:
            best_type, best_score = content_type, score

    if best_score < 2:
        return "general"
    return best_type
