"""
Retrieval-intent classification for user queries.

Scores each intent from keyword hits and a few structural patterns, then
derives content-type boosts that reweight the hybrid ranker. All rules are
ordered data (IntentRule), evaluated deterministically.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Literal, NamedTuple, Optional, Pattern, Sequence

from offerscope.parsing.content_type import CONTENT_TYPES
from offerscope.parsing.model_refs import is_model_query

QueryIntent = Literal[
    "comparison", "best_choice", "specific_product", "pricing", "features", "how_to", "general"
]

# Fixed evaluation order; on equal scores the later intent wins
INTENT_ORDER: Sequence[str] = (
    "comparison", "best_choice", "specific_product", "pricing", "features", "how_to", "general",
)


class IntentRule(NamedTuple):
    """A weighted pattern that votes for a category."""
    pattern: Pattern
    category: str
    weight: float


INTENT_KEYWORDS: Dict[str, Sequence[str]] = {
    "comparison": ("vs", "versus", "compare", "comparison", "difference", "better", "which"),
    "best_choice": ("best", "top", "recommend", "suggestion", "choice", "winner", "favorite"),
    "specific_product": (),
    "pricing": ("price", "cost", "expensive", "cheap", "affordable", "budget", "money"),
    "features": ("features", "specs", "specifications", "capabilities", "function", "what"),
    "how_to": ("how", "setup", "install", "configure", "use", "tutorial", "guide"),
    "general": (),
}

# Intent keywords echoed into the keyword list when present in the query
INTENT_FOCUS_KEYWORDS: Dict[str, Sequence[str]] = {
    "comparison": ("vs", "versus", "compare", "better", "difference"),
    "best_choice": ("best", "top", "recommend", "choice", "winner"),
    "specific_product": (),
    "pricing": ("price", "cost", "expensive", "cheap", "budget"),
    "features": ("features", "specs", "capabilities", "function"),
    "how_to": ("how", "setup", "install", "use", "tutorial"),
    "general": (),
}

STRUCTURAL_RULES: Sequence[IntentRule] = (
    IntentRule(re.compile(r"which\s+is\s+(?:the\s+)?best"), "best_choice", 2.0),
    IntentRule(re.compile(r"\bhow\s+much"), "pricing", 2.0),
    IntentRule(re.compile(r"what\s+(?:does|is|are)"), "features", 1.0),
)

SPECIFIC_PRODUCT_WEIGHT = 1.5

COMPARATIVE_PATTERNS: Sequence[Pattern] = (
    re.compile(r"\bvs\b|\bversus\b"),
    re.compile(r"\bcompare\b|\bcomparison\b"),
    re.compile(r"\bbetter\s+than\b"),
    re.compile(r"\bwhich\s+(?:is\s+)?(?:better|best)\b"),
    re.compile(r"\bdifference\s+between\b"),
    re.compile(r"\bor\b.*\bor\b"),
    re.compile(r"\b(?:between|among)\b.*\band\b"),
)

RECOMMENDATION_PATTERNS: Sequence[Pattern] = (
    re.compile(r"\b(?:what|which).*(?:recommend|suggest|advice)\b"),
    re.compile(r"\b(?:what|which).*(?:best|good|better)\b"),
    re.compile(r"\bshould\s+i\b"),
    re.compile(r"\brecommend\b|\bsuggestion\b|\badvice\b"),
    re.compile(r"\bwhat.*(?:choose|pick|select)\b"),
    re.compile(r"\bhelp\s+me\s+(?:choose|pick|decide)\b"),
)

STRONG_INTENT_PATTERNS: Dict[str, Pattern] = {
    "best_choice": re.compile(r"\b(?:what|which)\s+is\s+(?:the\s+)?best\b", re.I),
    "comparison": re.compile(r"\bcompare\b|\bvs\b|\bversus\b", re.I),
    "pricing": re.compile(r"\bhow\s+much\b|\bprice\b|\bcost\b", re.I),
    "how_to": re.compile(r"\bhow\s+(?:to|do|can)\b", re.I),
}

INTENT_BOOST_OVERRIDES: Dict[str, Dict[str, float]] = {
    "best_choice": {"ranking": 2.5, "review": 2.0, "comparison": 1.8},
    "comparison": {"comparison": 2.5, "ranking": 2.0, "review": 1.8},
    "specific_product": {"product_page": 2.0, "review": 1.5},
    "pricing": {"product_page": 2.0, "comparison": 1.5},
    "features": {"product_page": 2.0, "review": 1.8},
    "how_to": {"tutorial": 2.5, "general": 1.5},
}
COMPARATIVE_INCREMENTS = {"comparison": 1.0, "ranking": 0.8}
RECOMMENDATION_INCREMENTS = {"ranking": 1.2, "review": 1.0}

STOPWORDS = frozenset({
    "the", "is", "at", "which", "on", "a", "an", "and", "or", "but",
    "in", "with", "to", "for", "of", "as", "by", "that", "this",
    "what", "where", "when", "how", "why", "who", "can", "could",
    "would", "should", "will", "are", "was", "were", "been", "have", "has",
})

NON_PRODUCT_WORDS = frozenset({
    "The", "This", "That", "What", "Which", "Where", "When", "How", "Why",
    "Can", "Could", "Would", "Should", "Will", "Are", "Was", "Were",
    "I", "You", "We", "They", "He", "She", "It",
})

_PRODUCT_SPAN_RE = re.compile(r"\b[A-Z][a-zA-Z0-9\s]{2,30}\b")
_WORD_SPLIT_RE = re.compile(r"\W+")

MAX_KEYWORDS = 10
MAX_PRODUCTS = 5


@dataclass
class QueryAnalysis:
    intent: str
    keywords: List[str]
    products: List[str]
    confidence: float
    is_comparative: bool
    is_looking_for_recommendation: bool
    content_type_boosts: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            "intent": self.intent,
            "keywords": list(self.keywords),
            "products": list(self.products),
            "confidence": self.confidence,
            "isComparative": self.is_comparative,
            "isLookingForRecommendation": self.is_looking_for_recommendation,
            "contentTypeBoosts": dict(self.content_type_boosts),
        }


def _words(query_lower: str) -> List[str]:
    return [w for w in _WORD_SPLIT_RE.split(query_lower) if len(w) > 2]


def score_intents(query: str) -> Dict[str, float]:
    """Raw intent scores in INTENT_ORDER."""
    query_lower = query.lower()
    words = set(_words(query_lower))
    scores = {intent: 0.0 for intent in INTENT_ORDER}

    for intent, keywords in INTENT_KEYWORDS.items():
        for keyword in keywords:
            if keyword in query_lower:
                scores[intent] += 1.0
                if keyword in words:
                    scores[intent] += 0.5

    for rule in STRUCTURAL_RULES:
        if rule.pattern.search(query_lower):
            scores[rule.category] += rule.weight

    if is_model_query(query) and not any(scores.values()):
        scores["specific_product"] += SPECIFIC_PRODUCT_WEIGHT

    return scores


def detect_query_intent(query: str) -> str:
    scores = score_intents(query)
    best_intent, best_score = "general", 0.0
    for intent in INTENT_ORDER:
        if scores[intent] > 0 and scores[intent] >= best_score:
            best_intent, best_score = intent, scores[intent]
    return best_intent


def extract_intent_keywords(query: str, intent: str) -> List[str]:
    query_lower = query.lower()
    keywords = [w for w in _words(query_lower) if w not in STOPWORDS]
    keywords.extend(k for k in INTENT_FOCUS_KEYWORDS.get(intent, ()) if k in query_lower)
    return list(dict.fromkeys(keywords))[:MAX_KEYWORDS]


def extract_mentioned_products(query: str) -> List[str]:
    spans = [s.strip() for s in _PRODUCT_SPAN_RE.findall(query)]
    products = [s for s in spans if s not in NON_PRODUCT_WORDS and len(s) > 2]
    return list(dict.fromkeys(products))[:MAX_PRODUCTS]


def is_comparative(query: str) -> bool:
    query_lower = query.lower()
    return any(p.search(query_lower) for p in COMPARATIVE_PATTERNS)


def is_looking_for_recommendation(query: str) -> bool:
    query_lower = query.lower()
    return any(p.search(query_lower) for p in RECOMMENDATION_PATTERNS)


def content_type_boosts(intent: str, comparative: bool, recommendation: bool) -> Dict[str, float]:
    """Multiplicative content-type weights for the ranker."""
    boosts = {content_type: 1.0 for content_type in CONTENT_TYPES}
    boosts.update(INTENT_BOOST_OVERRIDES.get(intent, {}))
    if comparative:
        for content_type, inc in COMPARATIVE_INCREMENTS.items():
            boosts[content_type] += inc
    if recommendation:
        for content_type, inc in RECOMMENDATION_INCREMENTS.items():
            boosts[content_type] += inc
    return boosts


def intent_confidence(query: str, intent: str, keywords: Sequence[str]) -> float:
    word_count = len(query.split())
    confidence = 0.5
    confidence += min(word_count / 20, 0.3)
    confidence += min(len(keywords) / 10, 0.2)
    strong = STRONG_INTENT_PATTERNS.get(intent)
    if strong is not None and strong.search(query):
        confidence += 0.2
    return max(0.0, min(confidence, 1.0))


def analyze_query_intent(query: str, history: Optional[Sequence[Dict]] = None) -> QueryAnalysis:
    """Classify a query for retrieval.

    history is accepted for call-site symmetry with the display classifier;
    retrieval intent is decided from the current query alone.
    """
    intent = detect_query_intent(query)
    keywords = extract_intent_keywords(query, intent)
    comparative = is_comparative(query)
    recommendation = is_looking_for_recommendation(query)
    return QueryAnalysis(
        intent=intent,
        keywords=keywords,
        products=extract_mentioned_products(query),
        confidence=intent_confidence(query, intent, keywords),
        is_comparative=comparative,
        is_looking_for_recommendation=recommendation,
        content_type_boosts=content_type_boosts(intent, comparative, recommendation),
    )
