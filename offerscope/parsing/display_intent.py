"""
Display-gating intent: decides whether product cards may be shown for a query.

Families are checked in DISPLAY_RULE_ORDER. Technical/support queries come
first and always suppress product display; the first matching family wins.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Dict, List, NamedTuple, Optional, Pattern, Sequence

from offerscope.parsing.query_intent import IntentRule

TECHNICAL = "technical"
TRANSACTIONAL = "transactional"
EVALUATIVE = "evaluative"
COMPARATIVE = "comparative"
NAVIGATIONAL = "navigational"
INFORMATIONAL = "informational"

DISPLAY_RULE_ORDER: Sequence[str] = (TECHNICAL, TRANSACTIONAL, EVALUATIVE, COMPARATIVE, NAVIGATIONAL)


class DisplayFamily(NamedTuple):
    confidence: float
    should_show_products: bool
    reason: str


DISPLAY_FAMILIES: Dict[str, DisplayFamily] = {
    TECHNICAL: DisplayFamily(0.9, False, "Technical/support query detected"),
    TRANSACTIONAL: DisplayFamily(0.9, True, "Transactional intent detected"),
    EVALUATIVE: DisplayFamily(0.8, True, "Evaluative intent detected"),
    COMPARATIVE: DisplayFamily(0.9, True, "Comparative intent detected"),
    NAVIGATIONAL: DisplayFamily(0.7, True, "Navigational intent - show if brand mentioned"),
    INFORMATIONAL: DisplayFamily(0.5, True, "General informational query"),
}


def _rules(category: str, patterns: Sequence[str]) -> List[IntentRule]:
    return [IntentRule(re.compile(p), category, DISPLAY_FAMILIES[category].confidence) for p in patterns]


DISPLAY_RULES: List[IntentRule] = [
    *_rules(TECHNICAL, (
        r"\b(login|log in|sign in|signin|password|reset|forgot)\b",
        r"\b(down|outage|offline|maintenance|server|error|bug|broken|not working|doesn't work|won't work)\b",
        r"\b(support|help|contact|customer service|phone number)\b",
        r"\b(account|billing|invoice|payment|charge|refund)\b",
        r"\b(404|500|error code|crash|freeze|slow|loading)\b",
    )),
    *_rules(TRANSACTIONAL, (
        r"\b(buy|purchase|order|checkout|cart|shop)\b",
        r"\b(price|pricing|cost|costs|cheap|expensive|affordable|budget)\b",
        r"\b(discount|coupon|deal|offer|sale|promo)\b",
        r"\b(free trial|trial|demo|test)\b",
        r"\b(plan|plans|subscription|upgrade|downgrade)\b",
    )),
    *_rules(EVALUATIVE, (
        r"\b(best|good|bad|great|excellent|terrible|awful|amazing)\b",
        r"\b(review|reviews|rating|ratings|opinion|opinions)\b",
        r"\b(recommend|recommendation|suggest|suggestion)\b",
        r"\b(worth|worthy|quality|reliable|trustworthy)\b",
        r"\b(pros|cons|advantages|disadvantages|benefits|drawbacks)\b",
        r"^(is|are)\s+.+(good|bad|worth|reliable|recommended)",
    )),
    *_rules(COMPARATIVE, (
        r"\b(vs|versus|compared to|compare|comparison)\b",
        r"\b(alternative|alternatives|instead of|rather than)\b",
        r"\b(better than|worse than|similar to|like)\b",
        r"\b(difference|differences|differ|different)\b",
        r"\b(choice|choices|choose|pick|select)\b",
    )),
    *_rules(NAVIGATIONAL, (
        r"\b(website|site|homepage|url|link|domain)\b",
        r"\b(visit|go to|navigate to|find)\b",
        r"\.com\b|\.org\b|\.net\b",
    )),
]

_QUESTION_RE = re.compile(
    r"^(what|how|why|when|where|who|which|is|are|do|does|did|can|could|would|should|will)\b", re.I
)
_EVALUATIVE_WORDS_RE = re.compile(r"\b(better|best|good|recommend|should|choose|right)\b", re.I)


@dataclass
class DisplayIntentResult:
    intent: str
    confidence: float
    should_show_products: bool
    reason: str
    keywords: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "intent": self.intent,
            "confidence": self.confidence,
            "shouldShowProducts": self.should_show_products,
            "reason": self.reason,
            "keywords": list(self.keywords),
        }


def detect_display_intent(query: str) -> DisplayIntentResult:
    lower = query.lower().strip()
    for category in DISPLAY_RULE_ORDER:
        for rule in DISPLAY_RULES:
            if rule.category != category:
                continue
            match = rule.pattern.search(lower)
            if match:
                family = DISPLAY_FAMILIES[category]
                return DisplayIntentResult(
                    intent=category,
                    confidence=rule.weight,
                    should_show_products=family.should_show_products,
                    reason=family.reason,
                    keywords=match.group(0).split(" "),
                )

    family = DISPLAY_FAMILIES[INFORMATIONAL]
    return DisplayIntentResult(INFORMATIONAL, family.confidence, family.should_show_products, family.reason)


def detect_display_intent_advanced(query: str, previous_intent: Optional[str] = None) -> DisplayIntentResult:
    """detect_display_intent plus question-structure and follow-up handling."""
    basic = detect_display_intent(query)
    if basic.intent != INFORMATIONAL:
        return basic

    stripped = query.strip()
    is_question = bool(_QUESTION_RE.search(stripped)) or stripped.endswith("?")
    if is_question and _EVALUATIVE_WORDS_RE.search(query):
        return replace(
            basic,
            intent=EVALUATIVE,
            confidence=min(basic.confidence + 0.2, 0.9),
            reason="Question with evaluative keywords",
        )

    if previous_intent == COMPARATIVE:
        return replace(
            basic,
            intent=COMPARATIVE,
            confidence=min(basic.confidence + 0.1, 0.8),
            reason="Following up on comparative query",
        )

    return basic


_BRAND_PATTERNS: Sequence[Pattern] = (
    re.compile(r"\b[A-Z][a-z]+[A-Z][a-z]+\b"),
    re.compile(r"\b[A-Z]{2,}\b"),
    re.compile(r"\b[A-Za-z]+\d+\b"),
)


def extract_brand_mentions(query: str) -> List[str]:
    """Capitalized, CamelCase, all-caps and letter+digit words that look like brands."""
    mentions = [w for w in query.split() if re.match(r"^[A-Z][a-zA-Z]+", w) and len(w) > 2]
    for pattern in _BRAND_PATTERNS:
        match = pattern.search(query)
        if match:
            mentions.append(match.group(0))
    return list(dict.fromkeys(mentions))
