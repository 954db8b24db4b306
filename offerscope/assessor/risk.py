"""
Deterministic risk markers for the soft-inference gate.

Queries touching health, safety or money never get a cautious inference,
whatever the LLM assessor says.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Pattern

RISK_PATTERNS: Dict[str, List[Pattern]] = {
    "health": [
        re.compile(r"\b(pregnan\w*|breastfeed\w*|gravid|amming)\b", re.I),
        re.compile(r"\b(medication|medicine|medisin|medikament\w*|prescription|dosage|dose)\b", re.I),
        re.compile(r"\b(doctor|physician|lege|arzt|diagnos\w*|symptom\w*|disease|sykdom)\b", re.I),
        re.compile(r"\b(allerg\w*|eczema|eksem|psoriasis|rash|infection|infeksjon)\b", re.I),
        re.compile(r"\b(cancer|kreft|tumou?r|diabet\w*|epilep\w*|pacemaker)\b", re.I),
        re.compile(r"\b(pain|smerte\w*|injur\w*|wound|sår|burns?|brannskade)\b", re.I),
    ],
    "safety": [
        re.compile(r"\b(dangerous|danger|farlig|gefährlich|hazard\w*|unsafe)\b", re.I),
        re.compile(r"\b(is\s+it\s+safe|safe\s+(to|for)|trygt)\b", re.I),
        re.compile(r"\b(children|child|kids?|baby|babies|barn|infant)\b", re.I),
        re.compile(r"\b(overdose|poison\w*|toxic|giftig|electric\s+shock|fire\s+risk)\b", re.I),
    ],
    "financial": [
        re.compile(r"\b(invest\w*|stocks?|shares|aksje\w*|crypto\w*|bitcoin)\b", re.I),
        re.compile(r"\b(loan|lån|mortgage|credit|kreditt|debt|gjeld)\b", re.I),
        re.compile(r"\b(tax|taxes|skatt|pension|pensjon|insurance|forsikring)\b", re.I),
    ],
}


@dataclass
class RiskAssessment:
    level: str = "none"                 # "none" or "high"
    categories: List[str] = field(default_factory=list)

    @property
    def is_risky(self) -> bool:
        return self.level != "none"


def detect_risk(query: str) -> RiskAssessment:
    """Return the risk categories a query touches."""
    text = query or ""
    categories = [
        category for category, patterns in RISK_PATTERNS.items()
        if any(p.search(text) for p in patterns)
    ]
    return RiskAssessment(level="high" if categories else "none", categories=categories)
