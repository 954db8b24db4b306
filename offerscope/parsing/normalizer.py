"""
Text normalization shared by offer resolution, chunk filtering and keyword extraction.

The same algorithm runs inside the database as ``normalize_text()``
(see sql/normalize_text.sql). Both implementations are checked against
NORMALIZATION_GOLDEN_CASES; any divergence blocks a release.

Rules, applied in order:
1. Lowercase.
2. Transliterate the fixed character table (æ→ae, ø→oe, å→aa, ä→ae, ö→oe, ü→ue, ß→ss).
3. Collapse letter + separator(s) + digit into letter+digit (g-3, g.3, g 3 → g3).
4. Collapse ASCII whitespace runs to a single space and trim.
All other punctuation is preserved.
"""
from __future__ import annotations

import hashlib
import re
from typing import Optional, Tuple

# Keep in the same order as the replace() chain in sql/normalize_text.sql
TRANSLITERATIONS: Tuple[Tuple[str, str], ...] = (
    ("æ", "ae"),
    ("ø", "oe"),
    ("å", "aa"),
    ("ä", "ae"),
    ("ö", "oe"),
    ("ü", "ue"),
    ("ß", "ss"),
)

# ASCII whitespace only: Postgres and Python disagree on unicode \s
_WS = " \t\n\r\f\v"
_SEPARATOR_RE = re.compile(r"([a-z])[" + _WS + r"\-.]+([0-9])")
_WHITESPACE_RE = re.compile("[" + _WS + "]+")


def normalize_text(text: Optional[str]) -> str:
    """Normalize text for language-agnostic brand/model matching.

    None (or any non-string) normalizes to the empty string. Note this differs
    from the SQL function, where NULL stays NULL.
    """
    if not text or not isinstance(text, str):
        return ""

    normalized = text.lower()
    for source, target in TRANSLITERATIONS:
        normalized = normalized.replace(source, target)

    normalized = _SEPARATOR_RE.sub(r"\1\2", normalized)
    normalized = _WHITESPACE_RE.sub(" ", normalized)
    return normalized.strip(" ")


def normalization_hash(text: Optional[str]) -> str:
    """Return a short content hash of the normalized form."""
    digest = hashlib.sha256(normalize_text(text).encode("utf-8")).hexdigest()
    return digest[:16]


def is_normalized(text: str) -> bool:
    """True when text is already in normalized form."""
    return normalize_text(text) == text


# Golden corpus shared with the database parity check.
NORMALIZATION_GOLDEN_CASES: Tuple[Tuple[str, str], ...] = (
    # Basic
    ("Hello World", "hello world"),
    ("  Multiple   Spaces  ", "multiple spaces"),
    # Norwegian/Danish
    ("IVISKIN Hårfjerning", "iviskin haarfjerning"),
    ("Læs mere om vores produkter", "laes mere om vores produkter"),
    ("Køb nu på vores hjemmeside", "koeb nu paa vores hjemmeside"),
    ("Er IVISKIN G3 bra?", "er iviskin g3 bra?"),
    ("Hvor mye koster den?", "hvor mye koster den?"),
    # Swedish/German
    ("Hände waschen ist wichtig", "haende waschen ist wichtig"),
    ("Skönhet och hälsa", "skoenhet och haelsa"),
    ("Grüße aus München", "gruesse aus muenchen"),
    # Separators
    ("IVISKIN G-3", "iviskin g3"),
    ("IviSkin G.3", "iviskin g3"),
    ("iviskin g 3", "iviskin g3"),
    ("G-4 Laser", "g4 laser"),
    ("Model X-1", "model x1"),
    ("Type A.2", "type a2"),
    ("Version B-5", "version b5"),
    # Mixed
    ("  IVISKIN  G-3  Hårfjerning  ", "iviskin g3 haarfjerning"),
    ("Köp IVISKIN G.4 idag!", "koep iviskin g4 idag!"),
    ("Læs   om   G-3   vs   G-4", "laes om g3 vs g4"),
    ("\t\ntest\r\n  text\t", "test text"),
    # Edge cases
    ("", ""),
    ("   ", ""),
    ("123", "123"),
    ("G3", "g3"),
    ("G4", "g4"),
)
