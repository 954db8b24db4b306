"""
Tests for text normalization: golden corpus, separator collapse,
idempotence, hashing and throughput.
"""

import time

import pytest

from offerscope.parsing.normalizer import (
    NORMALIZATION_GOLDEN_CASES,
    is_normalized,
    normalization_hash,
    normalize_text,
)


# ── Golden corpus ────────────────────────────────────────────────────────

@pytest.mark.parametrize("raw,expected", NORMALIZATION_GOLDEN_CASES)
def test_golden_cases(raw, expected):
    assert normalize_text(raw) == expected


# ── Separators ───────────────────────────────────────────────────────────

class TestSeparators:
    def test_g3_variants_collapse(self):
        assert normalize_text("G-3") == normalize_text("G.3") == normalize_text("G 3") == "g3"

    def test_g4_variants_collapse(self):
        assert normalize_text("G-4") == normalize_text("G.4") == normalize_text("G 4") == "g4"

    def test_g3_and_g4_never_collide(self):
        for sep in ("-", ".", " ", ""):
            assert normalize_text(f"G{sep}3") != normalize_text(f"G{sep}4")

    def test_repeated_separators(self):
        assert normalize_text("G - . 3") == "g3"

    def test_digit_then_letter_untouched(self):
        assert normalize_text("4 K") == "4 k"

    def test_letter_then_letter_untouched(self):
        assert normalize_text("hair-removal") == "hair-removal"

    def test_non_ascii_whitespace_is_not_a_separator(self):
        # NBSP is not ASCII whitespace, so it survives
        assert normalize_text("G\u00a03") == "g\u00a03"


# ── Transliteration and case ─────────────────────────────────────────────

class TestTransliteration:
    def test_nordic_letters(self):
        assert normalize_text("ÆØÅ") == "aeoeaa"

    def test_german_letters(self):
        assert normalize_text("Größe") == "groesse"

    def test_punctuation_preserved(self):
        assert normalize_text("Er IVISKIN G3 bra?") == "er iviskin g3 bra?"

    def test_none_and_non_string(self):
        assert normalize_text(None) == ""
        assert normalize_text(123) == ""


# ── Idempotence ──────────────────────────────────────────────────────────

IDEMPOTENCE_INPUTS = [
    "IVISKIN G-3 vs IVISKIN G-4",
    "  Læs   om   G - 3  ",
    "a-b-3 x.-.1",
    "Grüße aus München",
    "Model X - 1 . 2",
    "ø 3 and å-4",
    "\t\nG.\t3\r\n",
    "",
]


@pytest.mark.parametrize("text", IDEMPOTENCE_INPUTS + [raw for raw, _ in NORMALIZATION_GOLDEN_CASES])
def test_idempotent(text):
    once = normalize_text(text)
    assert normalize_text(once) == once
    assert is_normalized(once)


def test_is_normalized_false_for_raw_text():
    assert not is_normalized("IVISKIN G-3")


# ── Hashing ──────────────────────────────────────────────────────────────

class TestNormalizationHash:
    def test_equal_for_equal_normalized_forms(self):
        assert normalization_hash("IVISKIN G-3") == normalization_hash("iviskin g 3")

    def test_differs_for_g3_and_g4(self):
        assert normalization_hash("G3") != normalization_hash("G4")

    def test_format(self):
        h = normalization_hash("anything")
        assert len(h) == 16  # sha256[:16]
        int(h, 16)


# ── Throughput ───────────────────────────────────────────────────────────

def test_long_input_is_fast():
    text = ("IVISKIN G-3 Hårfjerning " * 100)[:2400]
    assert len(text) == 2400
    start = time.perf_counter()
    normalize_text(text)
    elapsed_ms = (time.perf_counter() - start) * 1000
    assert elapsed_ms < 100
