"""
Normalization parity check between Python and the database function.

Runs every golden case through ``SELECT normalize_text(:input)`` and compares
it with normalize_text(). A non-empty mismatch list is a release blocker.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.engine import Engine

from offerscope.parsing.normalizer import NORMALIZATION_GOLDEN_CASES, normalize_text
from offerscope.utils.logger import get_logger

logger = get_logger("parsing.parity")


@dataclass
class ParityMismatch:
    """One input where the two implementations disagree."""
    input: str
    expected: str
    python_result: str
    sql_result: Optional[str]


def check_normalization_parity(
    engine: Engine,
    cases: Iterable[Tuple[str, str]] = NORMALIZATION_GOLDEN_CASES,
) -> List[ParityMismatch]:
    """Compare SQL and Python normalization over the golden corpus."""
    mismatches: List[ParityMismatch] = []
    with engine.connect() as conn:
        for raw, expected in cases:
            sql_result = conn.execute(text("SELECT normalize_text(:input)"), {"input": raw}).scalar()
            python_result = normalize_text(raw)
            if sql_result != python_result or python_result != expected:
                mismatches.append(ParityMismatch(raw, expected, python_result, sql_result))

        # NULL must stay NULL in the persistence layer
        null_result = conn.execute(text("SELECT normalize_text(NULL)")).scalar()
        if null_result is not None:
            mismatches.append(ParityMismatch("<NULL>", "<NULL>", normalize_text(None), null_result))

    if mismatches:
        logger.error(f"Normalization parity failed for {len(mismatches)} case(s)")
    else:
        logger.info("Normalization parity OK")
    return mismatches
