"""
Post-retrieval chunk filtering against a resolved offer.

Keeps near-duplicate variants apart: once a turn is anchored to IVISKIN G3,
chunks that only describe the G4 never reach the answer stage. A chunk
survives only if its normalized content contains the target model_norm.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Sequence, TypeVar

from offerscope.offers.types import Offer
from offerscope.parsing.normalizer import normalize_text
from offerscope.utils.logger import get_logger

logger = get_logger("offers.chunk_filter")

FilterMethod = Literal["brand_model", "model_only", "none"]
T = TypeVar("T")

_MODEL_PATTERN = re.compile(r"\b[a-z]+[0-9]+\b")
SAMPLE_EXCERPT_CHARS = 100
MAX_SAMPLES = 3


@dataclass
class ChunkFilterResult:
    filtered: List[Any]
    method: FilterMethod
    fallback: bool
    original_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "fallback": self.fallback,
            "originalCount": self.original_count,
            "filteredCount": len(self.filtered),
        }


@dataclass
class MatchStats:
    brand_matches: int = 0
    model_matches: int = 0
    both_matches: int = 0
    neither_matches: int = 0


@dataclass
class DetailedChunkFilterResult(ChunkFilterResult):
    match_stats: MatchStats = field(default_factory=MatchStats)
    sample_matches: List[str] = field(default_factory=list)


def _content_of(item: Any) -> str:
    # Accepts ContentChunk, ScoredChunk and RankedChunk alike
    chunk = getattr(item, "chunk", item)
    return getattr(chunk, "content", "") or ""


def filter_chunks_by_offer(chunks: Sequence[T], offer: Offer) -> ChunkFilterResult:
    """Keep only chunks that describe the resolved offer.

    brand_model pass first (both norms as substrings), then a model_only pass
    flagged as fallback. An empty result is returned as fallback with no
    chunks; the caller treats that as "no safe context".
    """
    original_count = len(chunks)
    brand, model = offer.brand_norm, offer.model_norm

    if not brand and not model:
        return ChunkFilterResult(list(chunks), "none", False, original_count)

    normalized = [(item, normalize_text(_content_of(item))) for item in chunks]

    if not model:
        filtered = [item for item, text in normalized if brand in text]
        return _finish(ChunkFilterResult(filtered, "brand_model", not filtered, original_count), offer)

    if brand:
        filtered = [item for item, text in normalized if brand in text and model in text]
        if filtered:
            return _finish(ChunkFilterResult(filtered, "brand_model", False, original_count), offer)

    filtered = [item for item, text in normalized if model in text]
    return _finish(ChunkFilterResult(filtered, "model_only", True, original_count), offer)


def _finish(result: ChunkFilterResult, offer: Offer) -> ChunkFilterResult:
    logger.info(
        f"chunk filter offer={offer.id} brand_norm={offer.brand_norm} model_norm={offer.model_norm} "
        f"original={result.original_count} kept={len(result.filtered)} "
        f"method={result.method} fallback={result.fallback}"
    )
    return result


def filter_chunks_detailed(chunks: Sequence[T], offer: Offer) -> DetailedChunkFilterResult:
    """filter_chunks_by_offer plus per-chunk match statistics and sample excerpts."""
    basic = filter_chunks_by_offer(chunks, offer)
    stats = MatchStats()
    samples: List[str] = []

    for item in chunks:
        content = _content_of(item)
        text = normalize_text(content)
        has_brand = bool(offer.brand_norm) and offer.brand_norm in text
        has_model = bool(offer.model_norm) and offer.model_norm in text

        stats.brand_matches += has_brand
        stats.model_matches += has_model
        stats.both_matches += has_brand and has_model
        stats.neither_matches += not has_brand and not has_model

        if (has_brand or has_model) and len(samples) < MAX_SAMPLES:
            if len(content) > SAMPLE_EXCERPT_CHARS:
                samples.append(content[:SAMPLE_EXCERPT_CHARS] + "...")
            else:
                samples.append(content)

    return DetailedChunkFilterResult(
        filtered=basic.filtered,
        method=basic.method,
        fallback=basic.fallback,
        original_count=basic.original_count,
        match_stats=stats,
        sample_matches=samples,
    )


def can_filter_by_offer(offer: Offer) -> bool:
    return bool(offer.brand_norm or offer.model_norm)


def should_use_strict_filtering(offer: Offer, query: str) -> bool:
    """Strict brand+model filtering when the offer has both and the query names a model."""
    has_model_pattern = _MODEL_PATTERN.search(normalize_text(query)) is not None
    return bool(offer.brand_norm and offer.model_norm and has_model_pattern)
