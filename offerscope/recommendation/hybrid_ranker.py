"""
Hybrid retrieval ranking for content chunks.

Fuses vector similarity with a keyword score, then reweights by the
content-type boosts of the query's intent:
1. fused = w * similarity + (1 - w) * keyword_score
2. score = fused * boost[content_type] (+ context-keyword bonus, optional)
3. keep score > threshold, sort descending, truncate to limit
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from offerscope.offers.types import ContentChunk, ScoredChunk
from offerscope.utils.logger import get_logger

logger = get_logger("recommendation.hybrid_ranker")


@dataclass
class RankedChunk:
    chunk: ContentChunk
    score: float
    base_score: float
    boost: float = 1.0
    context_matches: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        payload = self.chunk.to_dict()
        payload.update({
            "score": self.score,
            "baseScore": self.base_score,
            "boost": self.boost,
            "contextMatches": list(self.context_matches),
        })
        return payload


def fuse_score(similarity: float, keyword_score: float, vector_weight: float = 0.7) -> float:
    return vector_weight * similarity + (1.0 - vector_weight) * keyword_score


def _boost_for(content_type: str, boosts: Optional[Dict[str, float]]) -> float:
    if not boosts:
        return 1.0
    return boosts.get(content_type, boosts.get("general", 1.0))


def rank_chunks(
    candidates: Iterable[ScoredChunk],
    boosts: Optional[Dict[str, float]] = None,
    vector_weight: float = 0.7,
    similarity_threshold: float = 0.3,
    limit: int = 10,
) -> List[RankedChunk]:
    """
    Rank corpus candidates by boosted hybrid score.

    Args:
        candidates: Chunks with similarity and keyword score
        boosts: Content-type weights from query intent analysis
        vector_weight: Share of vector similarity in the fused score
        similarity_threshold: Scores at or below this are dropped
        limit: Maximum number of chunks returned

    Returns:
        Ranked chunks, best first
    """
    return rank_chunks_with_context(
        candidates,
        context_keywords=(),
        boosts=boosts,
        vector_weight=vector_weight,
        similarity_threshold=similarity_threshold,
        limit=limit,
    )


def rank_chunks_with_context(
    candidates: Iterable[ScoredChunk],
    context_keywords: Sequence[str],
    boosts: Optional[Dict[str, float]] = None,
    vector_weight: float = 0.7,
    similarity_threshold: float = 0.3,
    limit: int = 10,
    term_boost: float = 0.1,
    max_total_boost: float = 0.25,
) -> List[RankedChunk]:
    """
    Like rank_chunks, with an additive bonus for context keywords.

    Each context keyword found in the chunk content or title adds term_boost,
    capped at max_total_boost.
    """
    keywords = [k.lower() for k in context_keywords if k]
    ranked: List[RankedChunk] = []

    for candidate in candidates:
        chunk = candidate.chunk
        base = fuse_score(chunk.similarity, candidate.keyword_score, vector_weight)
        boost = _boost_for(chunk.content_type, boosts)
        score = base * boost

        matches: List[str] = []
        if keywords:
            haystack = f"{chunk.content} {chunk.material_title}".lower()
            matches = [k for k in keywords if k in haystack]
            score += min(len(matches) * term_boost, max_total_boost)

        if score > similarity_threshold:
            ranked.append(RankedChunk(chunk=chunk, score=score, base_score=base, boost=boost,
                                      context_matches=matches))

    ranked.sort(key=lambda r: r.score, reverse=True)
    logger.debug(f"Ranked {len(ranked)} chunk(s) above threshold {similarity_threshold}")
    return ranked[:limit]
