"""
Ranking methods for OfferScope.

- hybrid_ranker: vector + keyword fusion with intent content-type boosts
"""
from offerscope.recommendation.hybrid_ranker import (
    RankedChunk,
    fuse_score,
    rank_chunks,
    rank_chunks_with_context,
)

__all__ = [
    "RankedChunk",
    "fuse_score",
    "rank_chunks",
    "rank_chunks_with_context",
]
