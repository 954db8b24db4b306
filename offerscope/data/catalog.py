"""
Catalog and content-corpus lookup contracts, with in-memory implementations.

The resolver and the turn controller only depend on the CatalogStore and
ContentCorpus protocols. InMemoryCatalog/InMemoryCorpus back local runs and
tests; supabase_store provides the production lookups.
"""
from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

import numpy as np

from offerscope.offers.types import ContentChunk, Offer, ScoredChunk
from offerscope.parsing.normalizer import normalize_text
from offerscope.utils.logger import get_logger

logger = get_logger("data.catalog")

_WORD_RE = re.compile(r"[^\W_]+")


class CatalogStore(Protocol):
    """Read-only offer catalog."""

    def find_offers(self, site_id: str, tokens: Sequence[str]) -> List[Offer]:
        """Return offers whose brand/model/alias normalized forms intersect tokens."""
        ...

    def get_offer(self, site_id: str, offer_id: str) -> Optional[Offer]:
        ...


class ContentCorpus(Protocol):
    """Read-only content corpus with precomputed similarity."""

    def search_chunks(
        self,
        site_id: str,
        query: str,
        query_embedding: Optional[Sequence[float]] = None,
        limit: int = 20,
    ) -> List[ScoredChunk]:
        ...


class InMemoryCatalog:
    """Catalog held in a dict keyed by site id."""

    def __init__(self, offers: Iterable[Offer] = ()):
        self._offers: Dict[str, List[Offer]] = {}
        for offer in offers:
            self.add(offer)

    def add(self, offer: Offer) -> None:
        self._offers.setdefault(offer.site_id, []).append(offer)

    def find_offers(self, site_id: str, tokens: Sequence[str]) -> List[Offer]:
        wanted = {normalize_text(t) for t in tokens if t}
        if not wanted:
            return []
        matches = []
        for offer in self._offers.get(site_id, []):
            keys = {offer.brand_norm, offer.model_norm, *offer.alias_norms}
            # Multi-word norms match when every word is among the tokens
            if keys & wanted or any(k and set(k.split()) <= wanted for k in keys):
                matches.append(offer)
        return matches

    def get_offer(self, site_id: str, offer_id: str) -> Optional[Offer]:
        for offer in self._offers.get(site_id, []):
            if offer.id == offer_id:
                return offer
        return None


class InMemoryCorpus:
    """Chunk corpus with optional embeddings.

    Vector similarity is the cosine between the query embedding and the chunk
    embedding; without embeddings the chunk's stored similarity is used.
    The keyword score is the share of query words found in the chunk.
    """

    def __init__(self):
        self._chunks: Dict[str, List[ContentChunk]] = {}
        self._embeddings: Dict[str, np.ndarray] = {}

    def add(self, site_id: str, chunk: ContentChunk, embedding: Optional[Sequence[float]] = None) -> None:
        self._chunks.setdefault(site_id, []).append(chunk)
        if embedding is not None:
            self._embeddings[chunk.chunk_id] = np.asarray(embedding, dtype=np.float32)

    def search_chunks(
        self,
        site_id: str,
        query: str,
        query_embedding: Optional[Sequence[float]] = None,
        limit: int = 20,
    ) -> List[ScoredChunk]:
        query_words = set(_WORD_RE.findall(normalize_text(query)))
        query_vec = np.asarray(query_embedding, dtype=np.float32) if query_embedding is not None else None

        scored = []
        for chunk in self._chunks.get(site_id, []):
            similarity = chunk.similarity
            if query_vec is not None and chunk.chunk_id in self._embeddings:
                similarity = _cosine(query_vec, self._embeddings[chunk.chunk_id])
                chunk = ContentChunk(
                    chunk_id=chunk.chunk_id,
                    material_id=chunk.material_id,
                    material_title=chunk.material_title,
                    content=chunk.content,
                    similarity=similarity,
                    metadata=chunk.metadata,
                )
            keyword_score = _keyword_overlap(query_words, chunk)
            scored.append(ScoredChunk(chunk=chunk, keyword_score=keyword_score))

        scored.sort(key=lambda s: (s.chunk.similarity, s.keyword_score), reverse=True)
        logger.debug(f"In-memory corpus returned {min(len(scored), limit)} of {len(scored)} chunks")
        return scored[:limit]


def _cosine(a: np.ndarray, b: np.ndarray) -> float:
    denom = float(np.linalg.norm(a) * np.linalg.norm(b))
    if denom == 0.0:
        return 0.0
    # Clamp to [0, 1]: negative cosine carries no relevance signal here
    return max(0.0, min(1.0, float(np.dot(a, b) / denom)))


def _keyword_overlap(query_words: set, chunk: ContentChunk) -> float:
    if not query_words:
        return 0.0
    chunk_words = set(_WORD_RE.findall(normalize_text(f"{chunk.material_title} {chunk.content}")))
    return len(query_words & chunk_words) / len(query_words)
