"""
Turn controller for OfferScope.

Runs one conversational turn through the pipeline:
1. Query analysis (retrieval intent, display intent, conversation terms)
2. Offer resolution against the catalog (candidates pass the AI product filter)
3. Corpus search, then chunk filtering when the turn resolved to one offer
4. Context keywords from the surviving chunks
5. Contextual hybrid ranking
6. Optional soft-inference assessment

The controller never writes answers. Lookup errors propagate; ambiguity is
returned as data for the answer stage to act on.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from offerscope.assessor.product_filter import ProductFilter
from offerscope.assessor.soft_inference import AssessorResult, SoftInferenceAssessor
from offerscope.core.config import OfferScopeConfig, get_config
from offerscope.data.catalog import CatalogStore, ContentCorpus
from offerscope.offers.chunk_filter import ChunkFilterResult, filter_chunks_by_offer
from offerscope.offers.resolver import OfferResolver
from offerscope.offers.types import ResolutionResult
from offerscope.parsing.context_keywords import extract_context_keywords, extract_query_keywords
from offerscope.parsing.conversation import build_conversation_context, is_follow_up_query
from offerscope.parsing.display_intent import DisplayIntentResult, detect_display_intent_advanced
from offerscope.parsing.query_intent import QueryAnalysis, analyze_query_intent
from offerscope.recommendation.hybrid_ranker import RankedChunk, rank_chunks_with_context
from offerscope.utils.logger import get_logger

logger = get_logger("core.controller")


@dataclass
class TurnResult:
    resolution: ResolutionResult
    ranked_chunks: List[RankedChunk]
    query_analysis: QueryAnalysis
    context_keywords: List[str]
    display_intent: DisplayIntentResult
    filter_result: Optional[ChunkFilterResult] = None
    assessment: Optional[AssessorResult] = None
    conversation_terms: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        """Contract handed to the answer-generation stage."""
        payload: Dict[str, Any] = {
            "resolution": self.resolution.to_dict(),
            "rankedChunks": [r.to_dict() for r in self.ranked_chunks],
            "queryAnalysis": self.query_analysis.to_dict(),
            "contextKeywords": list(self.context_keywords),
            "displayIntent": self.display_intent.to_dict(),
        }
        if self.filter_result is not None:
            payload["chunkFilter"] = self.filter_result.to_dict()
        if self.assessment is not None:
            payload["assessment"] = self.assessment.model_dump()
        return payload


class TurnController:
    """Runs one turn of query understanding and offer-scoped retrieval."""

    def __init__(
        self,
        catalog: CatalogStore,
        corpus: ContentCorpus,
        config: Optional[OfferScopeConfig] = None,
        assessor: Optional[SoftInferenceAssessor] = None,
        product_filter: Optional[ProductFilter] = None,
    ):
        self.config = config or get_config()
        self.catalog = catalog
        self.corpus = corpus
        self.product_filter = product_filter or ProductFilter(config=self.config)
        self.resolver = OfferResolver(catalog, self.config, self.product_filter)
        self.assessor = assessor

    def process_turn(
        self,
        query: str,
        site_id: str,
        messages: Optional[Sequence[Dict[str, Any]]] = None,
        query_embedding: Optional[Sequence[float]] = None,
        assess: bool = True,
        previous_display_intent: Optional[str] = None,
    ) -> TurnResult:
        config = self.config

        analysis = analyze_query_intent(query, messages)
        display_intent = detect_display_intent_advanced(query, previous_display_intent)
        conversation_terms = build_conversation_context(
            messages, last_turns=config.context_last_turns, max_terms=config.context_max_terms
        )
        follow_up = is_follow_up_query(query)
        logger.info(
            f"Turn site={site_id} intent={analysis.intent} display={display_intent.intent} "
            f"follow_up={follow_up} conversation_terms={conversation_terms}"
        )

        resolution = self.resolver.resolve_offer_hint(query, site_id)

        # Follow-ups inherit the topic of the previous turns for retrieval
        search_query = query
        if conversation_terms and follow_up:
            search_query = f"{query} {' '.join(conversation_terms)}"

        candidates = self.corpus.search_chunks(
            site_id, search_query, query_embedding=query_embedding, limit=config.candidate_pool
        )

        filter_result = None
        if resolution.type == "single":
            filter_result = filter_chunks_by_offer(candidates, resolution.offer)
            candidates = filter_result.filtered

        if candidates:
            context_keywords = extract_context_keywords(
                [c.chunk for c in candidates], query, max_keywords=config.context_keywords_max
            )
        else:
            context_keywords = extract_query_keywords(query)

        ranking_terms = list(dict.fromkeys(conversation_terms + context_keywords))
        ranked = rank_chunks_with_context(
            candidates,
            ranking_terms,
            boosts=analysis.content_type_boosts,
            vector_weight=config.vector_weight,
            similarity_threshold=config.similarity_threshold,
            limit=config.retrieval_limit,
            term_boost=config.context_term_boost,
            max_total_boost=config.max_context_boost,
        )

        assessment = None
        if assess and self.assessor is not None:
            assessment = self.assessor.assess(
                query,
                conversation_terms or context_keywords,
                ranked,
                offer_anchor=resolution.offer,
            )

        logger.info(
            f"Turn done site={site_id} resolution={resolution.type} "
            f"candidates={len(candidates)} ranked={len(ranked)}"
        )
        return TurnResult(
            resolution=resolution,
            ranked_chunks=ranked,
            query_analysis=analysis,
            context_keywords=context_keywords,
            display_intent=display_intent,
            filter_result=filter_result,
            assessment=assessment,
            conversation_terms=conversation_terms,
        )
