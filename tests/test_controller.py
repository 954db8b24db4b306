"""
End-to-end tests for one turn through the TurnController.
"""

import pytest

from offerscope.assessor import AssessorResult, ProductFilter, SoftInferenceAssessor
from offerscope.assessor.product_filter import ProductFilterResult
from offerscope.core.config import OfferScopeConfig
from offerscope.core.controller import TurnController
from offerscope.core.errors import CatalogLookupError, CorpusLookupError
from offerscope.data.catalog import InMemoryCorpus

from conftest import SITE_ID, FailingCatalog, FailingCorpus


class RecordingCorpus:
    def __init__(self, inner):
        self.inner = inner
        self.queries = []

    def search_chunks(self, site_id, query, query_embedding=None, limit=20):
        self.queries.append(query)
        return self.inner.search_chunks(site_id, query, query_embedding=query_embedding, limit=limit)


@pytest.fixture
def controller(catalog, corpus, config):
    return TurnController(catalog, corpus, config)


class TestSingleOffer:
    def test_only_g3_chunks_reach_ranking(self, controller):
        result = controller.process_turn("Er IVISKIN G3 bra?", SITE_ID)
        assert result.resolution.type == "single"
        assert result.resolution.offer.id == "iviskin-g3"
        assert result.filter_result.method == "brand_model"
        assert {r.chunk.chunk_id for r in result.ranked_chunks} == {"c1", "c4"}

    def test_payload(self, controller):
        payload = controller.process_turn("Er IVISKIN G3 bra?", SITE_ID).to_payload()
        assert payload["resolution"]["type"] == "single"
        assert payload["chunkFilter"]["originalCount"] == 6
        assert payload["chunkFilter"]["filteredCount"] == 2
        assert payload["queryAnalysis"]["intent"] == "specific_product"
        assert "assessment" not in payload
        assert payload["rankedChunks"][0]["chunkId"] in ("c1", "c4")

    def test_ranked_scores_descending(self, controller):
        ranked = controller.process_turn("Er IVISKIN G3 bra?", SITE_ID).ranked_chunks
        scores = [r.score for r in ranked]
        assert scores == sorted(scores, reverse=True)


class TestAmbiguousTurns:
    def test_comparison_is_not_filtered(self, controller):
        result = controller.process_turn("G3 vs G4 differences", SITE_ID)
        assert result.resolution.type == "multiple"
        assert result.filter_result is None
        assert "chunkFilter" not in result.to_payload()
        assert len(result.ranked_chunks) > 2

    def test_unknown_product(self, controller):
        result = controller.process_turn("toothbrush recommendations", SITE_ID)
        assert result.resolution.type == "none"
        assert result.filter_result is None


class TestContext:
    def test_query_keywords_without_chunks(self, catalog, config):
        controller = TurnController(catalog, InMemoryCorpus(), config)
        result = controller.process_turn("Er IVISKIN G3 bra?", SITE_ID)
        assert result.ranked_chunks == []
        assert result.context_keywords == ["iviskin", "g3"]

    def test_follow_up_carries_conversation_terms(self, catalog, corpus, config):
        recording = RecordingCorpus(corpus)
        controller = TurnController(catalog, recording, config)
        messages = [
            {"role": "user", "content": "Tell me about IVISKIN G3"},
            {"role": "assistant", "content": "The G3 has 5 energy levels"},
            {"role": "user", "content": "what about battery?"},
        ]
        result = controller.process_turn("what about battery?", SITE_ID, messages=messages)
        assert result.conversation_terms[0] == "iviskin g3"
        assert "iviskin g3" in recording.queries[0]

    def test_standalone_query_searched_as_is(self, catalog, corpus, config):
        recording = RecordingCorpus(corpus)
        controller = TurnController(catalog, recording, config)
        messages = [
            {"role": "user", "content": "Tell me about IVISKIN G3"},
            {"role": "assistant", "content": "Sure"},
        ]
        query = "explain general IPL safety guidance for home hair removal"
        controller.process_turn(query, SITE_ID, messages=messages + [{"role": "user", "content": query}])
        assert recording.queries == [query]

    def test_technical_query_hides_products(self, controller):
        result = controller.process_turn("login error on my G3", SITE_ID)
        assert result.display_intent.should_show_products is False
        assert result.to_payload()["displayIntent"]["intent"] == "technical"


class TestAssessment:
    def test_assessor_runs_with_anchor(self, catalog, corpus, config, fake_openai):
        client = fake_openai(parsed=AssessorResult(confidence="high", safe_inference=True))
        controller = TurnController(catalog, corpus, config, SoftInferenceAssessor(client, config))
        result = controller.process_turn("does the IVISKIN G3 work on legs", SITE_ID)
        assert result.assessment.safe_inference is True
        prompt = client.calls[0]["messages"][1]["content"]
        assert "Offer anchor: IVISKIN G3" in prompt
        assert result.to_payload()["assessment"]["confidence"] == "high"

    def test_assess_false_skips(self, catalog, corpus, config, fake_openai):
        client = fake_openai(parsed=AssessorResult(confidence="high", safe_inference=True))
        controller = TurnController(catalog, corpus, config, SoftInferenceAssessor(client, config))
        result = controller.process_turn("IVISKIN G3", SITE_ID, assess=False)
        assert result.assessment is None
        assert client.calls == []


class TestErrors:
    def test_catalog_failure_propagates(self, corpus, config):
        with pytest.raises(CatalogLookupError):
            TurnController(FailingCatalog(), corpus, config).process_turn("IVISKIN G3", SITE_ID)

    def test_corpus_failure_propagates(self, catalog, config):
        with pytest.raises(CorpusLookupError):
            TurnController(catalog, FailingCorpus(), config).process_turn("IVISKIN G3", SITE_ID)


class TestProductFilterStep:
    def test_filter_scopes_the_turn(self, mixed_catalog, corpus, fake_openai):
        config = OfferScopeConfig(product_filter_enabled=True)
        client = fake_openai(parsed=ProductFilterResult(relevant_ids=["iviskin-g3"]))
        controller = TurnController(mixed_catalog, corpus, config, product_filter=ProductFilter(client, config))
        result = controller.process_turn("g3 hair removal", SITE_ID)
        assert result.resolution.type == "single"
        assert result.resolution.offer.id == "iviskin-g3"
        assert {r.chunk.chunk_id for r in result.ranked_chunks} == {"c1", "c4"}
        assert len(client.calls) == 1

    def test_default_filter_passes_through(self, mixed_catalog, corpus, config):
        controller = TurnController(mixed_catalog, corpus, config)
        assert controller.product_filter.enabled is False
        assert controller.process_turn("g3 battery life", SITE_ID).resolution.type == "multiple"
