"""
Tests for hybrid ranking of chunks.
"""

import pytest

from offerscope.offers.types import ContentChunk, ScoredChunk
from offerscope.recommendation import (
    fuse_score,
    rank_chunks,
    rank_chunks_with_context,
)


def _chunk(chunk_id, similarity, content_type="general", content="text", title=""):
    return ContentChunk(chunk_id, "m", title, content, similarity=similarity,
                        metadata={"contentType": content_type})


def test_fuse_score():
    assert fuse_score(0.8, 0.5, 0.7) == pytest.approx(0.71)
    assert fuse_score(0.8, 0.5, 1.0) == pytest.approx(0.8)


class TestRankChunks:
    def test_boost_reorders(self):
        candidates = [
            ScoredChunk(_chunk("plain", 0.9)),
            ScoredChunk(_chunk("review", 0.5, "review")),
        ]
        ranked = rank_chunks(candidates, boosts={"review": 2.0, "general": 1.0})
        assert [r.chunk.chunk_id for r in ranked] == ["review", "plain"]
        assert ranked[0].score == pytest.approx(0.7)
        assert ranked[0].base_score == pytest.approx(0.35)
        assert ranked[0].boost == 2.0

    def test_threshold_is_exclusive(self):
        candidates = [ScoredChunk(_chunk("low", 0.4)), ScoredChunk(_chunk("high", 0.9))]
        ranked = rank_chunks(candidates, similarity_threshold=0.3)
        assert [r.chunk.chunk_id for r in ranked] == ["high"]

    def test_keyword_score_counts(self):
        ranked = rank_chunks([ScoredChunk(_chunk("kw", 0.4), keyword_score=1.0)])
        assert ranked[0].score == pytest.approx(0.58)

    def test_unknown_type_uses_general_boost(self):
        ranked = rank_chunks([ScoredChunk(_chunk("t", 1.0, "tutorial"))], boosts={"general": 0.5})
        assert ranked[0].boost == 0.5

    def test_limit(self):
        candidates = [ScoredChunk(_chunk(str(i), 0.9 - i * 0.01)) for i in range(15)]
        ranked = rank_chunks(candidates, limit=4)
        assert [r.chunk.chunk_id for r in ranked] == ["0", "1", "2", "3"]


class TestContextBoost:
    def test_bonus_capped(self):
        chunk = _chunk("c", 0.5, content="ice cooling for IPL treatment")
        ranked = rank_chunks_with_context([ScoredChunk(chunk)], ["ipl", "cooling", "ice"])
        assert ranked[0].context_matches == ["ipl", "cooling", "ice"]
        assert ranked[0].score == pytest.approx(0.35 + 0.25)

    def test_title_counts(self):
        chunk = _chunk("c", 0.5, title="IPL guide")
        ranked = rank_chunks_with_context([ScoredChunk(chunk)], ["ipl"])
        assert ranked[0].score == pytest.approx(0.45)

    def test_bonus_can_lift_over_threshold(self):
        chunk = _chunk("c", 0.4, content="ipl")
        assert rank_chunks([ScoredChunk(chunk)]) == []
        assert len(rank_chunks_with_context([ScoredChunk(chunk)], ["ipl"])) == 1

    def test_to_dict(self):
        ranked = rank_chunks_with_context([ScoredChunk(_chunk("c", 0.9, content="ipl"))], ["ipl"])
        payload = ranked[0].to_dict()
        assert payload["chunkId"] == "c"
        assert payload["contextMatches"] == ["ipl"]
        assert "baseScore" in payload
