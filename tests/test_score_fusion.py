"""Tests for Reciprocal Rank Fusion."""

import logging

import pytest

from retrieval.results import (
    LexicalDetail,
    RelationalDetail,
    RetrievalResult,
    RetrievalSource,
    SemanticDetail,
)
from retrieval.score_fusion import DEFAULT_RRF_K, reciprocal_rank_fusion, sanitize_rrf_k


def lexical(doc_index, score, content="text"):
    return RetrievalResult(
        id=f"doc-{doc_index}",
        doc_index=doc_index,
        content=content,
        score=score,
        source=RetrievalSource.LEXICAL,
        detail=LexicalDetail(raw_score=score * 3),
    )


def semantic(doc_index, score, content="text"):
    return RetrievalResult(
        id=f"doc-{doc_index}",
        doc_index=doc_index,
        content=content,
        score=score,
        source=RetrievalSource.SEMANTIC,
        detail=SemanticDetail(similarity=score),
    )


def relational(doc_index, score, content="text"):
    return RetrievalResult(
        id=f"doc-{doc_index}",
        doc_index=doc_index,
        content=content,
        score=score,
        source=RetrievalSource.RELATIONAL,
        detail=RelationalDetail(hops=0),
    )


@pytest.fixture
def three_lists():
    lexical_list = [lexical(0, 1.0), lexical(3, 0.88), lexical(5, 0.72), lexical(7, 0.65)]
    semantic_list = [semantic(3, 0.92), semantic(0, 0.87), semantic(7, 0.78), semantic(5, 0.71)]
    relational_list = [relational(0, 0.85), relational(5, 0.8), relational(3, 0.75)]
    return [lexical_list, semantic_list, relational_list]


class TestReciprocalRankFusion:
    def test_single_result_formula(self):
        fused = reciprocal_rank_fusion([[lexical(1, 1.0)]], k=60)
        assert fused[0].fused_score == pytest.approx(1 / 61)

    def test_scores_accumulate_across_lists(self):
        fused = reciprocal_rank_fusion([[lexical(1, 1.0)], [semantic(1, 0.9)]], k=60)

        assert len(fused) == 1
        assert fused[0].fused_score == pytest.approx(2 / 61)
        assert fused[0].component_scores == {
            RetrievalSource.LEXICAL: 1.0,
            RetrievalSource.SEMANTIC: 0.9,
        }

    def test_documents_in_every_list_rank_highest(self, three_lists):
        fused = reciprocal_rank_fusion(three_lists, k=60)
        assert {r.id for r in fused[:2]} == {"doc-0", "doc-3"}

    def test_identical_lists_keep_order(self):
        order = [4, 1, 7, 2]
        lists = [
            [lexical(i, 1.0 - n * 0.1) for n, i in enumerate(order)],
            [semantic(i, 0.9 - n * 0.1) for n, i in enumerate(order)],
        ]

        fused = reciprocal_rank_fusion(lists, k=60)

        assert [r.doc_index for r in fused] == order

    def test_ranks_contiguous_and_scores_non_increasing(self, three_lists):
        fused = reciprocal_rank_fusion(three_lists, k=60)

        assert [r.rank for r in fused] == list(range(1, len(fused) + 1))
        scores = [r.fused_score for r in fused]
        assert scores == sorted(scores, reverse=True)

    def test_ties_broken_by_document_position(self):
        a = [lexical(3, 1.0)]
        b = [semantic(1, 1.0)]

        assert [r.id for r in reciprocal_rank_fusion([a, b])] == ["doc-1", "doc-3"]
        assert [r.id for r in reciprocal_rank_fusion([b, a])] == ["doc-1", "doc-3"]

    def test_deduplicates_and_keeps_first_content(self):
        fused = reciprocal_rank_fusion(
            [[lexical(2, 1.0, content="first")], [semantic(2, 0.5, content="second")]]
        )

        assert len(fused) == 1
        assert fused[0].content == "first"

    def test_lower_k_gives_higher_scores(self, three_lists):
        fused_60 = reciprocal_rank_fusion(three_lists, k=60)
        fused_10 = reciprocal_rank_fusion(three_lists, k=10)

        assert fused_10[0].fused_score > fused_60[0].fused_score

    def test_empty_inputs(self):
        assert reciprocal_rank_fusion([]) == []
        assert reciprocal_rank_fusion([[], [], []]) == []


class TestSanitizeRrfK:
    def test_valid_value_unchanged(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert sanitize_rrf_k(60) == 60
        assert caplog.records == []

    def test_zero_falls_back_to_default(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert sanitize_rrf_k(0) == DEFAULT_RRF_K
        assert "rrf_k=0" in caplog.text

    def test_negative_uses_absolute_value(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert sanitize_rrf_k(-10) == 10
        assert "rrf_k=-10" in caplog.text

    @pytest.mark.parametrize("rrf_k", [float("inf"), float("-inf"), float("nan")])
    def test_non_finite_falls_back_to_default(self, caplog, rrf_k):
        with caplog.at_level(logging.WARNING):
            assert sanitize_rrf_k(rrf_k) == DEFAULT_RRF_K
        assert f"rrf_k={rrf_k}" in caplog.text
