"""Tests for semantic retrieval and embedding providers."""

from types import SimpleNamespace

import numpy as np
import pytest

from embeddings.providers import EmbeddingProvider, NgramEmbeddingProvider, cosine_similarity
from retrieval.cancellation import CancellationToken, RetrievalCancelled
from retrieval.results import RetrievalSource, SemanticDetail
from retrieval.vector_retriever import SemanticIndex


class FixedVectorProvider:
    """Dense provider returning canned vectors."""

    def __init__(self, vectors):
        self.vectors = vectors
        self.calls = 0

    def vectorize(self, text):
        self.calls += 1
        return np.array(self.vectors[text], dtype=float)


class BatchProvider(FixedVectorProvider):
    def __init__(self, vectors):
        super().__init__(vectors)
        self.batch_calls = 0

    def vectorize_batch(self, texts):
        self.batch_calls += 1
        return np.array([self.vectors[t] for t in texts], dtype=float)


class TestNgramEmbeddingProvider:
    def test_trigram_counts(self):
        vec = NgramEmbeddingProvider(n=3).vectorize("ABcd")
        assert dict(vec) == {"abc": 1, "bcd": 1}

    def test_text_shorter_than_n(self):
        assert dict(NgramEmbeddingProvider(n=3).vectorize("ab")) == {}

    def test_rejects_non_positive_n(self):
        with pytest.raises(ValueError):
            NgramEmbeddingProvider(n=0)

    def test_satisfies_protocol(self):
        assert isinstance(NgramEmbeddingProvider(), EmbeddingProvider)


class TestCosineSimilarity:
    def test_sparse_identical(self):
        v = {"abc": 2, "bcd": 1}
        assert cosine_similarity(v, v) == pytest.approx(1.0)

    def test_sparse_disjoint(self):
        assert cosine_similarity({"abc": 1}, {"xyz": 1}) == 0.0

    def test_zero_norm(self):
        assert cosine_similarity({}, {"abc": 1}) == 0.0
        assert cosine_similarity(np.zeros(3), np.ones(3)) == 0.0

    def test_dense(self):
        assert cosine_similarity(np.array([1.0, 0.0]), np.array([1.0, 1.0])) == pytest.approx(
            1 / np.sqrt(2)
        )


class TestSemanticIndex:
    def test_ranks_by_similarity_and_drops_zero(self):
        provider = FixedVectorProvider(
            {"a": [1, 0], "b": [0, 1], "c": [1, 1], "q": [1, 0]}
        )
        index = SemanticIndex(["a", "b", "c"], provider=provider)

        results = index.search("q")

        assert [r.id for r in results] == ["doc-0", "doc-2"]
        assert results[0].score == pytest.approx(1.0)
        assert results[1].score == pytest.approx(1 / np.sqrt(2))
        assert isinstance(results[1].detail, SemanticDetail)
        assert results[1].detail.similarity == results[1].score

    def test_negative_similarity_excluded(self):
        provider = FixedVectorProvider({"a": [-1, 0], "q": [1, 0]})
        assert SemanticIndex(["a"], provider=provider).search("q") == []

    def test_uses_batch_vectorization_when_available(self):
        provider = BatchProvider({"a": [1, 0], "b": [0, 1], "q": [0, 1]})
        index = SemanticIndex(["a", "b"], provider=provider)

        results = index.search("q")

        assert provider.batch_calls == 1
        assert provider.calls == 1  # the query only
        assert [r.id for r in results] == ["doc-1"]

    def test_batches_are_sliced(self):
        provider = BatchProvider({"a": [1, 0], "b": [0, 1], "c": [1, 1], "q": [0, 1]})
        index = SemanticIndex(["a", "b", "c"], provider=provider, batch_size=2)

        assert provider.batch_calls == 2
        assert [r.id for r in index.search("q")] == ["doc-1", "doc-2"]

    def test_batch_size_read_from_provider_config(self):
        provider = BatchProvider({"a": [1, 0], "b": [0, 1], "c": [1, 1]})
        provider.config = SimpleNamespace(batch_size=1)
        SemanticIndex(["a", "b", "c"], provider=provider)

        assert provider.batch_calls == 3

    def test_cancellation_checked_between_batches(self):
        token = CancellationToken()

        class CancellingProvider(BatchProvider):
            def vectorize_batch(self, texts):
                token.cancel()
                return super().vectorize_batch(texts)

        provider = CancellingProvider({"a": [1, 0], "b": [0, 1], "c": [1, 1]})
        with pytest.raises(RetrievalCancelled):
            SemanticIndex(["a", "b", "c"], provider=provider, cancellation=token, batch_size=1)

        assert provider.batch_calls == 1

    def test_default_provider_finds_related_text(self, sample_corpus):
        results = SemanticIndex(sample_corpus).search("sign in credentials")

        assert results
        assert any("credentials" in r.content for r in results)
        for result in results:
            assert result.source == RetrievalSource.SEMANTIC

    def test_scores_bounded_and_sorted(self, sample_corpus):
        results = SemanticIndex(sample_corpus).search("database connection")

        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)
        assert all(0 < s <= 1 for s in scores)

    def test_blank_query(self, sample_corpus):
        index = SemanticIndex(sample_corpus)
        assert index.search("") == []
        assert index.search("   ") == []

    def test_empty_corpus(self):
        assert SemanticIndex([]).search("query") == []

    def test_top_k(self, sample_corpus):
        assert len(SemanticIndex(sample_corpus).search("the", top_k=3)) == 3
