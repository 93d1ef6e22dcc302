"""Tests for the sentence-transformers provider, with a stub model."""

import threading
import time

import numpy as np
import pytest

from embeddings.embedder import EmbeddingConfig, SentenceTransformerEmbeddingProvider
from retrieval.vector_retriever import SemanticIndex


class StubModel:
    """Stands in for a loaded SentenceTransformer."""

    def __init__(self):
        self.encoded = []

    def encode(self, texts, batch_size=32, show_progress_bar=False, convert_to_numpy=True):
        self.encoded.extend(texts)
        vectors = []
        for text in texts:
            vectors.append([float(len(text)), float(text.count("token")), 1.0])
        return np.array(vectors)


@pytest.fixture
def provider():
    return SentenceTransformerEmbeddingProvider(config=EmbeddingConfig(dimension=3), model=StubModel())


class TestSentenceTransformerEmbeddingProvider:
    def test_vectors_are_unit_length(self, provider):
        vectors = provider.vectorize_batch(["def login()", "token token"])

        assert vectors.shape == (2, 3)
        np.testing.assert_allclose(np.linalg.norm(vectors, axis=1), [1.0, 1.0], rtol=1e-6)

    def test_preprocessing_collapses_whitespace(self, provider):
        provider.vectorize("def   login(\n    user)")
        assert provider.model.encoded == ["def login( user)"]

    def test_preprocessing_truncates(self):
        config = EmbeddingConfig(max_seq_length=2)
        provider = SentenceTransformerEmbeddingProvider(config=config, model=StubModel())
        assert provider.preprocess_text("x" * 100) == "x" * 8

    def test_empty_batch(self, provider):
        assert provider.vectorize_batch([]).shape == (0, 3)

    def test_metadata(self, provider):
        meta = provider.get_metadata()
        assert meta["provider"] == "sentence-transformers"
        assert meta["model_name"] == "all-MiniLM-L6-v2"
        assert len(meta["preprocessing_hash"]) == 8

    def test_plugs_into_semantic_index(self, provider):
        index = SemanticIndex(["token check", "unrelated"], provider=provider)

        results = index.search("token")

        assert {r.id for r in results} == {"doc-0", "doc-1"}
        assert all(0 < r.score <= 1 for r in results)


class TestLazyModelLoad:
    def test_injected_model_is_not_reloaded(self, monkeypatch):
        def fail(name):
            raise AssertionError("model should not be loaded")

        monkeypatch.setattr("embeddings.embedder.SentenceTransformer", fail)
        model = StubModel()
        provider = SentenceTransformerEmbeddingProvider(model=model)

        assert provider.model is model

    def test_concurrent_first_use_loads_once(self, monkeypatch):
        loaded = []

        def slow_load(name):
            time.sleep(0.05)
            model = StubModel()
            loaded.append(name)
            return model

        monkeypatch.setattr("embeddings.embedder.SentenceTransformer", slow_load)
        provider = SentenceTransformerEmbeddingProvider()

        seen = []
        threads = [threading.Thread(target=lambda: seen.append(provider.model)) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert loaded == ["all-MiniLM-L6-v2"]
        assert len(seen) == 8
        assert all(m is seen[0] for m in seen)
