"""
Semantic retrieval by cosine similarity.

Documents and the query are vectorized through an injected
EmbeddingProvider; scores are the raw similarities (already in
[0, 1] once non-positive matches are dropped).
"""

import logging
from typing import List, Optional, Sequence, Tuple

from embeddings.providers import (
    EmbeddingProvider,
    NgramEmbeddingProvider,
    cosine_similarity,
)

from .cancellation import CancellationToken, check_cancelled
from .results import RetrievalResult, RetrievalSource, SemanticDetail, document_id

logger = logging.getLogger(__name__)

# Texts per vectorize_batch call when the provider does not configure one
DEFAULT_BATCH_SIZE = 32


class SemanticIndex:
    """
    Vector similarity index over a positional corpus.

    Usage:
        index = SemanticIndex(corpus, provider=NgramEmbeddingProvider())
        results = index.search("user sign in", top_k=10)
    """

    source = RetrievalSource.SEMANTIC

    def __init__(
        self,
        documents: Sequence[str],
        provider: Optional[EmbeddingProvider] = None,
        cancellation: Optional[CancellationToken] = None,
        batch_size: Optional[int] = None,
    ):
        """
        Args:
            documents: Corpus texts, identified by position
            provider: Embedding provider (character trigrams if None)
            cancellation: Optional token checked between batches or documents
            batch_size: Texts per batch call (provider config, else 32)
        """
        self.provider = provider or NgramEmbeddingProvider()
        self._documents = list(documents)

        if batch_size is None:
            config = getattr(self.provider, "config", None)
            batch_size = getattr(config, "batch_size", DEFAULT_BATCH_SIZE)
        self.batch_size = max(int(batch_size), 1)

        check_cancelled(cancellation)
        self._doc_vectors = []
        batch = getattr(self.provider, "vectorize_batch", None)
        if callable(batch):
            for start in range(0, len(self._documents), self.batch_size):
                check_cancelled(cancellation)
                self._doc_vectors.extend(batch(self._documents[start : start + self.batch_size]))
        else:
            for text in self._documents:
                check_cancelled(cancellation)
                self._doc_vectors.append(self.provider.vectorize(text))

    def search(
        self,
        query: str,
        top_k: int = 100,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[RetrievalResult]:
        """
        Rank documents by cosine similarity to the query.

        Args:
            query: Search query
            top_k: Number of results
            cancellation: Optional token checked between documents

        Returns:
            RetrievalResult list, best first
        """
        if not query.strip():
            return []

        query_vector = self.provider.vectorize(query)

        scored: List[Tuple[int, float]] = []
        for doc_index, doc_vector in enumerate(self._doc_vectors):
            check_cancelled(cancellation)
            similarity = cosine_similarity(query_vector, doc_vector)
            if similarity > 0:
                scored.append((doc_index, min(similarity, 1.0)))

        scored.sort(key=lambda x: (-x[1], x[0]))
        logger.debug(f"Semantic search matched {len(scored)} documents")

        return [
            RetrievalResult(
                id=document_id(doc_index),
                doc_index=doc_index,
                content=self._documents[doc_index],
                score=similarity,
                source=self.source,
                detail=SemanticDetail(similarity=similarity),
            )
            for doc_index, similarity in scored[: max(top_k, 0)]
        ]
