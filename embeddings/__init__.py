"""
Embeddings Module.

CRITICAL: Never compare vectors produced by different providers.

This module handles:
- The EmbeddingProvider interface consumed by SemanticIndex
- A character n-gram placeholder provider (no model weights needed)
- A sentence-transformers provider for production use

The sentence-transformers provider is not imported here so that the
retrieval core does not load torch unless it is configured.

Usage:
    from embeddings import NgramEmbeddingProvider
    from embeddings.embedder import SentenceTransformerEmbeddingProvider

    provider = SentenceTransformerEmbeddingProvider()
    vectors = provider.vectorize_batch(["def login(user)", "class Session"])
"""

from .providers import (
    EmbeddingProvider,
    NgramEmbeddingProvider,
    SparseVector,
    Vector,
    cosine_similarity,
)

__all__ = [
    "EmbeddingProvider",
    "NgramEmbeddingProvider",
    "SparseVector",
    "Vector",
    "cosine_similarity",
]
