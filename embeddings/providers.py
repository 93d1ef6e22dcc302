"""
Embedding provider interface and the character n-gram placeholder.

SemanticIndex only depends on EmbeddingProvider. Inject a real model
(see embedder.SentenceTransformerEmbeddingProvider) for production;
NgramEmbeddingProvider exists so the core runs without model weights
and must not ship as the only vectorizer.
"""

import logging
import math
from collections import Counter
from typing import Mapping, Protocol, Union, runtime_checkable

import numpy as np

logger = logging.getLogger(__name__)

SparseVector = Mapping[str, float]
Vector = Union[SparseVector, np.ndarray]


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns text into a sparse mapping or a dense numpy vector."""

    def vectorize(self, text: str) -> Vector:
        ...


def _sparse_cosine(v1: SparseVector, v2: SparseVector) -> float:
    if len(v1) > len(v2):
        v1, v2 = v2, v1
    dot = sum(val * v2.get(key, 0.0) for key, val in v1.items())
    norm1 = math.sqrt(sum(val * val for val in v1.values()))
    norm2 = math.sqrt(sum(val * val for val in v2.values()))
    if norm1 == 0 or norm2 == 0:
        return 0.0
    return dot / (norm1 * norm2)


def _dense_cosine(v1: np.ndarray, v2: np.ndarray) -> float:
    norm1 = float(np.linalg.norm(v1))
    norm2 = float(np.linalg.norm(v2))
    if norm1 == 0 or norm2 == 0:
        return 0.0
    return float(np.dot(v1, v2) / (norm1 * norm2))


def cosine_similarity(v1: Vector, v2: Vector) -> float:
    """
    Cosine similarity for two vectors of the same kind.

    Args:
        v1: Sparse mapping or dense array
        v2: Same kind as v1

    Returns:
        Similarity in [-1, 1]; 0.0 when either vector has zero norm
    """
    if isinstance(v1, np.ndarray) or isinstance(v2, np.ndarray):
        return _dense_cosine(np.asarray(v1, dtype=float), np.asarray(v2, dtype=float))
    return _sparse_cosine(v1, v2)


class NgramEmbeddingProvider:
    """
    Character n-gram frequency vectors (simplified embedding).

    Usage:
        provider = NgramEmbeddingProvider(n=3)
        vec = provider.vectorize("def login")  # {"def": 1, "ef ": 1, ...}
    """

    def __init__(self, n: int = 3):
        if n < 1:
            raise ValueError(f"n-gram size must be positive, got {n}")
        self.n = n

    def vectorize(self, text: str) -> SparseVector:
        normalized = text.lower()
        return Counter(
            normalized[i : i + self.n] for i in range(len(normalized) - self.n + 1)
        )

    def get_metadata(self) -> dict:
        return {"provider": "ngram", "n": self.n}
