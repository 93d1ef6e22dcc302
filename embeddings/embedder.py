"""
Sentence-transformers embedding provider.

CRITICAL: Query and corpus vectors must come from the same model.
SemanticIndex vectorizes both through one provider instance per call,
so this holds as long as the provider is not swapped mid-call.
"""

import hashlib
import logging
import threading
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
from sentence_transformers import SentenceTransformer

logger = logging.getLogger(__name__)


@dataclass
class EmbeddingConfig:
    """
    Embedding model configuration.

    IMPORTANT: Scores from different models are not comparable; bump
    version whenever any value changes.
    """

    model_name: str = "all-MiniLM-L6-v2"
    normalize: bool = True
    version: str = "2025-01-01"
    dimension: int = 384  # Matches all-MiniLM-L6-v2
    max_seq_length: int = 512
    batch_size: int = 32


class SentenceTransformerEmbeddingProvider:
    """
    Dense EmbeddingProvider backed by a sentence-transformers model.

    Usage:
        provider = SentenceTransformerEmbeddingProvider()
        index = SemanticIndex(corpus, provider=provider)

        # With custom config
        config = EmbeddingConfig(model_name="BAAI/bge-small-en-v1.5", dimension=384)
        provider = SentenceTransformerEmbeddingProvider(config=config)
    """

    def __init__(
        self,
        config: Optional[EmbeddingConfig] = None,
        model: Optional[SentenceTransformer] = None,
    ):
        """
        Args:
            config: Model configuration
            model: Pre-loaded model (loaded lazily from config if None)
        """
        self.config = config or EmbeddingConfig()
        self._model = model
        self._load_lock = threading.Lock()
        self._preprocessing_hash = self._compute_preprocessing_hash()

    def _compute_preprocessing_hash(self) -> str:
        """Hash preprocessing config for drift detection."""
        config_str = (
            f"{self.config.model_name}:"
            f"{self.config.normalize}:"
            f"{self.config.version}"
        )
        return hashlib.md5(config_str.encode()).hexdigest()[:8]

    @property
    def model(self) -> SentenceTransformer:
        """Lazy load the model, once even when retrievers share the provider."""
        if self._model is None:
            with self._load_lock:
                if self._model is None:
                    logger.info(f"Loading embedding model: {self.config.model_name}")
                    self._model = SentenceTransformer(self.config.model_name)
        return self._model

    def preprocess_text(self, text: str) -> str:
        """
        Deterministic text preprocessing.

        Collapses whitespace (code indentation carries no meaning for the
        model) and truncates very long chunks.
        """
        text = " ".join(text.split())

        max_chars = self.config.max_seq_length * 4  # Approximate
        if len(text) > max_chars:
            text = text[:max_chars]

        return text

    def vectorize_batch(self, texts: List[str]) -> np.ndarray:
        """Embed many texts in one model call, one row per text."""
        if not texts:
            return np.zeros((0, self.config.dimension))

        processed = [self.preprocess_text(t) for t in texts]
        vectors = self.model.encode(
            processed,
            batch_size=self.config.batch_size,
            show_progress_bar=False,
            convert_to_numpy=True,
        )
        vectors = np.asarray(vectors, dtype=float)

        # Normalize to unit length for cosine similarity
        if self.config.normalize:
            norms = np.linalg.norm(vectors, axis=1, keepdims=True)
            vectors = vectors / (norms + 1e-10)  # Avoid division by zero

        return vectors

    def vectorize(self, text: str) -> np.ndarray:
        return self.vectorize_batch([text])[0]

    def get_metadata(self) -> dict:
        """Get embedding configuration metadata."""
        return {
            "provider": "sentence-transformers",
            "model_name": self.config.model_name,
            "version": self.config.version,
            "dimension": self.config.dimension,
            "normalize": self.config.normalize,
            "preprocessing_hash": self._preprocessing_hash,
        }
