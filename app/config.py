"""
Configuration module for the code retrieval service.
Manages all environment variables and settings.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


def _env_int(name: str, default: str) -> int:
    return int(os.getenv(name, default))


@dataclass
class FusionSettings:
    """Default fusion parameters; per-request overrides are merged on top."""
    lexical_weight: float = field(default_factory=lambda: _env_float("LEXICAL_WEIGHT", "0.4"))
    semantic_weight: float = field(default_factory=lambda: _env_float("SEMANTIC_WEIGHT", "0.4"))
    relational_weight: float = field(default_factory=lambda: _env_float("RELATIONAL_WEIGHT", "0.2"))
    rrf_k: int = field(default_factory=lambda: _env_int("RRF_K", "60"))
    max_results: int = field(default_factory=lambda: _env_int("MAX_RESULTS", "10"))


@dataclass
class IndexSettings:
    """Per-retriever build parameters."""
    relational_hops: int = field(default_factory=lambda: _env_int("RELATIONAL_HOPS", "1"))
    ngram_size: int = field(default_factory=lambda: _env_int("NGRAM_SIZE", "3"))
    # "ngram" (placeholder) or "sentence-transformers"
    embedding_provider: str = field(default_factory=lambda: os.getenv("EMBEDDING_PROVIDER", "ngram"))
    embedding_model: str = field(default_factory=lambda: os.getenv("EMBEDDING_MODEL", "all-MiniLM-L6-v2"))


@dataclass
class Settings:
    """Main application settings loaded from environment."""

    # Execution
    MAX_WORKERS: int = field(default_factory=lambda: _env_int("MAX_WORKERS", "3"))
    # 0 disables the deadline
    RETRIEVAL_TIMEOUT_SECONDS: float = field(
        default_factory=lambda: _env_float("RETRIEVAL_TIMEOUT_SECONDS", "0")
    )

    # Application settings
    DEBUG: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")
    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Nested configs
    fusion: FusionSettings = field(default_factory=FusionSettings)
    index: IndexSettings = field(default_factory=IndexSettings)

    @property
    def retrieval_timeout(self) -> Optional[float]:
        if self.RETRIEVAL_TIMEOUT_SECONDS > 0:
            return self.RETRIEVAL_TIMEOUT_SECONDS
        return None


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
