"""
Hybrid retrieval combining lexical + semantic + relational rankings.

Retrieval is the optical lens for your LLM.

Each call builds three independent indexes over the supplied corpus,
runs the enabled ones concurrently and merges their ranked lists with
Reciprocal Rank Fusion. Nothing is cached between calls, so the same
retriever can be shared across threads.

Best practices:
- Lexical catches identifiers and exact names
- Semantic catches paraphrases ("sign in" vs "login")
- Relational catches chunks connected through shared vocabulary
"""

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from embeddings.providers import EmbeddingProvider, NgramEmbeddingProvider

from .cancellation import CancellationToken, check_cancelled
from .lexical_retriever import LexicalIndex
from .relational_retriever import DEFAULT_HOPS, RelationalIndex
from .results import RankedListProducer, RetrievalResult, RetrievalSource
from .score_fusion import (
    DEFAULT_RRF_K,
    FusedResult,
    reciprocal_rank_fusion,
    sanitize_rrf_k,
)
from .vector_retriever import SemanticIndex

logger = logging.getLogger(__name__)

# Candidates requested from each retriever before fusion
DEFAULT_CANDIDATE_POOL = 100


@dataclass
class FusionConfig:
    """
    Fusion parameters.

    A weight <= 0 disables that retriever entirely; it is never run.
    Positive weights currently act only as on/off switches.
    """

    lexical_weight: float = 0.4
    semantic_weight: float = 0.4
    relational_weight: float = 0.2
    rrf_k: int = DEFAULT_RRF_K
    max_results: int = 10

    @classmethod
    def from_settings(cls, fusion_settings) -> "FusionConfig":
        return cls(
            lexical_weight=fusion_settings.lexical_weight,
            semantic_weight=fusion_settings.semantic_weight,
            relational_weight=fusion_settings.relational_weight,
            rrf_k=fusion_settings.rrf_k,
            max_results=fusion_settings.max_results,
        )

    def merge(self, overrides: Optional[Mapping[str, Any]]) -> "FusionConfig":
        """
        Apply a partial override. None values and unknown keys are ignored.

        Args:
            overrides: e.g. {"relational_weight": 0, "max_results": 5}

        Returns:
            New FusionConfig
        """
        if not overrides:
            return self

        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            logger.warning(f"Ignoring unknown fusion config keys: {sorted(unknown)}")

        changes = {k: v for k, v in overrides.items() if k in known and v is not None}
        return replace(self, **changes)

    def weight_for(self, source: RetrievalSource) -> float:
        return {
            RetrievalSource.LEXICAL: self.lexical_weight,
            RetrievalSource.SEMANTIC: self.semantic_weight,
            RetrievalSource.RELATIONAL: self.relational_weight,
        }[source]

    def enabled_sources(self) -> List[RetrievalSource]:
        return [s for s in RetrievalSource if self.weight_for(s) > 0]


@dataclass
class FusionMetrics:
    """Per-call counters."""

    lexical_count: int = 0
    semantic_count: int = 0
    relational_count: int = 0
    fusion_time_ms: float = 0.0


@dataclass
class HybridRetrievalOutput:
    """Fused ranking plus metrics for one retrieve() call."""

    results: List[FusedResult] = field(default_factory=list)
    metrics: FusionMetrics = field(default_factory=FusionMetrics)


RetrieverFactory = Callable[
    [Sequence[str], Optional[CancellationToken]], RankedListProducer
]


class HybridRetriever:
    """
    Hybrid retrieval with Reciprocal Rank Fusion.

    Usage:
        retriever = HybridRetriever()
        output = retriever.retrieve(
            "where are session tokens validated?",
            corpus,
            config={"max_results": 5},
        )
        for result in output.results:
            print(result.rank, result.id, result.component_scores)
    """

    def __init__(
        self,
        default_config: Optional[FusionConfig] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        relational_hops: int = DEFAULT_HOPS,
        max_workers: int = 3,
        candidate_pool: int = DEFAULT_CANDIDATE_POOL,
    ):
        """
        Args:
            default_config: Config used when a call passes no overrides
            embedding_provider: Vectorizer for the semantic retriever
            relational_hops: Graph hops for query expansion
            max_workers: Threads used to run retrievers concurrently
            candidate_pool: Results requested from each retriever
        """
        self.default_config = default_config or FusionConfig()
        self.embedding_provider = embedding_provider or NgramEmbeddingProvider()
        self.relational_hops = relational_hops
        self.max_workers = max_workers
        self.candidate_pool = candidate_pool

        self._factories: Dict[RetrievalSource, RetrieverFactory] = {
            RetrievalSource.LEXICAL: lambda corpus, token: LexicalIndex(
                corpus, cancellation=token
            ),
            RetrievalSource.SEMANTIC: lambda corpus, token: SemanticIndex(
                corpus, provider=self.embedding_provider, cancellation=token
            ),
            RetrievalSource.RELATIONAL: lambda corpus, token: RelationalIndex(
                corpus, hops=self.relational_hops, cancellation=token
            ),
        }

    def resolve_config(
        self, config: Union[FusionConfig, Mapping[str, Any], None]
    ) -> FusionConfig:
        if isinstance(config, FusionConfig):
            return config
        return self.default_config.merge(config)

    def enabled_retrievers(self, config: FusionConfig) -> Dict[RetrievalSource, RetrieverFactory]:
        """Retrievers that will run for this config, in fixed source order."""
        return {s: self._factories[s] for s in config.enabled_sources()}

    def search_source(
        self,
        source: RetrievalSource,
        query: str,
        corpus: Sequence[str],
        cancellation: Optional[CancellationToken] = None,
    ) -> List[RetrievalResult]:
        """
        Run a single retriever over the corpus.

        Args:
            source: Which retriever to run
            query: Search query
            corpus: Corpus texts
            cancellation: Optional cancellation token

        Returns:
            That retriever's ranked list
        """
        if not query.strip() or not corpus:
            return []

        index = self._factories[source](corpus, cancellation)
        return index.search(query, top_k=self.candidate_pool, cancellation=cancellation)

    def retrieve(
        self,
        query: str,
        corpus: Sequence[str],
        config: Union[FusionConfig, Mapping[str, Any], None] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> HybridRetrievalOutput:
        """
        Retrieve and fuse results from all enabled retrievers.

        Args:
            query: Natural-language or identifier query
            corpus: Code units, identified by position
            config: FusionConfig or partial override mapping
            cancellation: Optional token; raises RetrievalCancelled when tripped

        Returns:
            HybridRetrievalOutput with ranked results and metrics
        """
        config = self.resolve_config(config)

        # NaN compares false against everything, so test it explicitly
        max_results = config.max_results
        if not query.strip() or not corpus or math.isnan(max_results) or max_results <= 0:
            return HybridRetrievalOutput()

        rrf_k = sanitize_rrf_k(config.rrf_k)
        retrievers = self.enabled_retrievers(config)

        start = time.perf_counter()

        ranked_lists = self._run_retrievers(retrievers, query, corpus, cancellation)

        check_cancelled(cancellation)
        fused = reciprocal_rank_fusion(list(ranked_lists.values()), rrf_k)

        fusion_time_ms = (time.perf_counter() - start) * 1000

        metrics = FusionMetrics(
            lexical_count=len(ranked_lists.get(RetrievalSource.LEXICAL, [])),
            semantic_count=len(ranked_lists.get(RetrievalSource.SEMANTIC, [])),
            relational_count=len(ranked_lists.get(RetrievalSource.RELATIONAL, [])),
            fusion_time_ms=fusion_time_ms,
        )
        logger.debug(
            f"Fused {len(fused)} documents from {[s.value for s in retrievers]} "
            f"(lex={metrics.lexical_count}, sem={metrics.semantic_count}, "
            f"rel={metrics.relational_count}) in {fusion_time_ms:.1f}ms"
        )

        return HybridRetrievalOutput(
            results=fused if math.isinf(max_results) else fused[: int(max_results)],
            metrics=metrics,
        )

    def _run_retrievers(
        self,
        retrievers: Dict[RetrievalSource, RetrieverFactory],
        query: str,
        corpus: Sequence[str],
        cancellation: Optional[CancellationToken],
    ) -> Dict[RetrievalSource, List[RetrievalResult]]:
        """Run retrievers concurrently; results keyed in source order."""
        if not retrievers:
            return {}

        def run(source: RetrievalSource) -> List[RetrievalResult]:
            return self.search_source(source, query, corpus, cancellation)

        if self.max_workers <= 1 or len(retrievers) == 1:
            return {source: run(source) for source in retrievers}

        workers = min(self.max_workers, len(retrievers))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {source: executor.submit(run, source) for source in retrievers}
            return {source: future.result() for source, future in futures.items()}


def build_embedding_provider(index_settings) -> EmbeddingProvider:
    """
    Create the configured embedding provider.

    Raises:
        ValueError: Unknown provider name
    """
    name = index_settings.embedding_provider
    if name == "ngram":
        return NgramEmbeddingProvider(n=index_settings.ngram_size)
    if name == "sentence-transformers":
        from embeddings.embedder import EmbeddingConfig, SentenceTransformerEmbeddingProvider

        return SentenceTransformerEmbeddingProvider(
            config=EmbeddingConfig(model_name=index_settings.embedding_model)
        )
    raise ValueError(f"Unknown embedding provider: {name}")


# Convenience functions
_retriever: Optional[HybridRetriever] = None


def get_retriever() -> HybridRetriever:
    """Get or create global retriever instance from settings."""
    global _retriever
    if _retriever is None:
        from app.config import get_settings

        settings = get_settings()
        _retriever = HybridRetriever(
            default_config=FusionConfig.from_settings(settings.fusion),
            embedding_provider=build_embedding_provider(settings.index),
            relational_hops=settings.index.relational_hops,
            max_workers=settings.MAX_WORKERS,
        )
    return _retriever


def retrieve(
    query: str,
    corpus: Sequence[str],
    config: Union[FusionConfig, Mapping[str, Any], None] = None,
) -> HybridRetrievalOutput:
    """Convenience function for retrieval."""
    return get_retriever().retrieve(query, corpus, config)
