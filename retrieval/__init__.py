"""
Hybrid Retrieval Module.

Retrieval is the optical lens for your LLM.

This module implements:
- Lexical retrieval (BM25)
- Semantic retrieval (cosine similarity over an injected embedding provider)
- Relational retrieval (term co-occurrence graph with hop expansion)
- Reciprocal Rank Fusion of the three rankings

Usage:
    from retrieval import HybridRetriever

    retriever = HybridRetriever()
    output = retriever.retrieve("where is the session token checked?", corpus)
"""

from .cancellation import CancellationToken, RetrievalCancelled, RetrievalError
from .hybrid_retriever import (
    FusionConfig,
    FusionMetrics,
    HybridRetrievalOutput,
    HybridRetriever,
    build_embedding_provider,
    get_retriever,
    retrieve,
)
from .lexical_retriever import LexicalIndex, tokenize
from .relational_retriever import RelationalIndex
from .results import (
    LexicalDetail,
    RankedListProducer,
    RelationalDetail,
    RetrievalResult,
    RetrievalSource,
    SemanticDetail,
)
from .score_fusion import FusedResult, reciprocal_rank_fusion, sanitize_rrf_k
from .vector_retriever import SemanticIndex

__all__ = [
    "CancellationToken",
    "RetrievalCancelled",
    "RetrievalError",
    "FusionConfig",
    "FusionMetrics",
    "HybridRetrievalOutput",
    "HybridRetriever",
    "build_embedding_provider",
    "get_retriever",
    "retrieve",
    "LexicalIndex",
    "tokenize",
    "RelationalIndex",
    "SemanticIndex",
    "LexicalDetail",
    "SemanticDetail",
    "RelationalDetail",
    "RankedListProducer",
    "RetrievalResult",
    "RetrievalSource",
    "FusedResult",
    "reciprocal_rank_fusion",
    "sanitize_rrf_k",
]
