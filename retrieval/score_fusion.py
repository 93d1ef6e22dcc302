"""
Reciprocal Rank Fusion for hybrid retrieval.

Lexical, semantic and relational scores live on different scales, so
they are never compared directly. RRF only looks at ranks:

    score(d) = sum over lists of 1 / (k + rank(d))

with rank 1-indexed. Ties in the fused score are broken by ascending
document position so the output never depends on dict iteration order.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .results import RetrievalResult, RetrievalSource

logger = logging.getLogger(__name__)

DEFAULT_RRF_K = 60


@dataclass
class FusedResult:
    """Result after rank fusion."""

    id: str
    doc_index: int
    content: str
    fused_score: float
    component_scores: Dict[RetrievalSource, float] = field(default_factory=dict)
    rank: int = 0  # Set after sorting, 1-indexed


def sanitize_rrf_k(rrf_k: int) -> int:
    """
    Make k usable in 1 / (k + rank).

    Negative values are replaced by their absolute value and zero by the
    default, as are infinities and NaN. Never raises; corrections are
    logged.
    """
    if not math.isfinite(rrf_k):
        logger.warning(f"rrf_k={rrf_k} is invalid, falling back to {DEFAULT_RRF_K}")
        return DEFAULT_RRF_K

    k = abs(int(rrf_k))
    if k == 0:
        logger.warning(f"rrf_k={rrf_k} is invalid, falling back to {DEFAULT_RRF_K}")
        return DEFAULT_RRF_K
    if k != rrf_k:
        logger.warning(f"rrf_k={rrf_k} is invalid, using {k}")
    return k


def reciprocal_rank_fusion(
    result_sets: Sequence[Sequence[RetrievalResult]],
    k: int = DEFAULT_RRF_K,
) -> List[FusedResult]:
    """
    Fuse independently ranked lists.

    Args:
        result_sets: Ranked lists, best first
        k: RRF constant (use sanitize_rrf_k on untrusted input)

    Returns:
        Deduplicated FusedResult list sorted by fused score, ranks assigned
    """
    fused: Dict[str, FusedResult] = {}

    for results in result_sets:
        for rank, result in enumerate(results):
            # rank is 0-indexed here, RRF ranks start at 1
            rrf_score = 1 / (k + rank + 1)

            entry = fused.get(result.id)
            if entry is None:
                entry = FusedResult(
                    id=result.id,
                    doc_index=result.doc_index,
                    content=result.content,
                    fused_score=0.0,
                )
                fused[result.id] = entry

            entry.fused_score += rrf_score
            entry.component_scores[result.source] = result.score

    ordered = sorted(
        fused.values(), key=lambda r: (-r.fused_score, r.doc_index, r.id)
    )

    for i, result in enumerate(ordered):
        result.rank = i + 1

    return ordered
