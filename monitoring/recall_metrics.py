"""
Recall metrics computation for retrieval evaluation.

Measures fused ranking quality against ground-truth relevance:
- Recall@K: Fraction of relevant chunks retrieved
- Precision@K: Fraction of retrieved chunks that are relevant
- F1@K: Harmonic mean of the two
- MRR: Mean Reciprocal Rank
- NDCG: Normalized Discounted Cumulative Gain
"""

import math
from dataclasses import dataclass
from typing import Dict, List, Sequence, Union

import numpy as np

from retrieval.score_fusion import FusedResult


def recall_at_k(
    retrieved_ids: List[str], relevant_ids: List[str], k: int = None
) -> float:
    """
    Compute Recall@K.

    What fraction of relevant documents were retrieved?

    Args:
        retrieved_ids: List of retrieved document IDs (ordered by relevance)
        relevant_ids: List of relevant document IDs
        k: Cutoff rank (if None, uses all retrieved)

    Returns:
        Recall score between 0.0 and 1.0
    """
    if not relevant_ids:
        return 1.0

    if k:
        retrieved_ids = retrieved_ids[:k]

    found = len(set(retrieved_ids) & set(relevant_ids))
    return found / len(set(relevant_ids))


def precision_at_k(
    retrieved_ids: List[str], relevant_ids: List[str], k: int = None
) -> float:
    """
    Compute Precision@K.

    What fraction of retrieved documents were relevant?
    """
    if k:
        retrieved_ids = retrieved_ids[:k]

    if not retrieved_ids:
        return 0.0

    retrieved_set = set(retrieved_ids)
    relevant = len(retrieved_set & set(relevant_ids))
    return relevant / len(retrieved_set)


def f1_at_k(
    retrieved_ids: List[str], relevant_ids: List[str], k: int = None
) -> float:
    """Harmonic mean of Precision@K and Recall@K (0.0 when both are 0)."""
    precision = precision_at_k(retrieved_ids, relevant_ids, k)
    recall = recall_at_k(retrieved_ids, relevant_ids, k)
    if precision + recall == 0:
        return 0.0
    return 2 * precision * recall / (precision + recall)


def mean_reciprocal_rank(retrieved_ids: List[str], relevant_ids: List[str]) -> float:
    """
    Reciprocal rank of the first relevant document (0.0 if none found).

    Average this over queries to get MRR.
    """
    relevant_set = set(relevant_ids)

    for i, doc_id in enumerate(retrieved_ids):
        if doc_id in relevant_set:
            return 1.0 / (i + 1)

    return 0.0


def ndcg_at_k(
    retrieved_ids: List[str], relevant_ids: List[str], k: int = None
) -> float:
    """
    Compute Normalized Discounted Cumulative Gain@K with binary relevance.
    """
    if k:
        retrieved_ids = retrieved_ids[:k]

    relevant_set = set(relevant_ids)

    dcg = 0.0
    for i, doc_id in enumerate(retrieved_ids):
        if doc_id in relevant_set:
            dcg += 1.0 / math.log2(i + 2)  # +2 because log2(1) = 0

    ideal_dcg = sum(
        1.0 / math.log2(i + 2)
        for i in range(min(len(relevant_set), len(retrieved_ids)))
    )

    if ideal_dcg == 0:
        return 0.0

    return dcg / ideal_dcg


@dataclass
class RetrievalEvaluation:
    """Quality of one fused ranking against ground truth."""

    precision: float
    recall: float
    f1: float
    reciprocal_rank: float
    ndcg: float
    k: int = None


def _ids(results: Sequence[Union[FusedResult, str]]) -> List[str]:
    return [r if isinstance(r, str) else r.id for r in results]


def evaluate_retrieval(
    results: Sequence[Union[FusedResult, str]],
    relevant_ids: List[str],
    k: int = None,
) -> RetrievalEvaluation:
    """
    Score one ranking.

    Args:
        results: FusedResult list (or plain ids) in rank order
        relevant_ids: Ground-truth relevant ids, e.g. ["doc-0", "doc-3"]
        k: Cutoff rank

    Returns:
        RetrievalEvaluation
    """
    retrieved_ids = _ids(results)
    return RetrievalEvaluation(
        precision=precision_at_k(retrieved_ids, relevant_ids, k),
        recall=recall_at_k(retrieved_ids, relevant_ids, k),
        f1=f1_at_k(retrieved_ids, relevant_ids, k),
        reciprocal_rank=mean_reciprocal_rank(retrieved_ids, relevant_ids),
        ndcg=ndcg_at_k(retrieved_ids, relevant_ids, k),
        k=k,
    )


def summarize_evaluations(evaluations: List[RetrievalEvaluation]) -> Dict[str, float]:
    """Mean of each metric across queries (MRR is the reciprocal-rank mean)."""
    if not evaluations:
        return {"precision": 0.0, "recall": 0.0, "f1": 0.0, "mrr": 0.0, "ndcg": 0.0}

    return {
        "precision": float(np.mean([e.precision for e in evaluations])),
        "recall": float(np.mean([e.recall for e in evaluations])),
        "f1": float(np.mean([e.f1 for e in evaluations])),
        "mrr": float(np.mean([e.reciprocal_rank for e in evaluations])),
        "ndcg": float(np.mean([e.ndcg for e in evaluations])),
    }
