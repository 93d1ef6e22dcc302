"""
Relational retrieval over a term co-occurrence graph.

Two scoring tiers, never mixed for the same document:
- Direct: chunk contains literal query terms,
  score = matched literal terms / query terms
- Expanded: chunk only contains terms reached by graph hops,
  score = matched expanded terms / expanded set size * 0.5

The 0.5 discount keeps an expanded match below a direct match with a
comparable term overlap.

Query terms are de-duplicated first, so "session session token" scores
like "session token": a repeated word counts once in both the numerator
and the denominator and the direct score stays within [0, 1].
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from graph_rag import GraphTraverser, TermCooccurrenceGraph

from .cancellation import CancellationToken, check_cancelled
from .lexical_retriever import tokenize
from .results import RelationalDetail, RetrievalResult, RetrievalSource, document_id

logger = logging.getLogger(__name__)

EXPANSION_DISCOUNT = 0.5
DEFAULT_HOPS = 1


class RelationalIndex:
    """
    Co-occurrence graph index over a positional corpus.

    Usage:
        index = RelationalIndex(corpus, hops=1)
        results = index.search("session token")
        results[0].detail.hops  # 0 = direct match, >= 1 = via expansion
    """

    source = RetrievalSource.RELATIONAL

    def __init__(
        self,
        documents: Sequence[str],
        hops: int = DEFAULT_HOPS,
        cancellation: Optional[CancellationToken] = None,
    ):
        self.hops = max(hops, 0)
        self._documents = list(documents)
        self.graph = TermCooccurrenceGraph()

        for doc_index, text in enumerate(self._documents):
            check_cancelled(cancellation)
            self.graph.add_document(doc_index, tokenize(text))

        self._traverser = GraphTraverser(self.graph)

    def search(
        self,
        query: str,
        top_k: int = 100,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[RetrievalResult]:
        """
        Rank documents by direct and hop-expanded term overlap.

        Args:
            query: Search query
            top_k: Number of results
            cancellation: Optional token checked during matching

        Returns:
            RetrievalResult list, best first
        """
        if not query.strip():
            return []

        query_terms = sorted(set(tokenize(query)))
        if not query_terms:
            return []

        # Direct tier
        direct_counts: Dict[int, int] = {}
        for term in query_terms:
            check_cancelled(cancellation)
            for doc_index in self.graph.documents_for(term):
                direct_counts[doc_index] = direct_counts.get(doc_index, 0) + 1

        # Expanded tier
        by_hop = self._traverser.bfs_many(query_terms, self.hops)
        expanded_size = sum(len(terms) for terms in by_hop.values())

        expanded_counts: Dict[int, int] = {}
        min_hops: Dict[int, int] = {}
        for hop in sorted(by_hop):
            if hop == 0:
                continue
            for term in by_hop[hop]:
                check_cancelled(cancellation)
                for doc_index in self.graph.documents_for(term):
                    if doc_index in direct_counts:
                        continue
                    expanded_counts[doc_index] = expanded_counts.get(doc_index, 0) + 1
                    min_hops.setdefault(doc_index, hop)

        scored: List[Tuple[int, float, int]] = []
        for doc_index, count in direct_counts.items():
            scored.append((doc_index, count / len(query_terms), 0))
        for doc_index, count in expanded_counts.items():
            score = (count / expanded_size) * EXPANSION_DISCOUNT
            scored.append((doc_index, score, min_hops[doc_index]))

        scored.sort(key=lambda x: (-x[1], x[0]))
        logger.debug(
            f"Relational search: {len(direct_counts)} direct, "
            f"{len(expanded_counts)} expanded matches"
        )

        return [
            RetrievalResult(
                id=document_id(doc_index),
                doc_index=doc_index,
                content=self._documents[doc_index],
                score=score,
                source=self.source,
                detail=RelationalDetail(hops=hops),
            )
            for doc_index, score, hops in scored[: max(top_k, 0)]
        ]
