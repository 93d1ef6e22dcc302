"""
Term co-occurrence graph construction.

Nodes are corpus terms; an undirected edge joins two terms whenever
they appear in the same document. Each term also keeps a posting list
of the documents that contain it.

For code corpora this links identifiers that live together
(e.g. "session" -- "token" -- "expiry"), which is what lets a query
reach related chunks that never mention the query terms.
"""

import logging
from itertools import combinations
from typing import Dict, Iterable, Set

logger = logging.getLogger(__name__)


class TermCooccurrenceGraph:
    """
    In-memory undirected co-occurrence graph.

    Edge count grows quadratically with unique terms per document, so
    very large chunks make this expensive; chunking is the caller's job.

    Usage:
        graph = TermCooccurrenceGraph()
        graph.add_document(0, ["session", "token", "expiry"])
        graph.get_neighbors("session")  # {"token", "expiry"}
    """

    def __init__(self):
        self._adjacency: Dict[str, Set[str]] = {}
        self._postings: Dict[str, Set[int]] = {}
        self._doc_terms: Dict[int, Set[str]] = {}

    def add_document(self, doc_index: int, tokens: Iterable[str]) -> None:
        """Add one document's terms, its postings and co-occurrence edges."""
        unique_terms = set(tokens)
        self._doc_terms[doc_index] = unique_terms

        for term in unique_terms:
            self._postings.setdefault(term, set()).add(doc_index)
            self._adjacency.setdefault(term, set())

        # Sorted so edge insertion order does not depend on set iteration
        for t1, t2 in combinations(sorted(unique_terms), 2):
            self._adjacency[t1].add(t2)
            self._adjacency[t2].add(t1)

    def get_neighbors(self, term: str) -> Set[str]:
        """Terms sharing at least one document with the given term."""
        return self._adjacency.get(term, set())

    def documents_for(self, term: str) -> Set[int]:
        """Posting list for a term."""
        return self._postings.get(term, set())

    def terms_for(self, doc_index: int) -> Set[str]:
        return self._doc_terms.get(doc_index, set())

    def has_term(self, term: str) -> bool:
        return term in self._adjacency

    def get_stats(self) -> Dict:
        """Get graph statistics."""
        edge_count = sum(len(n) for n in self._adjacency.values()) // 2
        return {
            "total_terms": len(self._adjacency),
            "total_edges": edge_count,
            "total_documents": len(self._doc_terms),
        }
