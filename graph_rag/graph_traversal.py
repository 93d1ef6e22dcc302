"""
Graph traversal for query expansion.

Walks the co-occurrence graph breadth-first from the literal query
terms, hop by hop.
"""

import logging
from collections import deque
from typing import Dict, Iterable, Set

from .graph_builder import TermCooccurrenceGraph

logger = logging.getLogger(__name__)


class GraphTraverser:
    """
    Breadth-first traversal over a TermCooccurrenceGraph.

    Usage:
        traverser = GraphTraverser(graph)

        # Terms reachable from "session" within 2 hops, by distance
        by_hop = traverser.bfs("session", max_hops=2)

        # Query terms plus everything one hop away
        expanded = traverser.expand_terms(["session", "token"], hops=1)
    """

    def __init__(self, graph: TermCooccurrenceGraph):
        self.graph = graph

    def bfs(self, start_term: str, max_hops: int = 1) -> Dict[int, Set[str]]:
        """
        Breadth-first search from a starting term.

        Args:
            start_term: Starting term
            max_hops: Maximum traversal depth

        Returns:
            Dict mapping hop distance to set of terms
        """
        return self.bfs_many([start_term], max_hops)

    def bfs_many(self, start_terms: Iterable[str], max_hops: int = 1) -> Dict[int, Set[str]]:
        """Multi-source BFS; a term is reported at its smallest distance."""
        max_hops = max(max_hops, 0)
        result: Dict[int, Set[str]] = {i: set() for i in range(max_hops + 1)}
        visited: Set[str] = set()
        queue = deque()

        for term in start_terms:
            if term not in visited:
                visited.add(term)
                result[0].add(term)
                queue.append((term, 0))

        while queue:
            current, hop = queue.popleft()

            if hop >= max_hops:
                continue

            for neighbor in self.graph.get_neighbors(current):
                if neighbor not in visited:
                    visited.add(neighbor)
                    result[hop + 1].add(neighbor)
                    queue.append((neighbor, hop + 1))

        return result

    def expand_terms(self, terms: Iterable[str], hops: int = 1) -> Set[str]:
        """
        Expand a term set across the graph.

        Args:
            terms: Literal query terms
            hops: Number of hops to follow

        Returns:
            Literal terms plus every term reached within `hops` hops
        """
        by_hop = self.bfs_many(terms, hops)
        expanded: Set[str] = set()
        for hop_terms in by_hop.values():
            expanded.update(hop_terms)
        logger.debug(f"Expanded {len(by_hop[0])} terms to {len(expanded)} over {hops} hop(s)")
        return expanded
