"""
Graph-RAG Module.

Relational retrieval needs a graph linking concepts that appear
together. Here the graph is built from the corpus itself: terms are
nodes, shared documents are edges.

Pattern:
1. Tokenize each chunk and add its terms to the co-occurrence graph
2. Expand the query terms by BFS over the graph
3. Match chunks against literal and expanded terms

Usage:
    from graph_rag import GraphTraverser, TermCooccurrenceGraph

    graph = TermCooccurrenceGraph()
    graph.add_document(0, ["session", "token"])
    expanded = GraphTraverser(graph).expand_terms(["session"], hops=1)
"""

from .graph_builder import TermCooccurrenceGraph
from .graph_traversal import GraphTraverser

__all__ = [
    "TermCooccurrenceGraph",
    "GraphTraverser",
]
