"""
Lexical retrieval using BM25.

Pure vector retrieval fails for keyword-heavy queries (identifiers,
error codes, config keys). BM25 captures exact token matches that
semantic search misses. Matching is exact-token: "cats" is not "cat".
"""

import logging
import math
import re
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

from .cancellation import CancellationToken, check_cancelled
from .results import LexicalDetail, RetrievalResult, RetrievalSource, document_id

logger = logging.getLogger(__name__)

BM25_K1 = 1.2
BM25_B = 0.75

_NON_WORD = re.compile(r"[^\w\s]")


def tokenize(text: str) -> List[str]:
    """
    Lowercase, strip punctuation, split on whitespace.

    Single-character tokens are dropped.
    """
    return [t for t in _NON_WORD.sub(" ", text.lower()).split() if len(t) > 1]


class LexicalIndex:
    """
    In-memory BM25 index over a positional corpus.

    Built fresh for every retrieval call; nothing is persisted.

    Usage:
        index = LexicalIndex(["def login(user)", "class SessionStore"])
        results = index.search("login", top_k=10)
    """

    source = RetrievalSource.LEXICAL

    def __init__(
        self,
        documents: Sequence[str],
        k1: float = BM25_K1,
        b: float = BM25_B,
        cancellation: Optional[CancellationToken] = None,
    ):
        self.k1 = k1
        self.b = b
        self._documents = list(documents)
        self._n_docs = len(self._documents)

        self._term_freqs: List[Counter] = []
        self._doc_lengths: List[int] = []
        self._term_doc_freq: Dict[str, int] = {}

        for text in self._documents:
            check_cancelled(cancellation)
            tokens = tokenize(text)
            freqs = Counter(tokens)
            self._term_freqs.append(freqs)
            self._doc_lengths.append(len(tokens))
            for term in freqs:
                self._term_doc_freq[term] = self._term_doc_freq.get(term, 0) + 1

        # Empty corpus leaves this at 0.0; _length_ratio guards the division
        self._avg_doc_len = (
            sum(self._doc_lengths) / self._n_docs if self._n_docs else 0.0
        )

    def idf(self, term: str) -> float:
        df = self._term_doc_freq.get(term, 0)
        if df == 0:
            return 0.0
        return math.log((self._n_docs - df + 0.5) / (df + 0.5) + 1)

    def _length_ratio(self, doc_index: int) -> float:
        if self._avg_doc_len == 0:
            return 0.0
        return self._doc_lengths[doc_index] / self._avg_doc_len

    def score(self, query_tokens: Sequence[str], doc_index: int) -> float:
        """
        BM25 score of one document for already-tokenized query terms.

        Args:
            query_tokens: Output of tokenize()
            doc_index: Position of the document in the corpus

        Returns:
            Raw (unnormalized) BM25 score; 0.0 for out-of-range indexes
        """
        if doc_index < 0 or doc_index >= self._n_docs:
            return 0.0

        freqs = self._term_freqs[doc_index]
        length_norm = 1 - self.b + self.b * self._length_ratio(doc_index)

        total = 0.0
        for term in query_tokens:
            tf = freqs.get(term, 0)
            if tf == 0:
                continue
            numerator = tf * (self.k1 + 1)
            denominator = tf + self.k1 * length_norm
            total += self.idf(term) * (numerator / denominator)

        return total

    def search(
        self,
        query: str,
        top_k: int = 100,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[RetrievalResult]:
        """
        Rank documents by BM25, normalized against the top score.

        Args:
            query: Search query
            top_k: Number of results
            cancellation: Optional token checked between documents

        Returns:
            RetrievalResult list with scores in [0, 1], best first
        """
        query_tokens = tokenize(query)
        if not query_tokens:
            return []

        scored: List[Tuple[int, float]] = []
        for doc_index in range(self._n_docs):
            check_cancelled(cancellation)
            raw = self.score(query_tokens, doc_index)
            if raw > 0:
                scored.append((doc_index, raw))

        if not scored:
            logger.debug(f"No lexical matches for query tokens {query_tokens}")
            return []

        scored.sort(key=lambda x: (-x[1], x[0]))
        max_score = scored[0][1]
        scored = scored[: max(top_k, 0)]

        return [
            RetrievalResult(
                id=document_id(doc_index),
                doc_index=doc_index,
                content=self._documents[doc_index],
                score=raw / max_score,
                source=self.source,
                detail=LexicalDetail(raw_score=raw),
            )
            for doc_index, raw in scored
        ]

    def get_stats(self) -> Dict:
        """Get index statistics."""
        return {
            "total_documents": self._n_docs,
            "unique_terms": len(self._term_doc_freq),
            "avg_doc_length": self._avg_doc_len,
        }
