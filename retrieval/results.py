"""
Shared result types for the hybrid retrievers.

Every retriever returns a ranked list of RetrievalResult. The
source-specific detail is a small variant payload rather than a
loose metadata bag:
- LexicalDetail: raw BM25 score before normalization
- SemanticDetail: cosine similarity
- RelationalDetail: number of graph hops needed for the match
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Union

from .cancellation import CancellationToken


class RetrievalSource(str, Enum):
    """Which retriever produced a result."""

    LEXICAL = "lexical"
    SEMANTIC = "semantic"
    RELATIONAL = "relational"


@dataclass(frozen=True)
class LexicalDetail:
    raw_score: float


@dataclass(frozen=True)
class SemanticDetail:
    similarity: float


@dataclass(frozen=True)
class RelationalDetail:
    hops: int


ResultDetail = Union[LexicalDetail, SemanticDetail, RelationalDetail]


def document_id(doc_index: int) -> str:
    """Positional id for a corpus entry. Only valid within one call."""
    return f"doc-{doc_index}"


@dataclass
class RetrievalResult:
    """A single result from one retriever."""

    id: str
    doc_index: int
    content: str
    score: float  # In [0, 1], comparable only within its own source
    source: RetrievalSource
    detail: ResultDetail

    @property
    def metadata(self) -> Dict[str, Any]:
        """Flat view of the detail payload for wire output."""
        meta = asdict(self.detail)
        meta["doc_index"] = self.doc_index
        return meta


class RankedListProducer(Protocol):
    """Anything the fusion engine can ask for a ranked list."""

    source: RetrievalSource

    def search(
        self,
        query: str,
        top_k: int = 100,
        cancellation: Optional[CancellationToken] = None,
    ) -> List[RetrievalResult]:
        ...
