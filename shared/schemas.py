"""
Pydantic schemas for API request/response models.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class FusionConfigOverride(BaseModel):
    """Partial override of the service's default fusion config."""

    lexical_weight: Optional[float] = Field(default=None, description="0 disables lexical retrieval")
    semantic_weight: Optional[float] = Field(default=None, description="0 disables semantic retrieval")
    relational_weight: Optional[float] = Field(default=None, description="0 disables relational retrieval")
    rrf_k: Optional[int] = Field(default=None, description="RRF constant, 0 falls back to 60")
    max_results: Optional[int] = Field(default=None, description="Maximum fused results")


class RetrieveRequest(BaseModel):
    """Request model for hybrid retrieval."""

    query: str = Field(..., description="Natural-language or identifier query")
    corpus: List[str] = Field(..., description="Code units, identified by position")
    config: Optional[FusionConfigOverride] = None


class FusedResultModel(BaseModel):
    """A single fused result."""

    id: str
    content: str
    fused_score: float
    component_scores: Dict[str, float]
    rank: int
    token_count: int


class RetrieveMetrics(BaseModel):
    lexical_count: int
    semantic_count: int
    relational_count: int
    fusion_time_ms: float


class RetrieveResponse(BaseModel):
    """Response model for hybrid retrieval."""

    results: List[FusedResultModel]
    metrics: RetrieveMetrics
    query_tokens: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    embedding_provider: str
