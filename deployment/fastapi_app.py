"""
FastAPI application for the code retrieval service.

Serves hybrid retrieval over a caller-supplied corpus with:
- Request tracing
- Optional per-request deadline
- Rolling latency metrics
- Health checks
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import get_settings
from monitoring.latency_metrics import get_latency_collector
from retrieval.cancellation import CancellationToken, RetrievalCancelled
from retrieval.hybrid_retriever import get_retriever
from shared.schemas import (
    FusedResultModel,
    HealthResponse,
    RetrieveMetrics,
    RetrieveRequest,
    RetrieveResponse,
)
from shared.tokens import count_tokens

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

__version__ = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"Starting code retrieval service v{__version__}")
    logger.info(
        f"Embedding provider: {settings.index.embedding_provider}, "
        f"default weights: lex={settings.fusion.lexical_weight} "
        f"sem={settings.fusion.semantic_weight} rel={settings.fusion.relational_weight}"
    )

    yield

    logger.info("Shutting down code retrieval service")


app = FastAPI(
    title="Code Retrieval Service",
    description="Hybrid lexical/semantic/relational retrieval over code corpora",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID for tracing."""
    request_id = str(uuid.uuid4())[:8]
    request.state.request_id = request_id

    start_time = time.time()
    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        f"[{request_id}] {request.method} {request.url.path} "
        f"- {response.status_code} - {duration_ms:.1f}ms"
    )

    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(RetrievalCancelled)
async def retrieval_cancelled_handler(request: Request, exc: RetrievalCancelled):
    """Deadline exceeded while building or searching the indexes."""
    return JSONResponse(
        status_code=504,
        content={"error": "Retrieval timed out", "detail": str(exc)},
    )


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        embedding_provider=settings.index.embedding_provider,
    )


@app.post("/retrieve", response_model=RetrieveResponse)
def retrieve_endpoint(body: RetrieveRequest):
    """
    Hybrid retrieval with Reciprocal Rank Fusion.

    Runs synchronously in the worker threadpool; index builds are CPU-bound.
    """
    overrides = body.config.model_dump(exclude_none=True) if body.config else None

    cancellation = None
    if settings.retrieval_timeout:
        cancellation = CancellationToken.with_timeout(settings.retrieval_timeout)

    output = get_retriever().retrieve(
        body.query, body.corpus, config=overrides, cancellation=cancellation
    )
    get_latency_collector().record(output.metrics)

    return RetrieveResponse(
        results=[
            FusedResultModel(
                id=r.id,
                content=r.content,
                fused_score=r.fused_score,
                component_scores={s.value: v for s, v in r.component_scores.items()},
                rank=r.rank,
                token_count=count_tokens(r.content),
            )
            for r in output.results
        ],
        metrics=RetrieveMetrics(
            lexical_count=output.metrics.lexical_count,
            semantic_count=output.metrics.semantic_count,
            relational_count=output.metrics.relational_count,
            fusion_time_ms=output.metrics.fusion_time_ms,
        ),
        query_tokens=count_tokens(body.query),
    )


@app.get("/metrics")
async def metrics_endpoint():
    """Get operational metrics."""
    return get_latency_collector().get_summary()


@app.post("/metrics/reset")
async def reset_metrics():
    """Reset operational metrics."""
    get_latency_collector().reset()
    return {"status": "reset"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
