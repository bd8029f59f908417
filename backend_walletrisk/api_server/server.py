"""
FastAPI server: wallet risk scores over HTTP.

GET /score scores one address (cached), GET /neighbors returns the bounded
1-hop counterparty graph, POST /score/batch scores many addresses with
bounded concurrency. Malformed addresses get HTTP 400 before any chain data
is fetched. Config via env (see config.settings).
"""

from __future__ import annotations

from typing import Any

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from backend_walletrisk import __version__
from backend_walletrisk.agent_worker.batch import BatchScheduler
from backend_walletrisk.agent_worker.pipeline import ScoringPipeline
from backend_walletrisk.config.settings import get_settings
from backend_walletrisk.core.exceptions import MalformedAddress
from backend_walletrisk.walletrisk_logging import get_logger

logger = get_logger(__name__)

MAX_BATCH_ADDRESSES = 500
MAX_BATCH_CONCURRENCY = 32


# -----------------------------------------------------------------------------
# Request / response models
# -----------------------------------------------------------------------------

class ScoreResponse(BaseModel):
    """GET /score response: score, label, reasons, features and explanation."""

    address: str
    network: str
    risk_score: int = Field(..., ge=0, le=100)
    score: int = Field(..., ge=0, le=100)
    label: str
    reasons: list[str] = Field(default_factory=list)
    block: bool = False
    sanctionHits: int = 0
    feats: dict[str, Any] = Field(default_factory=dict)
    degraded: bool = False
    error: str | None = None
    cachedAt: float | None = None
    explain: dict[str, Any] = Field(default_factory=dict)


class NeighborLinkModel(BaseModel):
    a: str
    b: str
    weight: int


class NeighborsResponse(BaseModel):
    """GET /neighbors response: center is nodes[0]."""

    nodes: list[str]
    links: list[NeighborLinkModel] = Field(default_factory=list)


class BatchScoreRequest(BaseModel):
    """POST /score/batch body."""

    addresses: list[str] = Field(..., min_length=1, max_length=MAX_BATCH_ADDRESSES)
    network: str | None = Field(None, description="eth | polygon | arbitrum")
    concurrency: int | None = Field(None, ge=1, le=MAX_BATCH_CONCURRENCY)


class BatchScoreResponse(BaseModel):
    results: list[ScoreResponse]


# -----------------------------------------------------------------------------
# Dependencies
# -----------------------------------------------------------------------------

def get_pipeline(request: Request) -> ScoringPipeline:
    """Dependency: app-scoped pipeline, built from settings on first use."""
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        pipeline = ScoringPipeline.from_settings(get_settings())
        request.app.state.pipeline = pipeline
    return pipeline


def get_batch_scheduler(pipeline: ScoringPipeline = Depends(get_pipeline)) -> BatchScheduler:
    return BatchScheduler(pipeline, get_settings().batch_concurrency)


async def _malformed_address_handler(request: Request, exc: MalformedAddress) -> JSONResponse:
    logger.info("malformed_address_rejected", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# -----------------------------------------------------------------------------
# App and routes
# -----------------------------------------------------------------------------

def create_app(pipeline: ScoringPipeline | None = None) -> FastAPI:
    """Build the ASGI app; pass a pipeline to bypass settings-based wiring (tests)."""
    app = FastAPI(
        title="Backend WalletRisk API",
        description="Explainable wallet risk scores from on-chain behavior and curated lists.",
        version=__version__,
    )
    app.state.pipeline = pipeline
    app.add_exception_handler(MalformedAddress, _malformed_address_handler)

    @app.get("/health")
    def health(pipeline: ScoringPipeline = Depends(get_pipeline)) -> dict[str, Any]:
        """Liveness probe plus active list snapshot info."""
        snapshot = pipeline.registry.snapshot()
        return {
            "status": "ok",
            "version": __version__,
            "weights": pipeline.weights.version,
            "listsVersion": snapshot.version,
            "lists": snapshot.sizes(),
        }

    @app.get("/score", response_model=ScoreResponse)
    async def score(
        address: str = Query("", description="EVM address (0x + 40 hex)"),
        network: str | None = Query(None, description="eth | polygon | arbitrum"),
        pipeline: ScoringPipeline = Depends(get_pipeline),
    ) -> dict[str, Any]:
        """Score one address. Cached for the score TTL unless degraded."""
        result = await pipeline.score(address, network)
        return result.to_dict()

    @app.get("/neighbors", response_model=NeighborsResponse)
    async def neighbors(
        address: str = Query("", description="EVM address (0x + 40 hex)"),
        network: str | None = Query(None),
        limit: int | None = Query(None, ge=0, description="Max neighbors; clamped to the configured maximum"),
        pipeline: ScoringPipeline = Depends(get_pipeline),
    ) -> dict[str, Any]:
        graph = await pipeline.neighbors(address, network, limit)
        return graph.to_dict()

    @app.post("/score/batch", response_model=BatchScoreResponse)
    async def score_batch(
        body: BatchScoreRequest,
        scheduler: BatchScheduler = Depends(get_batch_scheduler),
    ) -> dict[str, Any]:
        """
        Score many addresses; results[i] belongs to addresses[i]. Items that
        fail (including malformed addresses) carry an error and degraded=true.
        """
        results = await scheduler.run(body.addresses, body.network, concurrency=body.concurrency)
        return {"results": [r.to_dict() for r in results]}

    return app


app = create_app()
