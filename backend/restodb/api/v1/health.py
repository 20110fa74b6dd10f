"""Health check endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from restodb.core.deps import get_store
from restodb.core.store import ConnectionStore
from restodb.core.metrics import metrics

logger = logging.getLogger(__name__)

router = APIRouter()

VERSION = "0.1.0"


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    version: str = VERSION
    connections: int
    queries: int


@router.get("/health", response_model=HealthResponse)
async def health_check(
    store: ConnectionStore = Depends(get_store),
) -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 while the service is running, with the number of saved
    connections and history records. No database is contacted.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        connections=len(store.list_connections()),
        queries=store.count_queries(),
    )


@router.get("/metrics")
async def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    metrics_data = metrics.get_metrics()
    return Response(
        content=metrics_data,
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
