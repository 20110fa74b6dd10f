"""API v1 routes."""

from fastapi import APIRouter

from restodb.api.v1 import connections, data_entry, health, history, query

router = APIRouter()

# Health checks (no prefix)
router.include_router(health.router, tags=["health"])

router.include_router(connections.router, prefix="/connections", tags=["connections"])
router.include_router(query.router, prefix="/query", tags=["query"])
router.include_router(history.router, prefix="/queries", tags=["history"])
router.include_router(data_entry.router, prefix="/data-entry", tags=["data-entry"])
