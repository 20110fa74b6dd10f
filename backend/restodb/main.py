"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from restodb.api.v1 import router as v1_router
from restodb.core.config import settings
from restodb.core.database import create_session
from restodb.core.errors import setup_error_handlers
from restodb.core.middleware import MetricsMiddleware, RequestIDMiddleware
from restodb.core.store import ConnectionStore
from restodb.services.formatting import use_host_locale
from restodb.services.query_service import SessionFactory

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info(f"Starting RestoDB backend ({settings.db_driver} driver)...")
    yield
    app.state.store.clear()
    logger.info("Shutting down RestoDB backend...")


def create_app(
    store: Optional[ConnectionStore] = None,
    session_factory: SessionFactory = create_session,
) -> FastAPI:
    """Create and configure FastAPI application."""
    logging.basicConfig(level=settings.log_level.upper())
    use_host_locale()

    app = FastAPI(
        title="RestoDB API",
        description="""
SQL administration backend for restaurant databases.

## Features
- **Connections**: Save, test and browse database connections
- **Query**: Execute SQL, starter templates, layout helper, CREATE TABLE builder
- **History**: Executed queries, paged results, CSV export
- **Data entry**: Validated one-row inserts for the restaurant schema

## Error Codes
- `VALIDATION_ERROR`: Malformed request or missing fields
- `CONNECTION_NOT_FOUND`, `QUERY_NOT_FOUND`, `ENTITY_NOT_FOUND`: Unknown identifiers
- `QUERY_EXECUTION_ERROR`: The database rejected the query
- `DB_CONNECT_FAILED`: The database could not be reached
        """.strip(),
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.environment == "development" else None,
        redoc_url="/api/redoc" if settings.environment == "development" else None,
        openapi_tags=[
            {"name": "health", "description": "Health checks and metrics"},
            {"name": "connections", "description": "Saved connection profiles"},
            {"name": "query", "description": "SQL execution, templates, formatting"},
            {"name": "history", "description": "Query history, result pages, CSV export"},
            {"name": "data-entry", "description": "One-row inserts from restaurant data forms"},
        ],
    )
    app.state.store = store if store is not None else ConnectionStore()
    app.state.session_factory = session_factory

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Request-ID"],
    )

    # Metrics middleware (collect metrics for all requests)
    if settings.metrics_enabled:
        app.add_middleware(MetricsMiddleware)

    # Request ID middleware (added last so it runs first on requests)
    app.add_middleware(RequestIDMiddleware)

    # Error handlers
    setup_error_handlers(app)

    # API routes
    app.include_router(v1_router, prefix="/api")

    return app


app = create_app()
