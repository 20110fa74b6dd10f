"""Shared FastAPI dependency functions."""

from fastapi import Depends, Request

from restodb.core.store import ConnectionStore
from restodb.services.query_service import QueryService


def get_store(request: Request) -> ConnectionStore:
    """Return the :class:`ConnectionStore` created with the application."""
    return request.app.state.store


def get_query_service(
    request: Request, store: ConnectionStore = Depends(get_store)
) -> QueryService:
    """Build a :class:`QueryService` over the application's store and driver sessions."""
    return QueryService(store, session_factory=request.app.state.session_factory)
