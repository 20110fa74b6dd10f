"""Saved database connection endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from restodb.core.deps import get_query_service, get_store
from restodb.core.errors import NotFound
from restodb.core.store import ConnectionStore
from restodb.core.validation import parse_id
from restodb.models.connection import (
    ConnectionProfileRequest,
    ConnectionProfileResponse,
    ConnectionProfileUpdate,
    ConnectionTestResponse,
    TableInfo,
)
from restodb.services.query_service import QueryService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[ConnectionProfileResponse])
async def list_connections(
    store: ConnectionStore = Depends(get_store),
) -> List[ConnectionProfileResponse]:
    """List all saved connections. Passwords are never returned."""
    return [ConnectionProfileResponse.from_profile(c) for c in store.list_connections()]


@router.post(
    "",
    response_model=ConnectionProfileResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_connection(
    request: ConnectionProfileRequest,
    store: ConnectionStore = Depends(get_store),
) -> ConnectionProfileResponse:
    """Save a connection profile. Credentials are held in memory only."""
    conn = store.create_connection(request)
    logger.info(
        f"Saved connection '{conn.name}' to {conn.server}/{conn.database}",
        extra={"event": "connection_created", "connection_id": conn.id},
    )
    return ConnectionProfileResponse.from_profile(conn)


@router.post("/test", response_model=ConnectionTestResponse)
async def test_connection(
    request: ConnectionProfileRequest,
    service: QueryService = Depends(get_query_service),
) -> ConnectionTestResponse:
    """
    Try to open a session with unsaved profile data.

    Nothing is stored. A driver failure answers 400 with the driver's message
    in ``error``.
    """
    await service.test_connection(request)
    return ConnectionTestResponse(message="Connection successful")


@router.get("/{connection_id}", response_model=ConnectionProfileResponse)
async def get_connection(
    connection_id: str,
    store: ConnectionStore = Depends(get_store),
) -> ConnectionProfileResponse:
    """Get a saved connection (without password)."""
    conn_id = parse_id(connection_id)
    conn = store.get_connection(conn_id)
    if conn is None:
        raise NotFound(f"Connection {conn_id} not found")
    return ConnectionProfileResponse.from_profile(conn)


@router.put("/{connection_id}", response_model=ConnectionProfileResponse)
async def update_connection(
    connection_id: str,
    request: ConnectionProfileUpdate,
    store: ConnectionStore = Depends(get_store),
) -> ConnectionProfileResponse:
    """Update the supplied fields of a saved connection."""
    conn_id = parse_id(connection_id)
    conn = store.update_connection(conn_id, request)
    if conn is None:
        raise NotFound(f"Connection {conn_id} not found")
    return ConnectionProfileResponse.from_profile(conn)


@router.delete("/{connection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_connection(
    connection_id: str,
    store: ConnectionStore = Depends(get_store),
) -> Response:
    """Delete a saved connection. Its query history is kept."""
    conn_id = parse_id(connection_id)
    if not store.delete_connection(conn_id):
        raise NotFound(f"Connection {conn_id} not found")
    logger.info(
        f"Deleted connection {conn_id}",
        extra={"event": "connection_deleted", "connection_id": conn_id},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{connection_id}/databases", response_model=List[str])
async def list_databases(
    connection_id: str,
    service: QueryService = Depends(get_query_service),
) -> List[str]:
    """List the databases visible through a saved connection."""
    return await service.list_databases(parse_id(connection_id))


@router.get("/{connection_id}/tables", response_model=List[TableInfo])
async def list_tables(
    connection_id: str,
    service: QueryService = Depends(get_query_service),
) -> List[TableInfo]:
    """List the tables and views of a saved connection's database."""
    return await service.list_tables(parse_id(connection_id))
