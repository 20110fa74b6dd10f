"""In-memory store for connection profiles and query history."""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from restodb.models.connection import (
    ConnectionProfile,
    ConnectionProfileRequest,
    ConnectionProfileUpdate,
)
from restodb.models.query import QueryHistoryRecord, QueryResult, QueryStatus

logger = logging.getLogger(__name__)


class ConnectionStore:
    """
    Process-local registry of saved connections and executed-query history.

    Identifiers come from two counters starting at 1. They only ever grow, so an
    id is never handed out twice, even after the record it named is deleted.
    Nothing is persisted: the store starts empty and is cleared on shutdown.
    Reads hand out copies, so callers cannot change what is stored.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._connections: Dict[int, ConnectionProfile] = {}
        self._queries: Dict[int, QueryHistoryRecord] = {}
        self._connection_counter = 1
        self._query_counter = 1

    # Connection profiles

    def list_connections(self) -> List[ConnectionProfile]:
        """List all saved connections in creation order."""
        with self._lock:
            return [conn.model_copy() for conn in self._connections.values()]

    def get_connection(self, connection_id: int) -> Optional[ConnectionProfile]:
        """Get a connection, credentials included."""
        with self._lock:
            conn = self._connections.get(connection_id)
            return conn.model_copy() if conn else None

    def create_connection(self, data: ConnectionProfileRequest) -> ConnectionProfile:
        """Save a new connection and assign it the next identifier."""
        with self._lock:
            connection_id = self._connection_counter
            self._connection_counter += 1
            conn = ConnectionProfile(
                **data.model_dump(),
                id=connection_id,
                created_at=datetime.now(timezone.utc),
            )
            self._connections[connection_id] = conn

        logger.info(
            f"Saved connection '{conn.name}' as {connection_id}",
            extra={"event": "connection_saved", "connection_id": connection_id},
        )
        return conn.model_copy()

    def update_connection(
        self, connection_id: int, changes: ConnectionProfileUpdate
    ) -> Optional[ConnectionProfile]:
        """
        Replace the supplied fields of a saved connection.

        Returns None when the connection does not exist. The identifier and
        creation timestamp are never changed.
        """
        updates = changes.model_dump(exclude_unset=True, exclude_none=True)
        with self._lock:
            existing = self._connections.get(connection_id)
            if existing is None:
                return None
            conn = existing.model_copy(update=updates)
            self._connections[connection_id] = conn

        logger.info(
            f"Updated connection {connection_id}",
            extra={
                "event": "connection_updated",
                "connection_id": connection_id,
                "fields": sorted(updates),
            },
        )
        return conn.model_copy()

    def delete_connection(self, connection_id: int) -> bool:
        """Delete a connection. Returns whether it existed."""
        with self._lock:
            existed = self._connections.pop(connection_id, None) is not None
        if existed:
            logger.info(f"Deleted connection {connection_id}")
        return existed

    # Query history

    def list_queries(self, connection_id: Optional[int] = None) -> List[QueryHistoryRecord]:
        """List history records, optionally only those for one connection."""
        with self._lock:
            return [
                record.model_copy(deep=True)
                for record in self._queries.values()
                if connection_id is None or record.connection_id == connection_id
            ]

    def count_queries(self) -> int:
        with self._lock:
            return len(self._queries)

    def get_query(self, query_id: int) -> Optional[QueryHistoryRecord]:
        """Get a single history record, result rows included."""
        with self._lock:
            record = self._queries.get(query_id)
            return record.model_copy(deep=True) if record else None

    def create_query(
        self,
        connection_id: Optional[int],
        query: str,
        status: QueryStatus,
        execution_time: Optional[int] = None,
        error: Optional[str] = None,
        results: Optional[QueryResult] = None,
    ) -> QueryHistoryRecord:
        """Append a history record for one execution attempt."""
        with self._lock:
            query_id = self._query_counter
            self._query_counter += 1
            record = QueryHistoryRecord(
                id=query_id,
                connection_id=connection_id,
                query=query,
                status=status,
                execution_time=execution_time,
                error=error,
                results=results,
                created_at=datetime.now(timezone.utc),
            )
            self._queries[query_id] = record
        return record.model_copy(deep=True)

    def clear(self) -> None:
        """Drop every record. Counters keep their values."""
        with self._lock:
            self._connections.clear()
            self._queries.clear()
