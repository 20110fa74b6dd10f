"""Query execution service."""

import logging
import time
from typing import Callable, List, Optional

from fastapi import status

from restodb.core.database import DriverSession, create_session
from restodb.core.errors import (
    DatabaseUnavailable,
    DriverError,
    NotFound,
    QueryExecutionFailed,
    classify_driver_error,
)
from restodb.core.metrics import metrics
from restodb.core.store import ConnectionStore
from restodb.models.connection import (
    ConnectionProfile,
    ConnectionProfileRequest,
    TableInfo,
)
from restodb.models.query import QueryHistoryRecord, QueryResult, QueryStatus
from restodb.services.results import transform

logger = logging.getLogger(__name__)

SessionFactory = Callable[[ConnectionProfileRequest], DriverSession]


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class QueryService:
    """
    Runs SQL against saved connections and records every attempt.

    Each call opens its own driver session and closes it before returning.
    There are no retries and no timeout beyond the driver's own.
    """

    def __init__(
        self,
        store: ConnectionStore,
        session_factory: SessionFactory = create_session,
    ):
        self.store = store
        self.session_factory = session_factory

    def require_connection(self, connection_id: int) -> ConnectionProfile:
        """Resolve a connection profile or raise NotFound."""
        conn = self.store.get_connection(connection_id)
        if conn is None:
            raise NotFound(f"Connection {connection_id} not found")
        return conn

    def _record(
        self,
        connection_id: int,
        sql: str,
        status: QueryStatus,
        execution_time: int,
        error: Optional[str] = None,
        results: Optional[QueryResult] = None,
    ) -> Optional[QueryHistoryRecord]:
        """Write a history record. A failed write is logged, never raised."""
        try:
            return self.store.create_query(
                connection_id=connection_id,
                query=sql,
                status=status,
                execution_time=execution_time,
                error=error,
                results=results,
            )
        except Exception:
            logger.exception(
                "Failed to record query history",
                extra={"event": "history_write_failed", "connection_id": connection_id},
            )
            metrics.record_history_write_failure()
            return None

    async def execute(self, connection_id: int, sql: str) -> QueryResult:
        """
        Execute SQL text verbatim against a saved connection.

        Raises NotFound for an unknown connection and QueryExecutionFailed when
        the driver cannot connect or rejects the statement. A history record is
        written before this returns or raises, whatever the outcome.
        """
        started = time.perf_counter()
        logger.info(
            f"Executing query on connection {connection_id}: {sql[:200]}",
            extra={"event": "query_started", "connection_id": connection_id},
        )
        try:
            profile = self.require_connection(connection_id)
            async with self.session_factory(profile) as session:
                started = time.perf_counter()
                recordset = await session.execute(sql)
                elapsed = _elapsed_ms(started)
            result = transform(recordset, elapsed)
        except NotFound as e:
            self._record(connection_id, sql, QueryStatus.ERROR, _elapsed_ms(started), error=e.message)
            raise
        except (DriverError, ValueError) as e:
            elapsed = _elapsed_ms(started)
            error_message = str(e)
            kind = classify_driver_error(e)
            record = self._record(connection_id, sql, QueryStatus.ERROR, elapsed, error=error_message)
            metrics.record_query_execution(status="error", duration=elapsed / 1000)
            logger.warning(
                f"Query on connection {connection_id} failed ({kind.value}): {error_message}",
                extra={"event": "query_failed", "connection_id": connection_id, "kind": kind.value},
            )
            raise QueryExecutionFailed(
                error_message, kind=kind, query_id=record.id if record else None
            ) from e
        except Exception as e:
            self._record(connection_id, sql, QueryStatus.ERROR, _elapsed_ms(started), error=str(e))
            raise

        self._record(
            connection_id,
            sql,
            QueryStatus.SUCCESS,
            result.execution_time,
            results=result,
        )
        metrics.record_query_execution(
            status="success",
            duration=result.execution_time / 1000,
            row_count=result.row_count,
        )
        logger.info(
            f"Query on connection {connection_id} completed in {result.execution_time}ms "
            f"with {result.row_count} rows",
            extra={"event": "query_completed", "connection_id": connection_id},
        )
        return result

    async def test_connection(self, data: ConnectionProfileRequest) -> None:
        """Open and close a session for unsaved profile data."""
        try:
            async with self.session_factory(data):
                pass
        except DriverError as e:
            metrics.record_db_connection_attempt("failed")
            logger.warning(f"Connection test to {data.server}/{data.database} failed: {e}")
            raise DatabaseUnavailable(
                str(e),
                kind=classify_driver_error(e),
                status_code=status.HTTP_400_BAD_REQUEST,
            ) from e
        metrics.record_db_connection_attempt("success")
        logger.info(f"Connection test to {data.server}/{data.database} succeeded")

    async def list_databases(self, connection_id: int) -> List[str]:
        """Database names visible through a saved connection."""
        profile = self.require_connection(connection_id)
        try:
            async with self.session_factory(profile) as session:
                return await session.list_databases()
        except DriverError as e:
            raise DatabaseUnavailable(str(e), kind=classify_driver_error(e)) from e

    async def list_tables(self, connection_id: int) -> List[TableInfo]:
        """Tables and views of a saved connection's database."""
        profile = self.require_connection(connection_id)
        try:
            async with self.session_factory(profile) as session:
                return await session.list_tables()
        except DriverError as e:
            raise DatabaseUnavailable(str(e), kind=classify_driver_error(e)) from e
