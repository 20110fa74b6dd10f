"""Database driver sessions."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import psycopg

from restodb.core.config import settings
from restodb.core.errors import DriverConnectionError, DriverExecutionError
from restodb.models.connection import (
    AuthenticationMode,
    ConnectionProfileRequest,
    TableInfo,
)

logger = logging.getLogger(__name__)

SQL_SERVER_PORT = 1433
POSTGRES_PORT = 5432

# One row as (column name, value) pairs in driver-reported column order.
Row = List[Tuple[str, Any]]


@dataclass(slots=True)
class Recordset:
    """Raw driver output for one statement."""

    rows: List[Row]
    rows_affected: Optional[int] = None


def parse_server_address(server: str) -> Tuple[str, Optional[int]]:
    """
    Split a server address into host and optional port.

    Accepts ``host``, ``host,port`` (SQL Server style) and ``host:port``.
    Named instances (``host\\SQLEXPRESS``) and bare IPv6 addresses are
    returned unchanged with no port.
    """
    server = server.strip()
    if "," in server:
        host, _, port = server.rpartition(",")
        if port.strip().isdigit():
            return host.strip(), int(port)
    if server.count(":") == 1:
        host, _, port = server.partition(":")
        if port.strip().isdigit():
            return host.strip(), int(port)
    return server, None


class DriverSession(ABC):
    """
    One short-lived database session opened from a connection profile.

    Use as ``async with create_session(profile) as session``; the session is
    closed on exit whether or not the body raised.
    """

    def __init__(self, profile: ConnectionProfileRequest):
        self.profile = profile

    @abstractmethod
    async def open(self) -> None:
        """Connect. Raises DriverConnectionError."""

    @abstractmethod
    async def execute(self, sql: str) -> Recordset:
        """Run SQL text verbatim. Raises DriverExecutionError."""

    @abstractmethod
    async def list_databases(self) -> List[str]:
        """Names of the databases visible to this login."""

    @abstractmethod
    async def list_tables(self) -> List[TableInfo]:
        """Base tables and views of the connected database."""

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying connection."""

    async def __aenter__(self) -> "DriverSession":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await self.close()
        except Exception as e:
            logger.warning(f"Error closing database session: {e}")


def _odbc_value(value: str) -> str:
    """Brace-quote a connection string value so ';' and '}' survive."""
    return "{" + value.replace("}", "}}") + "}"


def _pyodbc_sqlstate(e: Exception) -> Optional[str]:
    args = getattr(e, "args", ())
    if len(args) >= 2 and isinstance(args[0], str):
        return args[0]
    return None


def _pyodbc_message(e: Exception) -> str:
    """pyodbc errors carry (sqlstate, message); prefer the message."""
    args = getattr(e, "args", ())
    if len(args) >= 2:
        return str(args[1])
    return str(e)


class MssqlSession(DriverSession):
    """SQL Server session over ODBC (pyodbc). Blocking calls run in a worker thread."""

    _DATABASES_QUERY = "SELECT name FROM sys.databases ORDER BY name"

    _TABLES_QUERY = """
        SELECT TABLE_NAME, TABLE_SCHEMA, TABLE_TYPE
        FROM INFORMATION_SCHEMA.TABLES
        ORDER BY TABLE_SCHEMA, TABLE_NAME
    """

    def __init__(self, profile: ConnectionProfileRequest):
        super().__init__(profile)
        self._conn = None

    def connection_string(self) -> str:
        """Build the ODBC connection string for the profile."""
        host, port = parse_server_address(self.profile.server)
        server = f"{host},{port}" if port else host
        parts = [
            f"DRIVER={_odbc_value(settings.mssql_odbc_driver)}",
            f"SERVER={_odbc_value(server)}",
            f"DATABASE={_odbc_value(self.profile.database)}",
            f"Encrypt={'yes' if settings.mssql_encrypt else 'no'}",
            f"TrustServerCertificate={'yes' if settings.mssql_trust_server_certificate else 'no'}",
        ]
        if self.profile.authentication == AuthenticationMode.PLATFORM_CREDENTIAL:
            parts.append("Trusted_Connection=yes")
        else:
            parts.append(f"UID={_odbc_value(self.profile.username)}")
            parts.append(f"PWD={_odbc_value(self.profile.password)}")
        return ";".join(parts) + ";"

    async def open(self) -> None:
        try:
            import pyodbc
        except ImportError as e:
            raise DriverConnectionError(f"SQL Server driver unavailable: {e}") from e

        logger.info(
            f"Connecting to SQL Server {self.profile.server}/{self.profile.database}"
        )
        try:
            self._conn = await asyncio.to_thread(
                pyodbc.connect,
                self.connection_string(),
                autocommit=True,
                timeout=settings.db_connect_timeout,
            )
        except pyodbc.Error as e:
            raise DriverConnectionError(
                _pyodbc_message(e), sqlstate=_pyodbc_sqlstate(e)
            ) from e
        self._conn.timeout = settings.query_timeout

    def _run(self, sql: str) -> Recordset:
        cursor = self._conn.cursor()
        try:
            cursor.execute(sql)
            rows_affected = cursor.rowcount
            # A batch may lead with row-count-only statements; move to the first result set.
            while cursor.description is None and cursor.nextset():
                pass
            if cursor.description is None:
                return Recordset(rows=[], rows_affected=rows_affected)
            names = [col[0] for col in cursor.description]
            rows = [list(zip(names, row)) for row in cursor.fetchall()]
            return Recordset(rows=rows, rows_affected=None)
        finally:
            cursor.close()

    async def execute(self, sql: str) -> Recordset:
        import pyodbc

        try:
            return await asyncio.to_thread(self._run, sql)
        except pyodbc.Error as e:
            raise DriverExecutionError(
                _pyodbc_message(e), sqlstate=_pyodbc_sqlstate(e)
            ) from e

    async def list_databases(self) -> List[str]:
        recordset = await self.execute(self._DATABASES_QUERY)
        return [row[0][1] for row in recordset.rows]

    async def list_tables(self) -> List[TableInfo]:
        recordset = await self.execute(self._TABLES_QUERY)
        return [
            TableInfo(
                name=row[0][1],
                schema_name=row[1][1],
                type="View" if row[2][1] == "VIEW" else "Table",
            )
            for row in recordset.rows
        ]

    async def close(self) -> None:
        if self._conn is not None:
            conn, self._conn = self._conn, None
            await asyncio.to_thread(conn.close)


class PostgresSession(DriverSession):
    """PostgreSQL session over psycopg's async API."""

    _DATABASES_QUERY = """
        SELECT datname FROM pg_database
        WHERE NOT datistemplate
        ORDER BY datname
    """

    _TABLES_QUERY = """
        SELECT table_name, table_schema, table_type
        FROM information_schema.tables
        WHERE table_schema NOT IN ('pg_catalog', 'information_schema')
        ORDER BY table_schema, table_name
    """

    def __init__(self, profile: ConnectionProfileRequest):
        super().__init__(profile)
        self._conn: Optional[psycopg.AsyncConnection] = None

    def connect_kwargs(self) -> dict:
        """Build psycopg connection kwargs without embedding secrets in a DSN string."""
        host, port = parse_server_address(self.profile.server)
        kwargs = {
            "host": host,
            "port": port or POSTGRES_PORT,
            "dbname": self.profile.database,
            "connect_timeout": settings.db_connect_timeout,
            "options": f"-c statement_timeout={settings.query_timeout * 1000}",
            "autocommit": True,
        }
        # Platform credentials: let libpq authenticate as the OS user (peer/GSSAPI).
        if self.profile.authentication == AuthenticationMode.SQL_CREDENTIAL:
            kwargs["user"] = self.profile.username
            kwargs["password"] = self.profile.password
        return kwargs

    async def open(self) -> None:
        logger.info(
            f"Connecting to PostgreSQL {self.profile.server}/{self.profile.database}"
        )
        try:
            self._conn = await asyncio.wait_for(
                psycopg.AsyncConnection.connect(**self.connect_kwargs()),
                timeout=settings.db_connect_timeout,
            )
        except asyncio.TimeoutError as e:
            raise DriverConnectionError(
                f"Connection timeout after {settings.db_connect_timeout}s"
            ) from e
        except psycopg.Error as e:
            raise DriverConnectionError(str(e), sqlstate=e.sqlstate) from e

    async def execute(self, sql: str) -> Recordset:
        try:
            async with self._conn.cursor() as cur:
                await cur.execute(sql)
                if cur.description is None:
                    return Recordset(rows=[], rows_affected=cur.rowcount)
                names = [col.name for col in cur.description]
                rows = await cur.fetchall()
                return Recordset(rows=[list(zip(names, row)) for row in rows])
        except psycopg.Error as e:
            raise DriverExecutionError(str(e), sqlstate=e.sqlstate) from e

    async def list_databases(self) -> List[str]:
        recordset = await self.execute(self._DATABASES_QUERY)
        return [row[0][1] for row in recordset.rows]

    async def list_tables(self) -> List[TableInfo]:
        recordset = await self.execute(self._TABLES_QUERY)
        return [
            TableInfo(
                name=row[0][1],
                schema_name=row[1][1],
                type="View" if row[2][1] == "VIEW" else "Table",
            )
            for row in recordset.rows
        ]

    async def close(self) -> None:
        if self._conn is not None:
            conn, self._conn = self._conn, None
            await conn.close()


def create_session(profile: ConnectionProfileRequest) -> DriverSession:
    """Return an unopened session for the configured database driver."""
    if settings.db_driver == "postgresql":
        return PostgresSession(profile)
    return MssqlSession(profile)
