"""Client-side query console.

Holds the state of an operator's SQL session against the HTTP API: the
selected connection, the SQL text, the last result and the page being
viewed. Every action that can fail appends a notice, so success and failure
are always reported distinctly.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

import httpx

from restodb.core.config import settings
from restodb.models.query import QueryResult
from restodb.services.data_entry import FORMS
from restodb.services.export import to_csv
from restodb.services.formatting import use_host_locale
from restodb.services.results import paginate, restore_types

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


class ConsoleState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class Notice(NamedTuple):
    """A message shown to the operator."""

    level: str  # "success", "error" or "info"
    title: str
    description: str


def _error_text(response: httpx.Response, fallback: str) -> str:
    """Pick the most specific message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or fallback
    if isinstance(body, dict):
        return body.get("error") or body.get("message") or fallback
    return fallback


class QueryConsole:
    """
    State holder for one query console.

    The console never keeps a result from an earlier run once a new run has
    failed: ``result`` is either the outcome of the latest successful
    execution or None.
    """

    def __init__(self, client: httpx.AsyncClient, page_size: Optional[int] = None):
        self.client = client
        self.page_size = page_size or settings.default_page_size
        self.connection_id: Optional[int] = None
        self.sql = ""
        self.state = ConsoleState.IDLE
        self.result: Optional[QueryResult] = None
        self.error: Optional[str] = None
        self.page = 1
        self.notices: List[Notice] = []
        use_host_locale()

    def _notify(self, level: str, title: str, description: str) -> None:
        self.notices.append(Notice(level, title, description))

    def select_connection(self, connection_id: Optional[int]) -> None:
        """Switch to another saved connection. The current result is dropped."""
        self.connection_id = connection_id
        self.result = None
        self.error = None
        self.page = 1
        self.state = ConsoleState.IDLE

    def set_sql(self, sql: str) -> None:
        self.sql = sql

    # Connections

    async def test_connection(self, profile: Dict[str, Any]) -> bool:
        """Check that a profile can connect. Nothing is saved."""
        try:
            response = await self.client.post(f"{API_PREFIX}/connections/test", json=profile)
        except httpx.HTTPError as e:
            self._notify("error", "Connection Test Failed", str(e))
            return False
        if response.is_success:
            self._notify("success", "Connection Test Successful", "Successfully connected to the database.")
            return True
        self._notify(
            "error",
            "Connection Test Failed",
            _error_text(response, "Failed to connect to the database."),
        )
        return False

    async def save_connection(self, profile: Dict[str, Any]) -> Optional[int]:
        """Save a profile and select it. Returns the new connection id."""
        try:
            response = await self.client.post(f"{API_PREFIX}/connections", json=profile)
        except httpx.HTTPError as e:
            self._notify("error", "Failed to Save Connection", str(e))
            return None
        if not response.is_success:
            self._notify(
                "error",
                "Failed to Save Connection",
                _error_text(response, "Failed to save database connection."),
            )
            return None
        connection_id = response.json()["id"]
        self.select_connection(connection_id)
        self._notify("success", "Connection Saved", "Database connection has been saved.")
        return connection_id

    # Data entry

    async def add_record(self, entity: str, values: Dict[str, Any]) -> bool:
        """Insert one row through a data-entry form on the selected connection."""
        form = FORMS.get(entity)
        failed = form.failed_message if form else f"Error al registrar {entity}"
        if self.connection_id is None:
            self._notify("error", "No Active Connection", "Please connect to a database first.")
            return False
        try:
            response = await self.client.post(
                f"{API_PREFIX}/data-entry/{entity}",
                json={"connectionId": self.connection_id, "values": values},
            )
        except httpx.HTTPError as e:
            self.error = str(e)
            self._notify("error", "Error", failed)
            return False
        if not response.is_success:
            self.error = _error_text(response, failed)
            self._notify("error", "Error", failed)
            return False
        self.error = None
        self._notify("success", "¡Éxito!", response.json()["message"])
        return True

    # Query text

    async def format_sql(self) -> bool:
        """Replace the SQL text with its one-clause-per-line layout."""
        if not self.sql.strip():
            self._notify("error", "Empty Query", "Please enter a SQL query to format.")
            return False
        try:
            response = await self.client.post(f"{API_PREFIX}/query/format", json={"query": self.sql})
        except httpx.HTTPError as e:
            self._notify("error", "Format Failed", str(e))
            return False
        if not response.is_success:
            self._notify("error", "Format Failed", "Could not format the SQL query.")
            return False
        self.sql = response.json()["query"]
        self._notify("success", "Query Formatted", "SQL query has been formatted.")
        return True

    # Execution

    async def execute(self) -> Optional[QueryResult]:
        """
        Run the current SQL on the selected connection.

        Refuses, without contacting the server, when no connection is selected
        or the SQL is blank. Returns the result, or None on any failure.
        """
        if self.connection_id is None:
            self._notify("error", "No Active Connection", "Please connect to a database first.")
            return None
        if not self.sql.strip():
            self._notify("error", "Empty Query", "Please enter a SQL query to execute.")
            return None

        self.state = ConsoleState.RUNNING
        self.result = None
        self.error = None
        self.page = 1

        try:
            response = await self.client.post(
                f"{API_PREFIX}/query",
                json={"connectionId": self.connection_id, "query": self.sql},
            )
        except httpx.HTTPError as e:
            return self._fail(str(e) or "Failed to execute query.")

        if not response.is_success:
            return self._fail(_error_text(response, "Failed to execute query."))

        self.result = restore_types(QueryResult.model_validate(response.json()))
        self.state = ConsoleState.SUCCEEDED
        self._notify(
            "success",
            "Query Executed Successfully",
            f"Query completed in {self.result.execution_time}ms with {self.result.row_count} rows.",
        )
        return self.result

    def _fail(self, message: str) -> None:
        self.state = ConsoleState.FAILED
        self.result = None
        self.error = message
        logger.warning(f"Query on connection {self.connection_id} failed: {message}")
        self._notify("error", "Query Execution Failed", message)
        return None

    # Result viewing

    @property
    def total_pages(self) -> int:
        if self.result is None:
            return 0
        return paginate(self.result, 1, self.page_size).total_pages

    def page_rows(self) -> List[Dict[str, str]]:
        """Display-formatted rows of the current page."""
        if self.result is None:
            return []
        page = paginate(self.result, self.page, self.page_size, formatted=True)
        self.page = page.page
        return page.rows

    def next_page(self) -> bool:
        if self.page >= self.total_pages:
            return False
        self.page += 1
        return True

    def previous_page(self) -> bool:
        if self.page <= 1:
            return False
        self.page -= 1
        return True

    def export_csv(self) -> Optional[str]:
        """CSV text of the whole current result, or None when there is nothing to export."""
        if self.result is None or not self.result.rows:
            self._notify("error", "No Data to Export", "There are no query results to export.")
            return None
        text = to_csv([c.name for c in self.result.columns], self.result.rows)
        self._notify("success", "Export Successful", "Query results have been exported to CSV.")
        return text
