"""Query execution models."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from restodb.models.common import ApiModel


class QueryExecuteRequest(ApiModel):
    """Request to execute a SQL query."""

    connection_id: int = Field(..., description="Saved connection to run against")
    query: str = Field(..., description="SQL text, executed verbatim", min_length=1)


class ResultColumn(ApiModel):
    """A result column and the type name inferred from its values."""

    name: str
    type: str


class QueryResult(ApiModel):
    """Tabular result of one query execution."""

    columns: List[ResultColumn] = Field(..., description="Columns in display order")
    rows: List[Dict[str, Any]] = Field(..., description="Rows keyed by column name")
    row_count: int = Field(..., description="Rows returned, or rows affected")
    execution_time: int = Field(..., description="Elapsed milliseconds")


class QueryStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class QueryHistoryRecord(ApiModel):
    """One recorded execution attempt."""

    id: int
    connection_id: Optional[int] = None
    query: str
    status: QueryStatus
    execution_time: Optional[int] = None
    error: Optional[str] = None
    results: Optional[QueryResult] = None
    created_at: datetime


class ResultPage(ApiModel):
    """A single page of a stored query result."""

    columns: List[ResultColumn]
    rows: List[Dict[str, Any]]
    page: int
    page_size: int
    total_rows: int
    total_pages: int


class SqlTemplate(ApiModel):
    """A starter SQL statement with bracketed placeholders."""

    id: str
    name: str
    query: str


class FormatQueryRequest(ApiModel):
    """Request to lay out SQL text for reading."""

    query: str = Field(..., min_length=1)


class FormatQueryResponse(ApiModel):
    """Formatted SQL text."""

    query: str


class ColumnDefinition(ApiModel):
    """One column of a table to create."""

    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1, description="SQL type, e.g. NVARCHAR(100)")
    nullable: Optional[bool] = Field(None, description="Only an explicit false gives NOT NULL")
    default_value: Optional[str] = None


class CreateTableRequest(ApiModel):
    """Request to generate a CREATE TABLE statement."""

    table_name: str = Field(..., min_length=1)
    columns: List[ColumnDefinition] = Field(..., min_length=1)


class GeneratedSql(ApiModel):
    """SQL text built by the server, not executed."""

    query: str
