"""Query execution endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends

from restodb.core.deps import get_query_service
from restodb.core.errors import ValidationFailed
from restodb.core.validation import validate_query_text
from restodb.models.query import (
    CreateTableRequest,
    FormatQueryRequest,
    FormatQueryResponse,
    GeneratedSql,
    QueryExecuteRequest,
    QueryResult,
    SqlTemplate,
)
from restodb.services.query_service import QueryService
from restodb.services.query_templates import (
    format_sql_query,
    generate_create_table_sql,
    get_templates,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=QueryResult)
async def execute_query(
    request: QueryExecuteRequest,
    service: QueryService = Depends(get_query_service),
) -> QueryResult:
    """
    Execute SQL against a saved connection.

    The text is sent to the database verbatim, with no parameter binding and
    no statement filtering. Every attempt against a resolvable request is
    written to the query history, including failures. A database error
    answers 400 with ``message`` set to "Query execution failed" and
    ``error`` carrying the driver's text.
    """
    validate_query_text(request.query)
    return await service.execute(request.connection_id, request.query)


@router.get("/templates", response_model=List[SqlTemplate])
async def list_templates() -> List[SqlTemplate]:
    """List starter SQL statements."""
    return [SqlTemplate(**t) for t in get_templates()]


@router.post("/format", response_model=FormatQueryResponse)
async def format_query(request: FormatQueryRequest) -> FormatQueryResponse:
    """Lay SQL out one clause per line. Display only; the text is not parsed."""
    return FormatQueryResponse(query=format_sql_query(request.query))


@router.post("/create-table", response_model=GeneratedSql)
async def create_table_sql(request: CreateTableRequest) -> GeneratedSql:
    """
    Generate a CREATE TABLE statement. Nothing is executed.

    Names are quoted for the configured driver; a type that is not a plain
    SQL type name is rejected with 400.
    """
    try:
        return GeneratedSql(query=generate_create_table_sql(request.table_name, request.columns))
    except ValueError as e:
        raise ValidationFailed(str(e)) from e
