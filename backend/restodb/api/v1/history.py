"""Query history endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response

from restodb.core.config import settings
from restodb.core.deps import get_store
from restodb.core.errors import ErrorCode, NoResultAvailable, NotFound, ValidationFailed
from restodb.core.store import ConnectionStore
from restodb.core.validation import parse_id
from restodb.models.query import QueryHistoryRecord, QueryResult, ResultPage
from restodb.services.export import export_filename, to_csv
from restodb.services.results import paginate

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_record(store: ConnectionStore, raw_id: str) -> QueryHistoryRecord:
    query_id = parse_id(raw_id, label="query")
    record = store.get_query(query_id)
    if record is None:
        raise NotFound(f"Query {query_id} not found", code=ErrorCode.QUERY_NOT_FOUND)
    return record


def _require_result(record: QueryHistoryRecord) -> QueryResult:
    if record.results is None:
        raise NoResultAvailable(record.id)
    return record.results


@router.get("", response_model=List[QueryHistoryRecord])
async def list_queries(
    connection_id: Optional[str] = Query(default=None, alias="connectionId"),
    store: ConnectionStore = Depends(get_store),
) -> List[QueryHistoryRecord]:
    """List executed queries, oldest first, optionally for one connection."""
    conn_id = parse_id(connection_id) if connection_id is not None else None
    return store.list_queries(conn_id)


@router.get("/{query_id}", response_model=QueryHistoryRecord)
async def get_query(
    query_id: str,
    store: ConnectionStore = Depends(get_store),
) -> QueryHistoryRecord:
    """Get one history record, its result included when it succeeded."""
    return _require_record(store, query_id)


@router.get("/{query_id}/page", response_model=ResultPage)
async def get_result_page(
    query_id: str,
    page: int = Query(default=1),
    page_size: Optional[int] = Query(default=None, alias="pageSize"),
    formatted: bool = Query(default=False),
    store: ConnectionStore = Depends(get_store),
) -> ResultPage:
    """
    Return one page of a stored result.

    Out-of-range pages are clamped. With ``formatted=true`` every cell is
    rendered as display text (NULL markers, grouped numbers, timestamps).
    """
    size = page_size if page_size is not None else settings.default_page_size
    if size < 1 or size > settings.max_page_size:
        raise ValidationFailed(
            f"pageSize must be between 1 and {settings.max_page_size}"
        )
    record = _require_record(store, query_id)
    return paginate(_require_result(record), page, size, formatted=formatted)


@router.get("/{query_id}/export")
async def export_query_result(
    query_id: str,
    store: ConnectionStore = Depends(get_store),
) -> Response:
    """Download a stored result as CSV."""
    record = _require_record(store, query_id)
    result = _require_result(record)
    body = to_csv([c.name for c in result.columns], result.rows)
    filename = export_filename(record.id)
    logger.info(
        f"Exported query {record.id} ({len(result.rows)} rows)",
        extra={"event": "query_exported", "query_id": record.id},
    )
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
