"""Conversion of driver recordsets into tabular query results."""

import math
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from restodb.core.database import Recordset
from restodb.models.query import QueryResult, ResultColumn, ResultPage
from restodb.services.formatting import format_row

NULL_TYPE_LABEL = "null"


def _storable(value: Any) -> Any:
    """Keep values JSON-serializable; binary columns become 0x-prefixed hex."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex().upper()
    return value


def _type_label(rows: List[Dict[str, Any]], column: str) -> str:
    for row in rows:
        value = row.get(column)
        if value is not None:
            return type(value).__name__
    return NULL_TYPE_LABEL


def transform(recordset: Optional[Recordset], elapsed_ms: int) -> QueryResult:
    """
    Build a QueryResult from a driver recordset.

    Columns are taken from the first row in driver order; an empty result has
    no columns. Each column is labelled with the Python type name of its first
    non-null value. The row count is the driver's rows-affected figure for
    statements without a result set, else the number of rows returned.
    """
    if recordset is None or recordset.rows is None:
        raise ValueError("Driver returned no recordset")

    # Duplicate names (SELECT 1 AS a, 2 AS a) keep the last value, as a mapping would.
    names = list(dict.fromkeys(name for name, _ in recordset.rows[0])) if recordset.rows else []
    rows = [
        {name: _storable(value) for name, value in row}
        for row in recordset.rows
    ]
    # Pin every row to the declared columns so none is missing a key.
    rows = [{name: row.get(name) for name in names} for row in rows]

    columns = [ResultColumn(name=name, type=_type_label(rows, name)) for name in names]

    if not recordset.rows and recordset.rows_affected is not None and recordset.rows_affected >= 0:
        row_count = recordset.rows_affected
    else:
        row_count = len(rows)

    return QueryResult(
        columns=columns,
        rows=rows,
        row_count=row_count,
        execution_time=elapsed_ms,
    )


def paginate(
    result: QueryResult,
    page: int,
    page_size: int,
    formatted: bool = False,
) -> ResultPage:
    """
    Slice one page out of a result. Pages are 1-based and clamped to range.
    """
    total_rows = len(result.rows)
    total_pages = max(1, math.ceil(total_rows / page_size))
    page = min(max(page, 1), total_pages)

    start = (page - 1) * page_size
    rows = result.rows[start:start + page_size]
    if formatted:
        rows = [format_row(row) for row in rows]

    return ResultPage(
        columns=result.columns,
        rows=rows,
        page=page,
        page_size=page_size,
        total_rows=total_rows,
        total_pages=total_pages,
    )


# JSON carries these types as strings; the column label says how to read them back.
_DECODERS = {
    "Decimal": Decimal,
    "datetime": datetime.fromisoformat,
    "date": date.fromisoformat,
    "time": time.fromisoformat,
}


def _decode(value: Any, label: str) -> Any:
    decoder = _DECODERS.get(label)
    if decoder is None or not isinstance(value, str):
        return value
    try:
        return decoder(value)
    except (ValueError, InvalidOperation):
        return value


def restore_types(result: QueryResult) -> QueryResult:
    """
    Undo the JSON encoding of a result received over HTTP.

    Decimal and temporal cells arrive as strings. Each one is parsed back
    according to its column's type label, so display formatting and CSV
    export see the same values the server stored. Cells that do not parse
    are left as they are.
    """
    labels = {column.name: column.type for column in result.columns}
    rows = [
        {name: _decode(value, labels.get(name, NULL_TYPE_LABEL)) for name, value in row.items()}
        for row in result.rows
    ]
    return result.model_copy(update={"rows": rows})
