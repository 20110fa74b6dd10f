"""CSV export of query results."""

from typing import Any, Dict, Iterable, Optional, Sequence

from restodb.core.config import settings


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return '"' + value.replace('"', '""') + '"'
    return str(value)


def to_csv(column_names: Sequence[str], rows: Iterable[Dict[str, Any]]) -> str:
    """
    Serialize rows to CSV text.

    Header names and text cells are double-quoted (embedded quotes doubled),
    NULLs are empty fields and other values are written unquoted. Every line,
    the last one included, ends with ``\\n``. No locale formatting is applied,
    so the same input always yields the same bytes.
    """
    lines = [",".join(_csv_cell(str(name)) for name in column_names)]
    for row in rows:
        lines.append(",".join(_csv_cell(row.get(name)) for name in column_names))
    return "\n".join(lines) + "\n"


def export_filename(query_id: Optional[int] = None) -> str:
    """Download name for an exported result."""
    if query_id is None:
        return settings.export_filename
    return f"query_{query_id}_results.csv"
