"""Starter SQL statements, a light SQL layout helper and statement builders."""

import math
import re
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from restodb.core.config import settings

# Bracketed names ([table_name], [condition]) are left for the operator to replace.
QUERY_TEMPLATES: List[Dict[str, str]] = [
    {
        "id": "select_all",
        "name": "Select all rows",
        "query": "SELECT * FROM [table_name]",
    },
    {
        "id": "select_where",
        "name": "Select with filter",
        "query": "SELECT * FROM [table_name] WHERE [condition]",
    },
    {
        "id": "insert",
        "name": "Insert row",
        "query": "INSERT INTO [table_name] ([columns]) VALUES ([values])",
    },
    {
        "id": "update",
        "name": "Update rows",
        "query": "UPDATE [table_name] SET [column] = [value] WHERE [condition]",
    },
    {
        "id": "delete",
        "name": "Delete rows",
        "query": "DELETE FROM [table_name] WHERE [condition]",
    },
    {
        "id": "count_all",
        "name": "Count rows",
        "query": "SELECT COUNT(*) FROM [table_name]",
    },
    {
        "id": "create_table",
        "name": "Create table",
        "query": """CREATE TABLE [table_name] (
  [column1] INT PRIMARY KEY,
  [column2] VARCHAR(100) NOT NULL,
  [column3] DATETIME DEFAULT GETDATE()
)""",
    },
    {
        "id": "create_view",
        "name": "Create view",
        "query": "CREATE VIEW [view_name] AS SELECT * FROM [table_name] WHERE [condition]",
    },
    {
        "id": "join_tables",
        "name": "Join two tables",
        "query": """SELECT a.[column1], b.[column2]
FROM [table1] a
JOIN [table2] b ON a.[id] = b.[foreign_key]""",
    },
]

_CLAUSE_KEYWORDS = re.compile(
    r" (SELECT|FROM|WHERE|JOIN|LEFT|RIGHT|INNER|ORDER BY|GROUP BY|HAVING|UNION"
    r"|INSERT|UPDATE|DELETE|CREATE|ALTER|DROP) ",
    re.IGNORECASE,
)
_LOGICAL_KEYWORDS = re.compile(r" (AND|OR) ", re.IGNORECASE)


def get_templates() -> List[Dict[str, str]]:
    """Return all available query templates."""
    return [dict(t) for t in QUERY_TEMPLATES]


def get_template(template_id: str) -> Optional[Dict[str, str]]:
    """Get a template by ID."""
    for t in QUERY_TEMPLATES:
        if t["id"] == template_id:
            return dict(t)
    return None


def format_sql_query(sql: str) -> str:
    """
    Lay SQL out one clause per line for reading.

    Whitespace runs collapse to single spaces, major clause keywords start a
    new line and AND/OR start an indented one. Not SQL-aware: keywords inside
    string literals are moved too, so the output is for display only.
    """
    text = re.sub(r"\s+", " ", sql).strip()
    # A leading space lets the first keyword match too; it is stripped again below.
    text = _CLAUSE_KEYWORDS.sub(lambda m: f"\n{m.group(1)} ", " " + text + " ")
    text = _LOGICAL_KEYWORDS.sub(lambda m: f"\n  {m.group(1)} ", text)
    return text.strip()


# Statement builders

# A type name with an optional (n), (n, m) or (MAX) size: INT, NVARCHAR(50), DECIMAL(10, 2).
_COLUMN_TYPE = re.compile(
    r"^[A-Za-z][A-Za-z0-9_]*( [A-Za-z][A-Za-z0-9_]*)*( ?\(\s*(\d+|MAX)\s*(,\s*\d+\s*)?\))?$",
    re.IGNORECASE,
)
# Defaults written as-is: numbers, constant keywords, niladic calls such as
# GETDATE(), and well-formed string literals.
_DEFAULT_EXPRESSION = re.compile(
    r"^(-?\d+(\.\d+)?|NULL|TRUE|FALSE|CURRENT_(TIMESTAMP|DATE|TIME|USER)"
    r"|[A-Za-z_][A-Za-z0-9_]*\(\)|N?'([^']|'')*')$",
    re.IGNORECASE,
)


def quote_identifier(name: str, dialect: Optional[str] = None) -> str:
    """
    Quote a table or column name for the configured driver.

    SQL Server names go in brackets with ``]`` doubled, PostgreSQL names in
    double quotes with ``"`` doubled.
    """
    if not name or not name.strip():
        raise ValueError("Identifier must not be empty")
    if (dialect or settings.db_driver) == "postgresql":
        return '"' + name.replace('"', '""') + '"'
    return "[" + name.replace("]", "]]") + "]"


def sql_literal(value: Any, dialect: Optional[str] = None) -> str:
    """
    Render a Python value as a SQL literal.

    Text is single-quoted with embedded quotes doubled (``N''`` on SQL Server
    so Unicode survives). Dates and times are quoted ISO strings. None is
    ``NULL``.
    """
    postgres = (dialect or settings.db_driver) == "postgresql"
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        if postgres:
            return "TRUE" if value else "FALSE"
        return "1" if value else "0"
    if isinstance(value, (int, Decimal, float)):
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError(f"Cannot write {value} as a SQL number")
        if isinstance(value, Decimal) and not value.is_finite():
            raise ValueError(f"Cannot write {value} as a SQL number")
        return str(value)
    if isinstance(value, datetime):
        text = value.isoformat(sep=" ")
    elif isinstance(value, (date, time)):
        text = value.isoformat()
    else:
        text = str(value)
    quoted = "'" + text.replace("'", "''") + "'"
    return quoted if postgres else "N" + quoted


def _default_clause(default: str, dialect: Optional[str]) -> str:
    default = default.strip()
    if _DEFAULT_EXPRESSION.match(default):
        return default
    return sql_literal(default, dialect)


def generate_create_table_sql(
    table_name: str,
    columns: Sequence[Any],
    dialect: Optional[str] = None,
) -> str:
    """
    Build a CREATE TABLE statement, one column per line.

    Each column needs ``name`` and ``type`` and may carry ``nullable`` (only
    an explicit False gives NOT NULL) and ``default_value``. Names are quoted,
    types must look like a SQL type name, and a default that is not a number,
    keyword, function call or quoted literal is written as a string literal.

    Raises:
        ValueError: If the table has no columns, a name is blank or a type
            is not a plain type name
    """
    if not columns:
        raise ValueError("A table needs at least one column")

    definitions = []
    for column in columns:
        column_type = column.type.strip()
        if not _COLUMN_TYPE.match(column_type):
            raise ValueError(f"Invalid type for column '{column.name}': {column.type}")
        definition = f"{quote_identifier(column.name, dialect)} {column_type}"
        definition += " NOT NULL" if column.nullable is False else " NULL"
        if column.default_value:
            definition += f" DEFAULT {_default_clause(column.default_value, dialect)}"
        definitions.append(definition)

    body = ",\n  ".join(definitions)
    return f"CREATE TABLE {quote_identifier(table_name, dialect)} (\n  {body}\n)"
