"""Input validation utilities."""

import re

from restodb.core.config import settings
from restodb.core.errors import ValidationFailed

ID_PATTERN = re.compile(r"^-?\d+$")


def parse_id(raw_id: str, label: str = "connection") -> int:
    """
    Parse a path identifier into an integer.

    Args:
        raw_id: Identifier as it appeared in the URL
        label: Record kind used in the error message ("connection", "query")

    Returns:
        Integer identifier

    Raises:
        ValidationFailed: If the identifier is not an integer
    """
    if not ID_PATTERN.match(raw_id or ""):
        raise ValidationFailed(f"Invalid {label} ID")
    return int(raw_id)


def validate_query_text(sql: str) -> str:
    """
    Check that SQL text is present and within the configured length.

    The text is returned unchanged: it is executed verbatim.
    """
    if not sql or not sql.strip():
        raise ValidationFailed("SQL query is required")

    if len(sql) > settings.max_query_length:
        raise ValidationFailed(
            f"Query exceeds maximum length of {settings.max_query_length} characters"
        )

    return sql
