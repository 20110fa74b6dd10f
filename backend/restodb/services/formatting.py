"""Display formatting for result values."""

import locale
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Tuple

logger = logging.getLogger(__name__)

NULL_MARKER = "NULL"
MAX_FRACTION_DIGITS = 3


def use_host_locale() -> bool:
    """
    Adopt the host's numeric locale (from LC_ALL, LC_NUMERIC or LANG).

    Python starts in the C locale, so grouping and decimal separators only
    follow the host once this has run. An unknown locale name leaves the
    current one in place and returns False.
    """
    try:
        name = locale.setlocale(locale.LC_NUMERIC, "")
    except locale.Error as e:
        logger.warning(f"Host numeric locale unavailable, keeping {locale.setlocale(locale.LC_NUMERIC)}: {e}")
        return False
    logger.debug(f"Numeric locale set to {name}")
    return True


def _separators() -> Tuple[str, str]:
    """Thousands separator and decimal point of the host locale."""
    conv = locale.localeconv()
    thousands = conv.get("thousands_sep") or ","
    decimal_point = conv.get("decimal_point") or "."
    # C/POSIX locales define no grouping; keep the display readable anyway.
    if thousands == decimal_point:
        thousands = "," if decimal_point != "," else "."
    return thousands, decimal_point


def _format_number(value: Any) -> str:
    if isinstance(value, float) and (value != value or value in (float("inf"), float("-inf"))):
        return str(value)
    if isinstance(value, Decimal) and not value.is_finite():
        return str(value)

    if isinstance(value, int):
        text = f"{value:,}"
    else:
        text = f"{value:,.{MAX_FRACTION_DIGITS}f}"
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        if text in ("-0", ""):
            text = "0"

    thousands, decimal_point = _separators()
    return text.translate(str.maketrans({",": thousands, ".": decimal_point}))


def _format_datetime(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%d %H:%M:%S")


def format_value(value: Any) -> str:
    """
    Render a result value for display.

    NULL becomes ``"NULL"``, booleans ``"TRUE"``/``"FALSE"``, numbers are
    grouped with the host locale's separators and timestamps are shown as
    ``YYYY-MM-DD HH:MM:SS``. Anything else falls back to ``str()``.
    """
    if value is None:
        return NULL_MARKER
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float, Decimal)):
        return _format_number(value)
    if isinstance(value, datetime):
        return _format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def format_row(row: Dict[str, Any]) -> Dict[str, str]:
    """Format every value of a row, keeping column order."""
    return {name: format_value(value) for name, value in row.items()}
