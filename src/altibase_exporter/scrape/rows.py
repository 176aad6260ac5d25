"""Conversions from driver values to sample values and label strings."""

import logging
from decimal import Decimal
from typing import Any

from altibase_exporter.db.errors import QueryError

logger = logging.getLogger(__name__)

MICROS_PER_SECOND = 1e6


def to_float(value: Any) -> float:
    """Numeric column -> float; SQL NULL -> 0."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    return float(str(value).strip())


def to_int(value: Any) -> int:
    """Integer column -> int, exact for 64-bit ids; SQL NULL -> 0."""
    if value is None:
        return 0
    if isinstance(value, (int, float, Decimal)):
        return int(value)
    value = str(value).strip()
    try:
        return int(value)
    except ValueError:
        return int(float(value))


def text(value: Any) -> str:
    """Text column -> label value; SQL NULL -> empty string."""
    if value is None:
        return ""
    return str(value)


def micros_to_seconds(value: Any) -> float:
    return to_float(value) / MICROS_PER_SECOND


def int_label(value: Any) -> str:
    return str(to_int(value))


def seconds_label(micros: Any) -> str:
    return str(micros_to_seconds(micros))


def query_scalar(executor, sql: str) -> float:
    """First column of the first row, 0 when the query returns nothing."""
    row = executor.query_one(sql)
    return to_float(row[0]) if row is not None else 0.0


def query_with_fallback(executor, preferred_sql: str, fallback_sql: str) -> tuple[list, bool]:
    """
    Run preferred_sql; on a missing-column error run fallback_sql once.

    Returns:
        (rows, used_fallback)

    Raises:
        QueryError: If the preferred query fails for another reason, or the
            fallback fails too
    """
    try:
        return executor.query(preferred_sql), False
    except QueryError as e:
        if not e.is_schema_error:
            raise
        logger.debug(f"Preferred query not supported by this server version, using fallback: {e}")

    return executor.query(fallback_sql), True
