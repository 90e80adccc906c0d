"""
Metadata-driven casting of result values.

Drivers hand back numeric columns as strings (or as driver-specific
numeric objects). These helpers convert them to int and float according
to the column's native type so rows serialize with numbers as numbers.
Values are never sniffed: a numeric-looking string in a text column
stays a string.
"""
import logging
import re
import sys
from decimal import Decimal, InvalidOperation
from typing import Any

from mysqllite.types import DEFAULT_NATIVE_TYPE, TypeClass, classify

logger = logging.getLogger(__name__)

__all__ = ['MAX_SAFE_INTEGER', 'cast_value', 'cast_values']

MAX_SAFE_INTEGER = sys.maxsize

_NUMERIC_PREFIX = re.compile(r'\s*[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')


def _leading_number(value: Any) -> Decimal:
    """Leading numeric part of a value's text, 0 when there is none."""
    match = _NUMERIC_PREFIX.match(str(value))
    if match is None:
        return Decimal(0)
    return Decimal(match.group().strip())


def _cast_int(value: Any) -> int:
    if isinstance(value, bytes):
        # BIT columns arrive as big-endian bytes
        return int.from_bytes(value, 'big')
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(_leading_number(value))


def _cast_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return float(_leading_number(value))


def _cast_bigint(value: Any) -> Any:
    """Cast to int unless the value would not fit a native integer."""
    text = value if isinstance(value, str) else str(value)
    try:
        number = Decimal(text)
    except InvalidOperation:
        return text
    if not number.is_finite() or abs(number) > MAX_SAFE_INTEGER:
        return text
    return int(number)


def cast_value(value: Any, native_type: str = DEFAULT_NATIVE_TYPE) -> Any:
    """Cast a single value according to its column's native type.
    """
    if value is None:
        return None

    type_class = classify(native_type)
    if type_class is TypeClass.FLOAT:
        return _cast_float(value)
    if type_class is TypeClass.INT:
        return _cast_int(value)
    if type_class is TypeClass.BIGINT:
        return _cast_bigint(value)
    return value


def cast_values(statement: Any) -> list[dict[str, Any]]:
    """Fetch all rows of an executed statement with numeric columns cast.

    Statements without a result set (INSERT/UPDATE/DELETE) report zero
    columns; those return an empty list and nothing is fetched.

    :param statement: An executed statement exposing ``column_count``,
        ``column_meta`` and ``fetch_row``.
    :returns: Rows in fetch order, keyed by column name.
    """
    column_count = statement.column_count()
    if column_count == 0:
        return []

    meta: dict[str, str] = {}
    for i in range(column_count):
        column = statement.column_meta(i)
        meta[column.name] = column.native_type or DEFAULT_NATIVE_TYPE

    rows = []
    while (row := statement.fetch_row()) is not None:
        rows.append({
            name: cast_value(value, meta.get(name, DEFAULT_NATIVE_TYPE))
            for name, value in row.items()
        })

    logger.debug(f'Cast {len(rows)} rows across {column_count} columns')
    return rows
