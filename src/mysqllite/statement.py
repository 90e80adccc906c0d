"""
Prepared statements over a DB-API 2.0 cursor (PEP-249).

`Statement` is the interface the runner and the caster rely on;
`PreparedStatement` implements it for any DB-API driver.
"""
import logging
import time
from collections import deque
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from mysqllite.exceptions import ValidationError
from mysqllite.sql import placeholder_names, prepare_sql
from mysqllite.types import ColumnMeta, columns_from_cursor_description

logger = logging.getLogger(__name__)

__all__ = ['Statement', 'PreparedStatement']


@runtime_checkable
class Statement(Protocol):
    """What the runner needs from a prepared statement."""

    def execute(self, params: Mapping[str, Any] | None = None) -> bool: ...

    def row_count(self) -> int: ...

    def column_count(self) -> int: ...

    def column_meta(self, index: int) -> ColumnMeta: ...

    def fetch_row(self) -> dict[str, Any] | None: ...

    def error_info(self) -> Any: ...


class PreparedStatement:
    """A SQL statement bound to a connection, with named parameters.

    Result rows are buffered on execute so that the row count of a SELECT
    is known even for drivers that report -1 (sqlite3).
    """

    def __init__(self, connection: Any, sql: str) -> None:
        """Initialize a statement.

        Args:
            connection: The ConnectionManager that prepared this statement
            sql: SQL with ``:name`` placeholders
        """
        self.connection = connection
        self.sql = sql
        self.driver_sql = prepare_sql(sql, connection.dialect)
        self.parameter_names = placeholder_names(sql)
        self.bound: dict[str, Any] = {}
        self.columns: list[ColumnMeta] = []
        self._rows: deque[tuple] = deque()
        self._rowcount = 0
        self._error: Any = None

    def bind_value(self, name: str, value: Any) -> 'PreparedStatement':
        self.bound[name.lstrip(':')] = value
        return self

    def execute(self, params: Mapping[str, Any] | None = None) -> bool:
        """Execute with bound values, overridden by `params`.

        Returns True on success; driver errors propagate.
        """
        values = {**self.bound, **(params or {})}
        missing = [name for name in self.parameter_names if name not in values]
        if missing:
            raise ValidationError(f'Missing values for parameters: {missing}')
        values = {name: values[name] for name in self.parameter_names}

        self._error = None
        self.columns = []
        self._rows.clear()

        start = time.time()
        logger.debug(f'SQL:\n{self.sql}\nparams: {len(values)}')
        cursor = self.connection.raw_connection.cursor()
        try:
            cursor.execute(self.driver_sql, values)
            self.columns = columns_from_cursor_description(cursor)
            if self.columns:
                self._rows.extend(cursor.fetchall())
            rowcount = cursor.rowcount
            self._rowcount = rowcount if rowcount is not None and rowcount >= 0 else len(self._rows)
        except Exception as exc:
            self._error = exc
            logger.error(f'Error with query:\nSQL:\n{self.sql}\nparams: {list(values)}')
            raise
        finally:
            cursor.close()
            elapsed = time.time() - start
            self.connection.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
        return True

    def row_count(self) -> int:
        return self._rowcount

    def column_count(self) -> int:
        return len(self.columns)

    def column_meta(self, index: int) -> ColumnMeta:
        return self.columns[index]

    def fetch_row(self) -> dict[str, Any] | None:
        if not self._rows:
            return None
        row = self._rows.popleft()
        return {column.name: value for column, value in zip(self.columns, row)}

    def error_info(self) -> Any:
        """Last driver error, or None."""
        return self._error

    def __repr__(self) -> str:
        return f'PreparedStatement({self.sql!r})'
