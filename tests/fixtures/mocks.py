"""
In-memory statement and connection doubles for runner and caster tests.

`FakeStatement` implements the Statement interface over canned column
metadata and raw rows, and counts how often rows are fetched so tests can
check that nothing is read when it shouldn't be.

Usage:
    def test_select(make_statement, fake_connection):
        stmt = make_statement(columns=[('id', 'LONG')], rows=[{'id': '5'}])
        outcome = StatementRunner(fake_connection).execute(stmt)
"""
import pytest
from mysqllite.types import ColumnMeta


class FakeStatement:
    """Statement double returning raw string values like a driver would."""

    def __init__(self, columns=(), rows=(), row_count=None, execute_result=True,
                 raises=None, error_info=None):
        self.columns = [c if isinstance(c, ColumnMeta) else ColumnMeta(*c) for c in columns]
        self.rows = [dict(r) for r in rows]
        self._row_count = len(self.rows) if row_count is None else row_count
        self.execute_result = execute_result
        self.raises = raises
        self._error_info = error_info
        self.executed_with = []
        self.bound = {}
        self.fetch_calls = 0

    def bind_value(self, name, value):
        self.bound[name] = value
        return self

    def execute(self, params=None):
        self.executed_with.append(dict(params or {}))
        if self.raises is not None:
            raise self.raises
        return self.execute_result

    def row_count(self):
        return self._row_count

    def column_count(self):
        return len(self.columns)

    def column_meta(self, index):
        return self.columns[index]

    def fetch_row(self):
        self.fetch_calls += 1
        if not self.rows:
            return None
        return self.rows.pop(0)

    def error_info(self):
        return self._error_info


class FakeConnection:
    """ConnectionManager double tracking transaction calls."""

    def __init__(self):
        self.echo_errors = False
        self.using_transaction = False
        self.rollbacks = 0
        self.prepared = []
        self.next_statement = None

    def prepare(self, sql):
        statement = self.next_statement or FakeStatement()
        statement.sql = sql
        self.prepared.append(statement)
        return statement

    def roll_back(self):
        if self.using_transaction:
            self.rollbacks += 1
            self.using_transaction = False
        return self

    def debug_to_console(self, enabled=True):
        self.echo_errors = enabled
        return self


@pytest.fixture
def make_statement():
    """Factory fixture for FakeStatement instances."""
    def factory(**kwargs):
        return FakeStatement(**kwargs)

    return factory


@pytest.fixture
def fake_connection():
    return FakeConnection()
