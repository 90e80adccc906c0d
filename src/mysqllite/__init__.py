"""
Thin MySQL access layer for JSON APIs.

- connect(): open a ConnectionManager from DATABASE_* environment variables
- StatementRunner: prepare, bind and execute statements with typed results
- Automatic 204/401/403/409 responses when a statement touches no rows

Responses are returned to the caller, never written to the client; the
hosting web framework sends them.
"""
__version__ = '0.1.0'

from typing import Any

from mysqllite.caster import cast_value, cast_values
from mysqllite.connection import ConnectionManager, connect
from mysqllite.exceptions import ConnectionFailure, DatabaseError
from mysqllite.exceptions import DbConnectionError, IntegrityError
from mysqllite.exceptions import IntegrityViolationError, ProgrammingError
from mysqllite.exceptions import QueryError, ValidationError
from mysqllite.exceptions import is_integrity_violation
from mysqllite.options import DatabaseOptions
from mysqllite.policy import NoRowsPolicy
from mysqllite.responses import Response, ResponseSignal
from mysqllite.runner import ExecutionOutcome, StatementRunner
from mysqllite.transaction import Transaction as transaction
from mysqllite.types import ColumnMeta, TypeClass


def execute(cn: ConnectionManager, sql: str, **params: Any) -> ExecutionOutcome:
    """Execute a statement with a fresh runner and return its outcome.
    """
    runner = StatementRunner(cn)
    runner.params.update(params)
    return runner.prepare_sql(sql).execute()


def select(cn: ConnectionManager, sql: str, **params: Any) -> list[dict[str, Any]]:
    """Execute a SELECT and return the cast rows.

    Raises the driver error, or ResponseSignal, instead of returning a
    short-circuit outcome.
    """
    outcome = execute(cn, sql, **params)
    if outcome.failure_cause is not None:
        raise outcome.failure_cause
    outcome.raise_for_response()
    return outcome.data


__all__ = [
    'connect',
    'ConnectionManager',
    'DatabaseOptions',
    'StatementRunner',
    'ExecutionOutcome',
    'NoRowsPolicy',
    'Response',
    'ResponseSignal',
    'ColumnMeta',
    'TypeClass',
    'transaction',
    'execute',
    'select',
    'cast_value',
    'cast_values',
    'is_integrity_violation',
    'DatabaseError',
    'ConnectionFailure',
    'QueryError',
    'IntegrityViolationError',
    'ValidationError',
    'IntegrityError',
    'ProgrammingError',
    'DbConnectionError',
]
