"""
Database-specific exception classes.
"""
import sqlite3

import pymysql
import sqlalchemy as sa

INTEGRITY_CONSTRAINT_VIOLATION = 23000


class DatabaseError(Exception):
    """Base class for all mysqllite errors.
    """


class ConnectionFailure(DatabaseError):
    """Error establishing or maintaining database connection.
    """


class QueryError(DatabaseError):
    """Error in query syntax or execution.
    """


class IntegrityViolationError(DatabaseError):
    """Database constraint violation error.
    """


class ValidationError(DatabaseError):
    """Error in input validation.
    """


DbConnectionError = (
    pymysql.err.OperationalError,
    pymysql.err.InterfaceError,
    sqlite3.OperationalError,
    sqlite3.InterfaceError,
    sa.exc.OperationalError,
    sa.exc.InterfaceError,
    ConnectionFailure,
    )

IntegrityError = (
    pymysql.err.IntegrityError,
    sqlite3.IntegrityError,
    sa.exc.IntegrityError,
    IntegrityViolationError,
    )

ProgrammingError = (
    pymysql.err.ProgrammingError,
    sqlite3.ProgrammingError,
    sa.exc.ProgrammingError,
    QueryError,
    )


def _error_code(exc: BaseException) -> object:
    code = getattr(exc, 'sqlstate', None) or getattr(exc, 'code', None)
    if code is None and exc.args:
        code = exc.args[0]
    return code


def is_integrity_violation(exc: BaseException) -> bool:
    """Check if an exception is an integrity constraint violation.

    Covers unique, primary and foreign key violations. Recognised by
    exception class for the supported drivers, or by an SQLSTATE of class
    23 / vendor code 23000 for anything else.

    :param exc: The exception to check.
    :returns: True if the error is an integrity constraint violation.
    """
    if isinstance(exc, IntegrityError):
        return True
    code = _error_code(exc)
    if isinstance(code, int) and not isinstance(code, bool):
        return code == INTEGRITY_CONSTRAINT_VIOLATION
    if isinstance(code, str):
        return code.startswith('23') and len(code) == 5
    return False
