"""
Transaction handling for database connections.

Connections run in auto-commit mode; an explicit transaction is opened on
the raw driver connection and ended by commit or rollback.
"""
import logging
from typing import Any

logger = logging.getLogger(__name__)

__all__ = ['begin', 'commit', 'rollback', 'Transaction']


def _run(raw_conn: Any, statement: str) -> None:
    cursor = raw_conn.cursor()
    try:
        cursor.execute(statement)
    finally:
        cursor.close()


def begin(raw_conn: Any) -> None:
    """Open a transaction on a raw DBAPI connection.

    Works with:
    - PyMySQL (``begin()``)
    - sqlite3 in auto-commit mode (``BEGIN`` statement)
    """
    if hasattr(raw_conn, 'begin') and callable(raw_conn.begin):
        raw_conn.begin()
        return
    _run(raw_conn, 'BEGIN')


def commit(raw_conn: Any) -> None:
    if hasattr(raw_conn, 'begin'):
        raw_conn.commit()
        return
    if getattr(raw_conn, 'in_transaction', True):
        _run(raw_conn, 'COMMIT')


def rollback(raw_conn: Any) -> None:
    if hasattr(raw_conn, 'begin'):
        raw_conn.rollback()
        return
    if getattr(raw_conn, 'in_transaction', True):
        _run(raw_conn, 'ROLLBACK')


class Transaction:
    """Context manager for running multiple statements in a transaction.

    Commits on a clean exit and rolls back when the block raises. Entering
    while a transaction is already active joins it; only the context that
    began the transaction ends it.

    Examples
        with Transaction(cn):
            runner.prepare_sql('delete from ...').execute()
            runner.prepare_sql('update ...').execute()
    """

    def __init__(self, cn: Any) -> None:
        self.cn = cn
        self.owner = False

    def __enter__(self) -> Any:
        self.owner = not self.cn.using_transaction
        self.cn.begin_transaction()
        return self.cn

    def __exit__(self, exc_type: type | None, value: Exception | None, traceback: Any | None) -> None:
        if not self.owner:
            return
        if exc_type is not None:
            logger.warning('Rolling back the current transaction')
            self.cn.roll_back()
        else:
            self.cn.commit()
