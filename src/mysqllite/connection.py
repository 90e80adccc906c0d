"""
Database connection handling with SQLAlchemy.

This module provides:
1. The `connect()` function for creating new database connections
2. The `ConnectionManager` class that owns one connection and its transaction state
3. Engine creation from `DatabaseOptions`

Engines never pool (`NullPool`) and run in auto-commit mode, so a
statement outside `begin_transaction()` is committed as soon as it runs.
"""
import logging
from collections.abc import Callable
from typing import Any, Self

import sqlalchemy as sa
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from mysqllite import transaction as tx
from mysqllite.exceptions import ConnectionFailure
from mysqllite.options import DatabaseOptions
from mysqllite.statement import PreparedStatement

__all__ = [
    'ConnectionManager',
    'connect',
    'create_url_from_options',
    'create_engine_for_options',
]

logger = logging.getLogger(__name__)

_LAST_INSERT_ID_SQL = {
    'mysql': 'SELECT LAST_INSERT_ID()',
    'sqlite': 'SELECT last_insert_rowid()',
}


def create_url_from_options(options: DatabaseOptions,
                            url_creator: Callable[..., sa.URL] = sa.URL.create) -> sa.URL:
    """Convert DatabaseOptions to SQLAlchemy URL.
    """
    if options.drivername == 'sqlite':
        return url_creator(
            drivername='sqlite',
            database=options.database
        )

    elif options.drivername == 'mysql':
        query = {'charset': options.charset} if options.charset else {}
        return url_creator(
            drivername='mysql+pymysql',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query=query
        )

    raise ValueError(f'Unsupported database type: {options.drivername}')


def create_engine_for_options(options: DatabaseOptions,
                              engine_factory: Callable[..., Engine] = sa.create_engine,
                              **kwargs: Any) -> Engine:
    """Create a non-pooling, auto-commit SQLAlchemy engine for the options.

    The PyMySQL dialect sets CLIENT.FOUND_ROWS, so UPDATE reports matched
    rather than changed rows.
    """
    url = create_url_from_options(options)

    engine_kwargs: dict[str, Any] = {
        'echo': False,
        'poolclass': NullPool,
        'isolation_level': 'AUTOCOMMIT',
    }
    if options.timeout and options.drivername == 'mysql':
        engine_kwargs['connect_args'] = {'connect_timeout': options.timeout}
    engine_kwargs.update(kwargs)

    engine = engine_factory(url, **engine_kwargs)
    logger.debug(f'Created new engine for {options.drivername}')
    return engine


class ConnectionManager:
    """Owns one database connection and its transaction state.

    - Connects on construction from `DatabaseOptions`
    - Tracks at most one active transaction; begin/commit/roll_back are
      no-ops when they would nest or end a transaction that isn't there
    - Prepares statements bound to this connection
    - Tracks query execution counts and timing
    """

    def __init__(self, options: DatabaseOptions,
                 engine_factory: Callable[..., Engine] = sa.create_engine) -> None:
        self.options = options
        self.engine_factory = engine_factory
        self.engine: Engine | None = None
        self.sa_connection: sa.engine.Connection | None = None
        self.using_transaction = False
        self.echo_errors = False
        self.calls = 0
        self.time = 0.0
        self.connect()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        if exc_type is not None:
            self.roll_back()
        self.close()

    @property
    def dialect(self) -> str:
        """Return the dialect name ('mysql' or 'sqlite')."""
        return self.options.drivername

    @property
    def closed(self) -> bool:
        return self.sa_connection is None or self.sa_connection.closed

    @property
    def raw_connection(self) -> Any:
        """The driver's own connection object."""
        if self.closed:
            raise ConnectionFailure('Connection is closed')
        return self.sa_connection.connection.driver_connection

    def connect(self, **overrides: Any) -> sa.engine.Connection:
        """Open the connection, replacing any existing one.

        Raises ConnectionFailure if the driver cannot connect.
        """
        self.close()
        if overrides:
            self.options = self.options.replace(**overrides)

        try:
            self.engine = create_engine_for_options(self.options, engine_factory=self.engine_factory)
            self.sa_connection = self.engine.connect()
        except sa.exc.SQLAlchemyError as exc:
            logger.error(f'Database connection failed: {exc}')
            raise ConnectionFailure(f'Connection error: {exc}') from exc

        logger.debug(f'Connected to {self.options.drivername} database {self.options.database}')
        return self.sa_connection

    reconnect = connect

    def close(self) -> None:
        """Close the connection. An active transaction is rolled back by the driver."""
        if self.sa_connection is not None and not self.sa_connection.closed:
            self.sa_connection.close()
            logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s')
        self.sa_connection = None
        self.using_transaction = False
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None

    def addcall(self, elapsed: float) -> None:
        """Track execution statistics
        """
        self.time += elapsed
        self.calls += 1

    def prepare(self, sql: str) -> PreparedStatement:
        return PreparedStatement(self, sql)

    def begin_transaction(self) -> Self:
        if not self.using_transaction:
            tx.begin(self.raw_connection)
            self.using_transaction = True
            logger.debug(f'Started transaction for connection {id(self)}')
        return self

    def commit(self) -> Self:
        if self.using_transaction:
            tx.commit(self.raw_connection)
            self.using_transaction = False
            logger.debug(f'Committed transaction for connection {id(self)}')
        return self

    def roll_back(self) -> Self:
        if self.using_transaction:
            tx.rollback(self.raw_connection)
            self.using_transaction = False
            logger.debug(f'Rolled back transaction for connection {id(self)}')
        return self

    rollback = roll_back

    def transaction(self) -> tx.Transaction:
        """Context manager committing on success and rolling back on error."""
        return tx.Transaction(self)

    def last_insert_id(self, name: str | None = None) -> int | None:
        """Id generated by the last INSERT on this connection.

        `name` (a sequence name) is accepted for driver compatibility; MySQL
        and SQLite ignore it.
        """
        cursor = self.raw_connection.cursor()
        try:
            cursor.execute(_LAST_INSERT_ID_SQL[self.dialect])
            row = cursor.fetchone()
        finally:
            cursor.close()
        if not row or row[0] is None:
            return None
        return int(row[0])

    def debug_to_console(self, enabled: bool = True) -> Self:
        """Echo logged execution errors to stdout."""
        self.echo_errors = enabled
        return self


def connect(options: DatabaseOptions | dict[str, Any] | None = None,
            **kw: Any) -> ConnectionManager:
    """Connect to a database.

    Args:
        options: Can be:
                - DatabaseOptions object
                - Dictionary of options
                - None to read DATABASE_* environment variables
        **kw: Additional keyword arguments to override options

    Returns
        ConnectionManager for the database
    """
    if isinstance(options, DatabaseOptions):
        if kw:
            options = options.replace(**kw)
    elif options is None:
        options = DatabaseOptions.from_env(**kw)
    else:
        options = DatabaseOptions(**{**options, **kw})

    return ConnectionManager(options)
