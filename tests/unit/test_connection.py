"""
Connection manager tests against a mocked SQLAlchemy engine.
"""
import pytest
import sqlalchemy as sa
from mysqllite.connection import ConnectionManager, create_engine_for_options
from mysqllite.connection import create_url_from_options
from mysqllite.exceptions import ConnectionFailure
from mysqllite.options import DatabaseOptions
from mysqllite.statement import PreparedStatement
from sqlalchemy.pool import NullPool

OPTIONS = DatabaseOptions(hostname='db.internal', database='shop', username='app',
                          password='secret', port=3307)


@pytest.fixture
def engine_factory(mocker):
    """Engine factory whose connections share one mocked PyMySQL connection."""
    raw = mocker.Mock(name='pymysql_connection')

    def connect():
        connection = mocker.Mock(closed=False)
        connection.connection.driver_connection = raw
        return connection

    engine = mocker.Mock()
    engine.connect.side_effect = connect
    factory = mocker.Mock(return_value=engine)
    factory.engine = engine
    factory.raw = raw
    return factory


def test_mysql_url():
    url = create_url_from_options(OPTIONS)

    assert url.drivername == 'mysql+pymysql'
    assert url.host == 'db.internal'
    assert url.port == 3307
    assert url.database == 'shop'
    assert url.username == 'app'
    assert url.query == {'charset': 'utf8mb4'}


def test_sqlite_url():
    url = create_url_from_options(DatabaseOptions(drivername='sqlite', database=':memory:'))

    assert url.drivername == 'sqlite'
    assert url.database == ':memory:'


def test_engine_is_unpooled_and_autocommit(mocker):
    factory = mocker.Mock()

    create_engine_for_options(OPTIONS.replace(timeout=5), engine_factory=factory)

    url, = factory.call_args.args
    kwargs = factory.call_args.kwargs
    assert isinstance(url, sa.URL)
    assert kwargs['poolclass'] is NullPool
    assert kwargs['isolation_level'] == 'AUTOCOMMIT'
    assert kwargs['connect_args'] == {'connect_timeout': 5}


def test_connects_on_construction(engine_factory):
    cn = ConnectionManager(OPTIONS, engine_factory=engine_factory)

    assert not cn.closed
    assert cn.raw_connection is engine_factory.raw
    assert cn.dialect == 'mysql'


def test_connection_failure(mocker):
    error = sa.exc.OperationalError('connect', {}, Exception("Can't connect to MySQL server"))
    engine = mocker.Mock()
    engine.connect.side_effect = error

    with pytest.raises(ConnectionFailure, match='Connection error') as excinfo:
        ConnectionManager(OPTIONS, engine_factory=mocker.Mock(return_value=engine))

    assert excinfo.value.__cause__ is error


def test_reconnect_with_overrides(engine_factory):
    cn = ConnectionManager(OPTIONS, engine_factory=engine_factory)
    first = cn.sa_connection

    cn.reconnect(database='reporting')

    assert cn.options.database == 'reporting'
    assert engine_factory.call_count == 2
    first.close.assert_called_once()
    assert cn.sa_connection is not first


def test_close(engine_factory):
    cn = ConnectionManager(OPTIONS, engine_factory=engine_factory)
    connection = cn.sa_connection

    cn.close()
    cn.close()

    connection.close.assert_called_once()
    engine_factory.engine.dispose.assert_called_once()
    assert cn.closed
    with pytest.raises(ConnectionFailure):
        cn.raw_connection


def test_transaction_state(engine_factory):
    raw = engine_factory.raw
    cn = ConnectionManager(OPTIONS, engine_factory=engine_factory)

    cn.begin_transaction().begin_transaction()
    assert cn.using_transaction is True
    raw.begin.assert_called_once()

    cn.commit().commit()
    raw.commit.assert_called_once()

    cn.roll_back()
    raw.rollback.assert_not_called()
    assert cn.using_transaction is False


def test_context_manager_rolls_back_on_error(engine_factory):
    raw = engine_factory.raw

    with pytest.raises(RuntimeError):
        with ConnectionManager(OPTIONS, engine_factory=engine_factory) as cn:
            cn.begin_transaction()
            raise RuntimeError('abort')

    raw.rollback.assert_called_once()
    assert cn.closed


def test_last_insert_id(engine_factory):
    cursor = engine_factory.raw.cursor.return_value
    cursor.fetchone.return_value = (42,)
    cn = ConnectionManager(OPTIONS, engine_factory=engine_factory)

    assert cn.last_insert_id() == 42
    cursor.execute.assert_called_once_with('SELECT LAST_INSERT_ID()')
    cursor.close.assert_called_once()

    cursor.fetchone.return_value = (None,)
    assert cn.last_insert_id('users_id_seq') is None


def test_prepare_rewrites_placeholders(engine_factory):
    cn = ConnectionManager(OPTIONS, engine_factory=engine_factory)

    statement = cn.prepare("SELECT * FROM users WHERE id = :id AND name LIKE 'a%'")

    assert isinstance(statement, PreparedStatement)
    assert statement.driver_sql == "SELECT * FROM users WHERE id = %(id)s AND name LIKE 'a%%'"
    assert statement.parameter_names == ['id']


def test_statement_executes_on_raw_cursor(engine_factory):
    cursor = engine_factory.raw.cursor.return_value
    cursor.description = [('id', 3, None, None, None, None, None)]
    cursor.fetchall.return_value = [(1,), (2,)]
    cursor.rowcount = 2
    cn = ConnectionManager(OPTIONS, engine_factory=engine_factory)

    statement = cn.prepare('SELECT id FROM users WHERE id > :id').bind_value(':id', 0)

    assert statement.execute({'unused': 1}) is True
    cursor.execute.assert_called_once_with('SELECT id FROM users WHERE id > %(id)s', {'id': 0})
    assert statement.column_meta(0).native_type == 'LONG'
    assert statement.fetch_row() == {'id': 1}
    assert statement.fetch_row() == {'id': 2}
    assert statement.fetch_row() is None
    assert cn.calls == 1


def test_statement_records_driver_error(engine_factory):
    cursor = engine_factory.raw.cursor.return_value
    error = RuntimeError('gone away')
    cursor.execute.side_effect = error
    cn = ConnectionManager(OPTIONS, engine_factory=engine_factory)
    statement = cn.prepare('SELECT 1')

    with pytest.raises(RuntimeError):
        statement.execute()

    assert statement.error_info() is error
    cursor.close.assert_called_once()
    assert cn.calls == 1


def test_debug_to_console(engine_factory):
    cn = ConnectionManager(OPTIONS, engine_factory=engine_factory)

    assert cn.debug_to_console().echo_errors is True
    assert cn.debug_to_console(False).echo_errors is False
