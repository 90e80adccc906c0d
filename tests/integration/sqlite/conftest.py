"""
Fixtures for SQLite integration tests.
"""
import os
import pathlib
import tempfile

import mysqllite as db
import pytest


@pytest.fixture
def sqlite_file_db():
    """File-based SQLite database for checking what other connections see"""
    fd, path = tempfile.mkstemp(suffix='.db')
    os.close(fd)

    conn = db.connect({
        'drivername': 'sqlite',
        'database': path
    })

    db.execute(conn, """
    CREATE TABLE test_table (
        id INTEGER PRIMARY KEY,
        name TEXT UNIQUE,
        value INTEGER
    )
    """)
    db.execute(conn, """
    INSERT INTO test_table (name, value) VALUES
    ('Alice', 10),
    ('Bob', 20),
    ('Charlie', 30)
    """)

    yield conn, path

    conn.close()
    pathlib.Path(path).unlink()


@pytest.fixture
def count_rows():
    """Row count of test_table as seen by a fresh connection."""
    def count(path):
        with db.connect({'drivername': 'sqlite', 'database': path}) as other:
            return db.select(other, 'SELECT COUNT(*) AS n FROM test_table')[0]['n']

    return count
