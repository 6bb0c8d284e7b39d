"""
Shared fixtures: in-memory SQLite stands in for both stores.

SQLite understands CREATE TABLE IF NOT EXISTS and ON CONFLICT (...) DO NOTHING,
so the real SQL generated by the pipeline runs unchanged against it.
"""
import datetime
import sqlite3
from decimal import Decimal

import pytest

from sales_etl.config.pipeline_config import PipelineConfig

sqlite3.register_adapter(Decimal, str)
sqlite3.register_adapter(datetime.date, lambda value: value.isoformat())
sqlite3.register_adapter(datetime.datetime, lambda value: value.isoformat(" "))

SOURCE_DDL = """
CREATE TABLE Sales (
    fsno TEXT,
    salestype TEXT,
    attachmentno TEXT,
    customer TEXT,
    region TEXT,
    date DATE,
    code TEXT,
    name TEXT,
    measurementunit TEXT,
    unitprice NUMERIC,
    soldquantity NUMERIC,
    netpay NUMERIC
)
"""


def make_row(fsno, **overrides):
    """Build a full 12-column source row; keyword overrides by source column."""
    row = {
        'fsno': fsno,
        'salestype': 'CASH',
        'attachmentno': f'ATT-{fsno}',
        'customer': 'Abebe Trading',
        'region': 'Addis Ababa',
        'date': '2024-01-15',
        'code': 'ITM-001',
        'name': 'Cement 50kg',
        'measurementunit': 'BAG',
        'unitprice': '10.25',
        'soldquantity': '4',
        'netpay': '41.00',
    }
    row.update(overrides)
    return row


def insert_source_rows(connection, rows):
    columns = list(make_row('x').keys())
    connection.executemany(
        f"INSERT INTO Sales ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
        [tuple(row[column] for column in columns) for row in rows],
    )
    connection.commit()


def fetch_target(connection, table='SalesDB'):
    cursor = connection.execute(f"SELECT * FROM {table} ORDER BY fsno")
    columns = [description[0] for description in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


@pytest.fixture
def source_db():
    connection = sqlite3.connect(":memory:")
    connection.execute(SOURCE_DDL)
    connection.commit()
    yield connection
    connection.close()


@pytest.fixture
def target_db():
    connection = sqlite3.connect(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def config():
    return PipelineConfig({'target_paramstyle': 'qmark', 'fetch_size': 2})


class ConnectionProxy:
    """Delegates to a real connection, with hooks for injecting failures."""

    def __init__(self, connection, fail_commit=False, fail_cursor_execute=None,
                 fail_cursor_open_after=None):
        self._connection = connection
        self.fail_commit = fail_commit
        self.fail_cursor_execute = fail_cursor_execute
        self.fail_cursor_open_after = fail_cursor_open_after
        self.cursors = []
        self.commits = 0
        self.rollbacks = 0

    def cursor(self):
        if self.fail_cursor_open_after is not None and len(self.cursors) >= self.fail_cursor_open_after:
            raise sqlite3.OperationalError("server closed the connection unexpectedly")
        cursor = CursorProxy(self._connection.cursor(), self.fail_cursor_execute)
        self.cursors.append(cursor)
        return cursor

    def commit(self):
        if self.fail_commit:
            raise sqlite3.OperationalError("could not serialize access")
        self.commits += 1
        self._connection.commit()

    def rollback(self):
        self.rollbacks += 1
        self._connection.rollback()

    def close(self):
        self._connection.close()


class CursorProxy:
    def __init__(self, cursor, error=None):
        self._cursor = cursor
        self._error = error
        self.closed = False

    def execute(self, sql, params=()):
        if self._error is not None:
            raise self._error
        self._cursor.execute(sql, params)
        return self

    def close(self):
        self.closed = True
        self._cursor.close()

    def __getattr__(self, name):
        return getattr(self._cursor, name)
