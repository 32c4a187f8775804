from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

from mysql_await.base import NOT_SET
from mysql_await.mysql import connection as connection_module
from mysql_await.mysql import pool as pool_module


class SyntaxErrorMock(Exception):
    pass


class RawConnectionMock:
    """Records every primitive called and completes it straight away.

    `errors` maps an operation name to the error its callback receives.
    `results` maps a SQL string to the result a query callback receives.
    """

    def __init__(self):
        self.errors = {}
        self.results = {}
        self.calls = []
        for name in (
            "connect",
            "begin_transaction",
            "commit",
            "rollback",
            "end",
            "destroy",
        ):
            setattr(self, name, Mock(side_effect=self._completer(name)))
        self.query = Mock(side_effect=self._query)
        self.change_user = Mock(side_effect=self._change_user)
        self.release = Mock()
        self.on = Mock()
        self.escape = Mock(return_value="'escaped'")
        self.escape_id = Mock(return_value="`escaped`")
        self.format = Mock(return_value="formatted")

    def _completer(self, name):
        def _complete(callback=None):
            self.calls.append(name)
            if callback:
                callback(self.errors.get(name))

        return _complete

    def _query(self, sql, params=NOT_SET, callback=None):
        self.calls.append("query")
        error = self.errors.get("query")
        if isinstance(error, dict):
            error = error.get(sql)
        callback(error, None if error else self.results.get(sql, []))

    def _change_user(self, params, callback=None):
        self.calls.append("change_user")
        callback(self.errors.get("change_user"))


class RawPoolMock:
    def __init__(self):
        self.errors = {}
        self.results = {}
        self.calls = []
        self.connections = []
        self.get_connection = Mock(side_effect=self._get_connection)
        self.query = Mock(side_effect=self._query)
        self.end = Mock(side_effect=self._end)
        self.on = Mock()
        self.escape = Mock(return_value="'escaped'")
        self.escape_id = Mock(return_value="`escaped`")
        self.format = Mock(return_value="formatted")

    def _get_connection(self, callback):
        self.calls.append("get_connection")
        error = self.errors.get("get_connection")
        if error:
            callback(error, None)
            return
        connection = RawConnectionMock()
        self.connections.append(connection)
        callback(None, connection)

    def _query(self, sql, params=NOT_SET, callback=None):
        self.calls.append("query")
        error = self.errors.get("query")
        callback(error, None if error else self.results.get(sql, []))

    def _end(self, callback=None):
        self.calls.append("end")
        callback(self.errors.get("end"))


class CursorMock:
    def __init__(self):
        self.description = (("id",),)
        self.rowcount = 1
        self.lastrowid = None
        self.rows = [{"id": 1}]
        self.execute = AsyncMock()
        self.fetchall = AsyncMock(side_effect=lambda: self.rows)

    async def __aenter__(self, *args, **kwargs):
        return self

    async def __aexit__(self, *args, **kwargs):
        pass


@pytest.fixture
def raw_connection():
    return RawConnectionMock()


@pytest.fixture
def raw_pool():
    return RawPoolMock()


@pytest.fixture
def syntax_error():
    return SyntaxErrorMock(
        "ER_PARSE_ERROR: You have an error in your SQL syntax"
    )


@pytest.fixture
def cursor():
    return CursorMock()


@pytest.fixture
def asyncmy_connection(cursor):
    connection = MagicMock()
    connection.cursor = Mock(return_value=cursor)
    connection.begin = AsyncMock()
    connection.commit = AsyncMock()
    connection.rollback = AsyncMock()
    connection.select_db = AsyncMock()
    connection.ensure_closed = AsyncMock()
    connection.close = Mock()
    return connection


@pytest.fixture
def mock_connect(monkeypatch, asyncmy_connection):
    mock = AsyncMock(return_value=asyncmy_connection)
    monkeypatch.setattr(connection_module, "connect", mock)
    return mock


@pytest.fixture
def asyncmy_pool(asyncmy_connection):
    pool = MagicMock()
    pool.freesize = 1
    pool.size = 1
    pool.maxsize = 10
    pool.acquire = AsyncMock(return_value=asyncmy_connection)
    pool.release = Mock()
    pool.terminate = Mock()
    pool.wait_closed = AsyncMock()
    return pool


@pytest.fixture
def mock_create_pool(monkeypatch, asyncmy_pool):
    mock = AsyncMock(return_value=asyncmy_pool)
    monkeypatch.setattr(pool_module, "create_pool", mock)
    return mock
