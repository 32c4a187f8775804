from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from itertools import count
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from asyncmy import Connection, connect
from asyncmy.cursors import DictCursor

from mysql_await.base import NOT_SET, Callback, RawConnection
from mysql_await.config import ConfigLike, ConnectionConfig
from mysql_await.exception import (
    ConfigurationError,
    ConnectionClosedError,
    UnsupportedOperationError,
)
from mysql_await.mysql import sqlstring
from mysql_await.mysql.dispatch import CallbackDispatcher

if TYPE_CHECKING:
    from mysql_await.mysql.pool import MysqlPool

logger = logging.getLogger(__name__)

CHANGE_USER_KEYS = ("user", "password", "database", "charset")


@dataclass(frozen=True)
class ExecuteResult:
    """Outcome of a statement that produces no result set"""

    affected_rows: int
    insert_id: Optional[int] = None


QueryResult = Union[List[Dict[str, Any]], ExecuteResult]


async def execute(
    connection: Connection, sql: str, params: Any = NOT_SET
) -> QueryResult:
    """Run one statement on an `asyncmy` connection

    Without `params` the statement is sent verbatim. With `params`, even
    an empty list, the driver substitutes them first, which also means a
    literal `%` has to be written as `%%`.
    """
    logger.debug("[SQL] %s | params: %r", " ".join(sql.split()), params)
    async with connection.cursor(cursor=DictCursor) as cursor:
        if params is NOT_SET:
            await cursor.execute(sql)
        else:
            await cursor.execute(sql, params)
        if cursor.description is None:
            return ExecuteResult(cursor.rowcount, cursor.lastrowid)
        return list(await cursor.fetchall())


class MysqlConnection(CallbackDispatcher, RawConnection):
    """Callback style MySQL connection backed by `asyncmy`

    Commands are queued and run one after another in the order they were
    issued. The first command opens the connection if `connect` was not
    called explicitly. Once the connection has ended, been destroyed or
    released back to its pool, every further command fails with
    `ConnectionClosedError`.

    Events: `connect`, `end`, `error`.
    """

    _ids = count(1)

    def __init__(
        self,
        config: ConfigLike = None,
        *,
        connection: Optional[Connection] = None,
        pool: Optional[MysqlPool] = None,
    ) -> None:
        super().__init__()
        self.config = ConnectionConfig.coerce(config)
        self.id = next(self._ids)
        self._connection = connection
        self._pool = pool
        self._lock = asyncio.Lock()
        self._closed = False

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.id} {self.state}>"

    @property
    def state(self) -> str:
        if self._closed:
            return "closed"
        if self._connection is None:
            return "disconnected"
        return "connected"

    @property
    def pooled(self) -> bool:
        return self._pool is not None

    def connect(self, callback: Optional[Callback] = None) -> None:
        self._dispatch("connect", self._driver, callback)

    def query(
        self,
        sql: str,
        params: Any = NOT_SET,
        callback: Optional[Callback] = None,
    ) -> None:
        async def _query() -> QueryResult:
            return await execute(await self._driver(), sql, params)

        self._dispatch("query", _query, callback, returns=True)

    def begin_transaction(self, callback: Optional[Callback] = None) -> None:
        async def _begin() -> None:
            await (await self._driver()).begin()

        self._dispatch("begin", _begin, callback)

    def commit(self, callback: Optional[Callback] = None) -> None:
        async def _commit() -> None:
            await (await self._driver()).commit()

        self._dispatch("commit", _commit, callback)

    def rollback(self, callback: Optional[Callback] = None) -> None:
        async def _rollback() -> None:
            await (await self._driver()).rollback()

        self._dispatch("rollback", _rollback, callback)

    def change_user(
        self, params: Mapping[str, Any], callback: Optional[Callback] = None
    ) -> None:
        """Switch the session to other credentials or another database

        A change of database only is done in place. Anything else reopens
        the connection with the merged settings, which also resets the
        session. Pooled connections may only switch databases.
        """

        async def _change_user() -> None:
            await self._change_user(dict(params or {}))

        self._dispatch("change_user", _change_user, callback)

    def end(self, callback: Optional[Callback] = None) -> None:
        self._dispatch("end", self._end, callback)

    def destroy(self, callback: Optional[Callback] = None) -> None:
        """Close the socket right away, skipping queued commands"""
        error: Optional[Exception] = None
        try:
            self._terminate()
        except Exception as e:
            error = e
        self._complete(callback, error, None, False)

    def release(self) -> None:
        if self._pool is None:
            super().release()
        if self._closed:
            raise ConnectionClosedError(
                f"Connection {self.id} was already released"
            )
        self._closed = True
        self._pool._release(self, self._connection)

    def escape(self, value: Any) -> str:
        return sqlstring.escape(value, self.config.charset)

    def escape_id(self, identifier: str) -> str:
        return sqlstring.escape_id(identifier)

    def format(self, sql: str, params: Any = None) -> str:
        return sqlstring.format(sql, params, self.config.charset)

    async def _driver(self) -> Connection:
        if self._closed:
            raise ConnectionClosedError(
                f"Connection {self.id} has already been closed"
            )
        if self._connection is None:
            self._connection = await connect(**self.config.connect_kwargs())
            logger.debug("Connection %d opened to %s", self.id, self.config)
            self._events.emit("connect", self)
        return self._connection

    async def _execute(self, sql: str, params: Any = NOT_SET) -> QueryResult:
        async with self._lock:
            return await execute(await self._driver(), sql, params)

    async def _change_user(self, params: Dict[str, Any]) -> None:
        unknown = set(params) - set(CHANGE_USER_KEYS)
        if unknown:
            raise ConfigurationError(
                f"change_user: unknown settings {', '.join(sorted(unknown))}"
            )

        database = params.pop("database", None)
        if not params:
            if database is not None:
                await (await self._driver()).select_db(database)
                self.config = replace(self.config, database=database)
            return

        if self._pool is not None:
            raise UnsupportedOperationError(
                "Pooled connections can only switch databases"
            )

        if database is not None:
            params["database"] = database
        config = ConnectionConfig.coerce(self.config, **params)
        previous, self._connection = self._connection, None
        self.config = config
        if previous is not None:
            await previous.ensure_closed()
        await self._driver()

    async def _end(self) -> None:
        if self._closed:
            raise ConnectionClosedError(
                f"Connection {self.id} has already been closed"
            )
        self._closed = True
        connection = self._connection
        if self._pool is not None:
            if connection is not None:
                connection.close()
            self._pool._release(self, connection)
        elif connection is not None:
            await connection.ensure_closed()
        logger.debug("Connection %d ended", self.id)
        self._events.emit("end", self)

    def _terminate(self) -> None:
        was_closed, self._closed = self._closed, True
        connection = self._connection
        if connection is not None:
            connection.close()
        if self._pool is not None and not was_closed:
            self._pool._release(self, connection)
        logger.debug("Connection %d destroyed", self.id)
