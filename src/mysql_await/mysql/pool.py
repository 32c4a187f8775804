from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Any, Optional

from asyncmy import Connection, create_pool
from asyncmy.pool import Pool

from mysql_await.base import NOT_SET, Callback, RawPool
from mysql_await.config import ConfigLike, ConnectionConfig
from mysql_await.exception import PoolClosedError
from mysql_await.mysql import sqlstring
from mysql_await.mysql.connection import MysqlConnection, QueryResult
from mysql_await.mysql.dispatch import CallbackDispatcher

logger = logging.getLogger(__name__)


class MysqlPool(CallbackDispatcher, RawPool):
    """Callback style MySQL connection pool backed by `asyncmy`

    The underlying pool is created on first use. Slot allocation and
    queuing are left to `asyncmy`; this class only reports what happens
    through callbacks and events.

    Events: `connection` (a new physical connection joined the pool),
    `acquire`, `enqueue` (a caller has to wait for a free slot), `release`,
    `error`.

    A lease that switched to another database is closed when released, so
    the next lease always starts on the pool database. Ending the pool
    terminates leased connections as well as idle ones.
    """

    def __init__(self, config: ConfigLike = None) -> None:
        super().__init__()
        self.config = ConnectionConfig.coerce(config)
        self._pool: Optional[Pool] = None
        self._pool_lock = asyncio.Lock()
        self._known: weakref.WeakSet[Connection] = weakref.WeakSet()
        self._closed = False

    def __repr__(self) -> str:
        status = "closed" if self._closed else "open"
        return f"<{self.__class__.__name__} {self.config.dsn} ({status})>"

    def get_connection(self, callback: Callback) -> None:
        self._dispatch("get_connection", self._acquire, callback, True)

    def query(
        self,
        sql: str,
        params: Any = NOT_SET,
        callback: Optional[Callback] = None,
    ) -> None:
        async def _query() -> QueryResult:
            connection = await self._acquire()
            try:
                return await connection._execute(sql, params)
            finally:
                connection.release()

        self._dispatch("pool_query", _query, callback, returns=True)

    def end(self, callback: Optional[Callback] = None) -> None:
        self._dispatch("pool_end", self._end, callback)

    def escape(self, value: Any) -> str:
        return sqlstring.escape(value, self.config.charset)

    def escape_id(self, identifier: str) -> str:
        return sqlstring.escape_id(identifier)

    def format(self, sql: str, params: Any = None) -> str:
        return sqlstring.format(sql, params, self.config.charset)

    async def _driver(self) -> Pool:
        async with self._pool_lock:
            if self._closed:
                raise PoolClosedError("Pool has already ended")
            if self._pool is None:
                self._pool = await create_pool(**self.config.pool_kwargs())
                logger.debug("Pool opened to %s", self.config)
            return self._pool

    async def _acquire(self) -> MysqlConnection:
        pool = await self._driver()
        if pool.freesize == 0 and pool.size >= pool.maxsize:
            logger.debug("Waiting for available connection slot")
            self._events.emit("enqueue")

        raw = await pool.acquire()
        connection = MysqlConnection(self.config, connection=raw, pool=self)
        if raw not in self._known:
            self._known.add(raw)
            self._events.emit("connection", connection)
        logger.debug("Connection %d acquired", connection.id)
        self._events.emit("acquire", connection)
        return connection

    def _release(
        self, connection: MysqlConnection, raw: Optional[Connection]
    ) -> None:
        if raw is not None and self._pool is not None:
            if connection.config.database != self.config.database:
                logger.debug(
                    "Closing connection %d switched to %s",
                    connection.id,
                    connection.config.database,
                )
                raw.close()
            self._pool.release(raw)
        logger.debug("Connection %d released", connection.id)
        self._events.emit("release", connection)

    async def _end(self) -> None:
        async with self._pool_lock:
            if self._closed:
                raise PoolClosedError("Pool has already ended")
            self._closed = True
            pool = self._pool

        if pool is not None:
            pool.terminate()
            await pool.wait_closed()
        self._known.clear()
        logger.debug("Pool ended")
