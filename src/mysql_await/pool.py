from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from mysql_await.base import NOT_SET, Callback, RawPool
from mysql_await.callback import PendingOperation
from mysql_await.connection import AwaitableConnection

logger = logging.getLogger(__name__)


class AwaitablePool:
    """Awaitable wrapper around a raw connection pool

    Connections handed out by `await_get_connection` are
    `AwaitableConnection` instances with their own transaction state. They
    must be given back with `release()` once the caller is done with them,
    or acquired through `connection()` which does that automatically.

    Example:

    ```python
    pool = mysql_await.create_pool(config)
    rows = await pool.await_query("SELECT * FROM people WHERE age = %s", [45])
    async with pool.connection() as connection:
        async with connection.transaction():
            await connection.await_query("DELETE FROM people")
    await pool.await_end()
    ```
    """

    def __init__(self, raw: RawPool) -> None:
        self._raw = raw

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self._raw!r}>"

    @property
    def raw(self) -> RawPool:
        return self._raw

    @property
    def config(self) -> Any:
        return getattr(self._raw, "config", None)

    def get_connection(self, callback: Callback) -> None:
        self._raw.get_connection(callback)

    def query(
        self,
        sql: str,
        params: Any = NOT_SET,
        callback: Optional[Callback] = None,
    ) -> None:
        if params is NOT_SET:
            self._raw.query(sql, callback=callback)
        else:
            self._raw.query(sql, params, callback)

    def end(self, callback: Optional[Callback] = None) -> None:
        self._raw.end(callback)

    def on(self, event: str, handler: Callback) -> None:
        self._raw.on(event, handler)

    def escape(self, value: Any) -> str:
        return self._raw.escape(value)

    def escape_id(self, identifier: str) -> str:
        return self._raw.escape_id(identifier)

    def format(self, sql: str, params: Any = None) -> str:
        return self._raw.format(sql, params)

    async def await_get_connection(self) -> AwaitableConnection:
        """Lease a connection from the pool

        Returns:
            AwaitableConnection: The leased connection, idle
        """
        operation = PendingOperation("get_connection")
        self._raw.get_connection(operation.callback)
        raw_connection = await operation
        return AwaitableConnection(raw_connection)

    async def await_query(self, sql: str, params: Any = NOT_SET) -> Any:
        """Run a single statement on whichever connection is free

        No transaction handling is done here. The raw pool acquires a
        connection, runs the statement and releases the connection again.
        """
        operation = PendingOperation("pool_query")
        if params is NOT_SET:
            self._raw.query(sql, callback=operation.callback)
        else:
            self._raw.query(sql, params, operation.callback)
        return await operation

    async def await_end(self) -> None:
        operation = PendingOperation("pool_end")
        self._raw.end(operation.callback)
        await operation

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[AwaitableConnection]:
        """Lease a connection for the duration of an `async with` block

        A transaction the block left open because of an exception or a
        cancellation is rolled back before the connection goes back to the
        pool.
        """
        connection = await self.await_get_connection()
        try:
            yield connection
        except BaseException:
            if connection.in_transaction:
                await connection.await_rollback()
                connection.in_transaction = False
            raise
        finally:
            connection.release()
            logger.debug("Connection returned to pool")
