from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from mysql_await.base import NOT_SET, Callback, RawConnection
from mysql_await.callback import PendingOperation
from mysql_await.transaction import IsolationLevel, TransactionState

logger = logging.getLogger(__name__)


class AwaitableConnection:
    """Awaitable, transaction aware wrapper around a raw connection.

    Standalone connections and connections acquired from a pool are both
    wrapped by this class, so they share one set of operations and one
    transaction contract.

    While a transaction is open, a failing `await_query` or `await_commit`
    issues a rollback on this same connection before the original error is
    raised. The rollback outcome itself is never reported.

    The callback style primitives of the raw connection are still available
    under their plain names (`query`, `commit`, ...) for callers that prefer
    them.

    Example:

    ```python
    connection = mysql_await.create_connection(config)
    await connection.await_begin_transaction()
    rows = await connection.await_query("SELECT MAX(id) AS max_id FROM t")
    await connection.await_commit()
    await connection.await_end()
    ```
    """

    def __init__(self, raw: RawConnection) -> None:
        self._raw = raw
        self._transaction = TransactionState()

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} {self._raw!r} {self._transaction}>"
        )

    @property
    def raw(self) -> RawConnection:
        return self._raw

    @property
    def config(self) -> Any:
        return getattr(self._raw, "config", None)

    @property
    def in_transaction(self) -> bool:
        return self._transaction.is_open

    @in_transaction.setter
    def in_transaction(self, value: bool) -> None:
        if value:
            self._transaction.open()
        else:
            self._transaction.close()

    def connect(self, callback: Optional[Callback] = None) -> None:
        self._raw.connect(callback)

    def begin_transaction(self, callback: Optional[Callback] = None) -> None:
        self._raw.begin_transaction(callback)

    def change_user(
        self, params: Any, callback: Optional[Callback] = None
    ) -> None:
        self._raw.change_user(params, callback)

    def commit(self, callback: Optional[Callback] = None) -> None:
        self._raw.commit(callback)

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

    def rollback(self, callback: Optional[Callback] = None) -> None:
        self._raw.rollback(callback)

    def destroy(self, callback: Optional[Callback] = None) -> None:
        self._raw.destroy(callback)

    def end(self, callback: Optional[Callback] = None) -> None:
        self._raw.end(callback)

    def release(self) -> None:
        self._raw.release()

    def on(self, event: str, handler: Callback) -> None:
        self._raw.on(event, handler)

    def escape(self, value: Any) -> str:
        return self._raw.escape(value)

    def escape_id(self, identifier: str) -> str:
        return self._raw.escape_id(identifier)

    def format(self, sql: str, params: Any = None) -> str:
        return self._raw.format(sql, params)

    async def await_connect(self) -> None:
        operation = PendingOperation("connect")
        self._raw.connect(operation.callback)
        await operation

    async def await_begin_transaction(
        self, isolation_level: Optional[IsolationLevel] = None
    ) -> None:
        """Start a transaction on this connection

        Args:
            isolation_level (IsolationLevel, optional): Isolation level
                applied to the transaction being started. Defaults to the
                session setting.

        Raises:
            Exception: The raw client error. The connection stays idle.
        """
        if isolation_level is not None:
            await self._run_query(isolation_level.statement)

        operation = PendingOperation("begin")
        self._raw.begin_transaction(operation.callback)
        await operation
        self._transaction.open()

    async def await_change_user(self, params: Any) -> None:
        operation = PendingOperation("change_user")
        self._raw.change_user(params, operation.callback)
        await operation

    async def await_commit(self) -> None:
        """Commit the open transaction

        Raises:
            Exception: The raw commit error. When a transaction was open it
                has already been rolled back.
        """
        operation = PendingOperation("commit")
        try:
            self._raw.commit(operation.callback)
            await operation
        except Exception as e:
            if self._transaction:
                logger.error("Commit failed, rolling back: %s", e)
                await self.await_rollback()
            self._transaction.close()
            raise

        self._transaction.close()

    async def await_query(self, sql: str, params: Any = NOT_SET) -> Any:
        """Run a statement and return the raw result

        Args:
            sql (str): The statement, with `%s` or `%(name)s` placeholders
            params (Any, optional): Values for the placeholders. When
                omitted the statement is sent as is, without parameter
                substitution.

        Returns:
            Any: Rows for a result set, otherwise the raw status result

        Raises:
            Exception: The raw query error. When a transaction was open it
                has already been rolled back.
        """
        try:
            return await self._run_query(sql, params)
        except Exception as e:
            if self._transaction:
                logger.error("Query failed, rolling back: %s", e)
                await self.await_rollback()
                self._transaction.close()
            raise

    async def await_rollback(self) -> None:
        """Roll back the current transaction. Never raises."""
        operation = PendingOperation("rollback")
        try:
            self._raw.rollback(operation.callback)
            await operation
        except Exception as e:
            logger.warning("Discarding rollback failure: %s", e)

    async def await_destroy(self) -> None:
        operation = PendingOperation("destroy")
        try:
            self._raw.destroy(operation.callback)
            await operation
        finally:
            self._transaction.close()

    async def await_end(self) -> None:
        operation = PendingOperation("end")
        try:
            self._raw.end(operation.callback)
            await operation
        finally:
            self._transaction.close()

    @asynccontextmanager
    async def transaction(
        self, isolation_level: Optional[IsolationLevel] = None
    ) -> AsyncIterator[AwaitableConnection]:
        """Run the body of an `async with` block inside a transaction

        The transaction is committed when the block exits normally. If the
        block raises or is cancelled, it is rolled back and the exception
        propagates.

        Example:

        ```python
        async with connection.transaction():
            await connection.await_query(
                "INSERT INTO people (name) VALUES (%s)", ["Scrooge"]
            )
        ```
        """
        await self.await_begin_transaction(isolation_level)
        try:
            yield self
        except BaseException:
            if self._transaction:
                await self.await_rollback()
                self._transaction.close()
            raise
        if self._transaction:
            await self.await_commit()

    async def _run_query(self, sql: str, params: Any = NOT_SET) -> Any:
        operation = PendingOperation("query")
        if params is NOT_SET:
            self._raw.query(sql, callback=operation.callback)
        else:
            self._raw.query(sql, params, operation.callback)
        return await operation
