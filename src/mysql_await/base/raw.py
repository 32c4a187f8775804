from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from mysql_await.exception import UnsupportedOperationError

Callback = Callable[..., Any]


class _NotSet:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NOT_SET"

    def __bool__(self) -> bool:
        return False


NOT_SET: Any = _NotSet()
"""Marks an omitted `params` argument.

`query(sql)` and `query(sql, [])` are different calls: only the second
one runs the statement through parameter substitution.
"""


class RawConnection(ABC):
    """Callback style connection capabilities wrapped by
    `AwaitableConnection`

    Every callback is invoked as `callback(error)` or
    `callback(error, result)` with `error` set to `None` on success.
    """

    @abstractmethod
    def connect(self, callback: Optional[Callback] = None) -> None: ...

    @abstractmethod
    def query(
        self,
        sql: str,
        params: Any = NOT_SET,
        callback: Optional[Callback] = None,
    ) -> None: ...

    @abstractmethod
    def begin_transaction(
        self, callback: Optional[Callback] = None
    ) -> None: ...

    @abstractmethod
    def commit(self, callback: Optional[Callback] = None) -> None: ...

    @abstractmethod
    def rollback(self, callback: Optional[Callback] = None) -> None: ...

    @abstractmethod
    def change_user(
        self, params: Any, callback: Optional[Callback] = None
    ) -> None: ...

    @abstractmethod
    def end(self, callback: Optional[Callback] = None) -> None: ...

    @abstractmethod
    def destroy(self, callback: Optional[Callback] = None) -> None: ...

    @abstractmethod
    def escape(self, value: Any) -> str: ...

    @abstractmethod
    def escape_id(self, identifier: str) -> str: ...

    @abstractmethod
    def format(self, sql: str, params: Any = None) -> str: ...

    @abstractmethod
    def on(self, event: str, handler: Callback) -> None: ...

    def release(self) -> None:
        """Hand a pooled connection back to its pool"""
        raise UnsupportedOperationError(
            "Only connections acquired from a pool can be released"
        )


class RawPool(ABC):
    """Callback style pool capabilities wrapped by `AwaitablePool`"""

    @abstractmethod
    def get_connection(self, callback: Callback) -> None: ...

    @abstractmethod
    def query(
        self,
        sql: str,
        params: Any = NOT_SET,
        callback: Optional[Callback] = None,
    ) -> None: ...

    @abstractmethod
    def end(self, callback: Optional[Callback] = None) -> None: ...

    @abstractmethod
    def escape(self, value: Any) -> str: ...

    @abstractmethod
    def escape_id(self, identifier: str) -> str: ...

    @abstractmethod
    def format(self, sql: str, params: Any = None) -> str: ...

    @abstractmethod
    def on(self, event: str, handler: Callback) -> None: ...
