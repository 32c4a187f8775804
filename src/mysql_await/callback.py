from __future__ import annotations

import logging
from asyncio import AbstractEventLoop, Future, get_running_loop
from typing import Any, Generator, Optional

logger = logging.getLogger(__name__)


class PendingOperation:
    """A single raw client call waiting for its completion callback.

    The bound `callback` is handed to the raw client. Whatever thread the
    raw client completes on, the outcome is delivered to the loop that
    created the operation. The operation settles exactly once: the first
    completion wins and any later one is ignored.

    Example:

    ```python
    operation = PendingOperation("commit")
    raw.commit(operation.callback)
    await operation
    ```
    """

    __slots__ = ("name", "_loop", "_future")

    def __init__(
        self, name: str, loop: Optional[AbstractEventLoop] = None
    ) -> None:
        self.name = name
        self._loop = loop or get_running_loop()
        self._future: Future = self._loop.create_future()

    def callback(self, error: Optional[BaseException] = None, *results):
        """Completion callback in `callback(error, result)` form"""
        result = results[0] if results else None
        self._loop.call_soon_threadsafe(self._settle, error, result)

    def _settle(self, error: Optional[BaseException], result: Any) -> None:
        if self._future.done():
            logger.debug("Ignoring repeated completion of %s", self.name)
            return
        if error is not None:
            self._future.set_exception(error)
        else:
            self._future.set_result(result)

    @property
    def done(self) -> bool:
        return self._future.done()

    def __await__(self) -> Generator[Any, None, Any]:
        return self._future.__await__()

    def __repr__(self) -> str:
        state = "settled" if self._future.done() else "pending"
        return f"<{self.__class__.__name__} {self.name} ({state})>"
