from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Set

from mysql_await.base import Callback
from mysql_await.events import EventRegistry

logger = logging.getLogger(__name__)

Operation = Callable[[], Awaitable[Any]]


class CallbackDispatcher:
    """Runs driver coroutines as tasks and reports through callbacks

    When a command has a callback, it receives `callback(error)` or, for
    commands producing a value, `callback(error, result)`. Callbacks are
    scheduled on the loop, so an exception raised inside one goes to the
    loop's exception handler and not back into the driver.

    A failing command without a callback is emitted as an `error` event.
    """

    _lock: Optional[asyncio.Lock] = None

    def __init__(self) -> None:
        self._events = EventRegistry()
        self._tasks: Set[asyncio.Task] = set()

    def on(self, event: str, handler: Callback) -> None:
        self._events.on(event, handler)

    def _dispatch(
        self,
        name: str,
        operation: Operation,
        callback: Optional[Callback],
        returns: bool = False,
    ) -> None:
        task = asyncio.ensure_future(
            self._run(name, operation, callback, returns)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(
        self,
        name: str,
        operation: Operation,
        callback: Optional[Callback],
        returns: bool,
    ) -> None:
        try:
            if self._lock is None:
                result = await operation()
            else:
                async with self._lock:
                    result = await operation()
        except Exception as e:
            logger.debug("%s failed on %r: %s", name, self, e)
            self._complete(callback, e, None, returns)
        else:
            self._complete(callback, None, result, returns)

    def _complete(
        self,
        callback: Optional[Callback],
        error: Optional[BaseException],
        result: Any,
        returns: bool,
    ) -> None:
        if callback is None:
            if error is not None and not self._events.emit("error", error):
                logger.error("Unhandled error on %r: %s", self, error)
            return

        args = (error, result) if returns else (error,)
        asyncio.get_running_loop().call_soon(callback, *args)
