from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class EventRegistry:
    """Listeners subscribed to named events on a connection or pool.

    Handlers are called synchronously in subscription order. An exception
    raised by a handler propagates to whoever emitted the event.
    """

    def __init__(self) -> None:
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)

    def on(self, event: str, handler: Handler) -> None:
        self._handlers[event].append(handler)

    def emit(self, event: str, *args: Any) -> bool:
        """Call every handler of `event`, returning whether any existed"""
        handlers = list(self._handlers.get(event, []))
        if not handlers:
            return False
        logger.debug("Emitting %s to %d handler(s)", event, len(handlers))
        for handler in handlers:
            handler(*args)
        return True
