import logging

logger = logging.getLogger(__name__)


class TransactionState:
    """Whether the owning connection currently has an open transaction.

    Only a successful begin opens it. A commit, a compensating rollback or
    the connection going away closes it again. Reads and writes are not
    synchronized; a connection runs one operation at a time.
    """

    __slots__ = ("_open",)

    def __init__(self) -> None:
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        logger.debug("Transaction opened")
        self._open = True

    def close(self) -> None:
        if self._open:
            logger.debug("Transaction closed")
        self._open = False

    def __bool__(self) -> bool:
        return self._open

    def __str__(self) -> str:
        status = "open" if self._open else "idle"
        return f"<TransactionState ({status})>"
