from .interfaces import IsolationLevel
from .state import TransactionState

__all__ = [
    "IsolationLevel",
    "TransactionState",
]
