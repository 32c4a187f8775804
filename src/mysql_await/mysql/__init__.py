from .connection import ExecuteResult, MysqlConnection
from .pool import MysqlPool
from .sqlstring import escape, escape_id, format

__all__ = (
    "ExecuteResult",
    "MysqlConnection",
    "MysqlPool",
    "escape",
    "escape_id",
    "format",
)
