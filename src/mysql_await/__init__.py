from importlib.metadata import version
from typing import Any

from .config import ConfigLike, ConnectionConfig
from .connection import AwaitableConnection
from .exception import (
    ConfigurationError,
    ConnectionClosedError,
    MysqlAwaitError,
    PoolClosedError,
    UnsupportedOperationError,
)
from .mysql import MysqlConnection, MysqlPool, sqlstring
from .pool import AwaitablePool
from .transaction import IsolationLevel

__version__ = version("mysql-await")


def create_connection(
    config: ConfigLike = None, **options: Any
) -> AwaitableConnection:
    """Create a standalone connection

    Nothing is sent to the server until the first command, or until
    `await_connect` is awaited.

    Args:
        config (ConfigLike, optional): A `ConnectionConfig`, a mapping of
            settings or a `mysql://` DSN. Defaults to `None`.
        **options: Settings overriding those in `config`

    Returns:
        AwaitableConnection: The wrapped connection
    """
    raw = MysqlConnection(config=_config(config, options))
    return AwaitableConnection(raw)


def create_pool(config: ConfigLike = None, **options: Any) -> AwaitablePool:
    """Create a connection pool

    Args:
        config (ConfigLike, optional): A `ConnectionConfig`, a mapping of
            settings or a `mysql://` DSN. Defaults to `None`.
        **options: Settings overriding those in `config`

    Returns:
        AwaitablePool: The wrapped pool
    """
    return AwaitablePool(MysqlPool(config=_config(config, options)))


def format(sql: str, params: Any = None) -> str:
    """Substitute escaped `params` into `sql` the way the driver does"""
    return sqlstring.format(sql, params)


def _config(config: ConfigLike, options: Any) -> ConnectionConfig:
    return ConnectionConfig.coerce(config, **options)


__all__ = (
    "create_connection",
    "create_pool",
    "format",
    "AwaitableConnection",
    "AwaitablePool",
    "ConnectionConfig",
    "IsolationLevel",
    "MysqlAwaitError",
    "ConfigurationError",
    "ConnectionClosedError",
    "PoolClosedError",
    "UnsupportedOperationError",
)
