class MysqlAwaitError(Exception):
    """Base exception for errors raised by mysql-await itself"""


class ConfigurationError(MysqlAwaitError):
    """Raised when connection settings are invalid"""


class ConnectionClosedError(MysqlAwaitError):
    """Raised when a command is issued after a connection has ended"""


class PoolClosedError(MysqlAwaitError):
    """Raised when a pool is used after it has ended"""


class UnsupportedOperationError(MysqlAwaitError):
    """Raised when a connection cannot perform the requested operation"""
