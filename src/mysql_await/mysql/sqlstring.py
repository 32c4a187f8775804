"""Value escaping and parameter substitution.

Placeholders use the driver's own style: `%s` for positional values and
`%(name)s` for keyword values. Substitution mirrors what the driver does
to a statement before sending it, so `format(sql, params)` shows the exact
text a parameterized query runs.
"""

from typing import Any, Mapping

from asyncmy.converters import escape_item

from mysql_await.config import DEFAULT_CHARSET


def escape(value: Any, charset: str = DEFAULT_CHARSET) -> str:
    return escape_item(value, charset)


def escape_id(identifier: Any, forbid_qualified: bool = False) -> str:
    """Quote an identifier with back-quotes

    Dotted names are quoted part by part (`db.table` becomes
    `` `db`.`table` ``) unless `forbid_qualified` is set. A list or tuple
    of identifiers becomes a comma separated list.
    """
    if isinstance(identifier, (list, tuple)):
        return ", ".join(
            escape_id(item, forbid_qualified) for item in identifier
        )

    text = str(identifier)
    if forbid_qualified:
        return _quote(text)
    return ".".join(_quote(part) for part in text.split("."))


def format(
    sql: str, params: Any = None, charset: str = DEFAULT_CHARSET
) -> str:
    if params is None:
        return sql
    if isinstance(params, (list, tuple)):
        return sql % tuple(escape(value, charset) for value in params)
    if isinstance(params, Mapping):
        return sql % {
            key: escape(value, charset) for key, value in params.items()
        }
    return sql % escape(params, charset)


def _quote(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"
