"""Statement rendering: LIMIT injection, parameter interpolation, table prefix.

Statements are SQL templates with ``%s`` (positional) or ``%(name)s`` (named)
markers and an optional ``{TABLE_PREFIX}`` token:

    SELECT * FROM {TABLE_PREFIX}_users WHERE id = %s

Parameters are escaped into SQL literals by the backend before they are
interpolated, so the rendered statement is complete and needs no driver-side
binding.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from .exceptions import ParameterError

TABLE_PREFIX_TOKEN = "{TABLE_PREFIX}"

LIMIT_PATTERN = re.compile(r" LIMIT ", re.IGNORECASE)

Params = Sequence[Any] | Mapping[str, Any] | None


def add_limit(stmt: str, count: int | None, offset: int = 0) -> str:
    """Append a LIMIT/OFFSET clause, replacing any existing one.

    A falsy ``count`` (``None`` or 0) leaves the statement unbounded.

    Args:
        stmt: SQL statement
        count: Maximum number of rows
        offset: Rows to skip

    Returns:
        Statement ending in ``LIMIT <count>`` or ``LIMIT <count> OFFSET <offset>``

    Raises:
        ParameterError: If count or offset is negative
    """
    if not count:
        return stmt
    if count < 0 or offset < 0:
        raise ParameterError(f"Invalid limit <{count}> or offset <{offset}> given")

    match = LIMIT_PATTERN.search(stmt)
    if match is not None:
        stmt = stmt[: match.start()]

    if offset == 0:
        return f"{stmt} LIMIT {count}"
    return f"{stmt} LIMIT {count} OFFSET {offset}"


def apply_table_prefix(stmt: str, prefix: str) -> str:
    """Replace every ``{TABLE_PREFIX}`` token with the configured prefix."""
    return stmt.replace(TABLE_PREFIX_TOKEN, prefix)


def interpolate(stmt: str, params: Params, escape: Callable[[Any], str]) -> str:
    """Fill ``%s`` / ``%(name)s`` markers with escaped literals.

    Without parameters the statement is returned untouched, so literal ``%``
    characters (e.g. in LIKE patterns) need no doubling.

    Args:
        stmt: SQL template
        params: Sequence for positional markers, mapping for named markers
        escape: Converts one value into an SQL literal

    Returns:
        Statement with all markers replaced

    Raises:
        ParameterError: If markers and parameters do not match
    """
    if not params:
        return stmt

    try:
        if isinstance(params, Mapping):
            return stmt % {key: escape(value) for key, value in params.items()}
        if isinstance(params, (str, bytes)):
            raise ParameterError("Statement parameters must be a sequence or mapping, not a string")
        return stmt % tuple(escape(value) for value in params)
    except (TypeError, KeyError, ValueError) as e:
        raise ParameterError(f"Parameters do not match statement <{stmt}>: {e}") from e


def render_statement(
    stmt: str, params: Params, escape: Callable[[Any], str], prefix: str
) -> str:
    """Interpolate parameters, then substitute the table prefix."""
    return apply_table_prefix(interpolate(stmt, params, escape), prefix)
