"""Convenience queries layered over any ``DatabaseInterface``.

The helper shapes raw row lists into the forms callers usually want (one row,
one value, key-value maps, counts) and builds the small SELECT statements
needed for them from validated identifiers and a condition mapping.

Example:
    helper = QueryHelper(db)
    names = await helper.select_key_value("id", "name", "{TABLE_PREFIX}_users")
    # -> {1: "Alice", 2: "Bob"}
    active = await helper.select_count("{TABLE_PREFIX}_users", {"status": "active"})
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from .conditions import ConditionBuilder, Conditions
from .exceptions import InvalidIdentifierError

if TYPE_CHECKING:
    from .backend import DatabaseInterface
    from .statement import Params

KEY_ALIAS = "k"
VALUE_ALIAS = "v"
COUNT_ALIAS = "cnt"


class QueryHelper:
    """Builds and runs shaped SELECT queries against a database.

    Attributes:
        database: Backend used for escaping, quoting and execution
    """

    def __init__(self, database: DatabaseInterface):
        self.database = database
        self.conditions = ConditionBuilder(database)

    async def select_row(self, stmt: str, params: Params = None, row: int = 0) -> dict[str, Any]:
        """Return the row at position ``row``, or an empty dict."""
        rows = await self.database.select(stmt, params, count=1, offset=row)
        if not rows:
            return {}
        return rows[0]

    async def select_single(self, stmt: str, params: Params = None) -> Any:
        """Return the first column of the first row, or None."""
        first = await self.select_row(stmt, params)
        if not first:
            return None
        return next(iter(first.values()))

    async def select_key_value(
        self,
        key: str,
        value: str,
        table: str,
        conditions: Conditions = None,
        params: Params = None,
    ) -> dict[Any, Any]:
        """Map one column onto another for every matching row.

        Args:
            key: Column used as dict key
            value: Column used as dict value
            table: Table name (may contain ``{TABLE_PREFIX}``)
            conditions: Optional WHERE conditions
            params: Accepted for call compatibility; the built statement has no
                markers, so extra parameters are ignored

        Returns:
            Dict of key -> value; later duplicate keys win
        """
        quote = self.database.quote_identifier
        stmt = (
            f"SELECT {quote(key)} AS {quote(KEY_ALIAS)}, {quote(value)} AS {quote(VALUE_ALIAS)} "
            f"FROM {quote(table)}"
        )
        result = await self.database.query(self.conditions.add_conditions(stmt, conditions))
        return {row[KEY_ALIAS]: row[VALUE_ALIAS] for row in result.rows}

    async def select_key_values(
        self,
        key: str,
        values: Sequence[str],
        table: str,
        conditions: Conditions = None,
        params: Params = None,
    ) -> dict[Any, dict[str, Any]]:
        """Map one column onto a dict of several other columns.

        Returns:
            Dict of key -> {column: value, ...} without the key column
        """
        if isinstance(values, str) or not values:
            raise InvalidIdentifierError(values)

        quote = self.database.quote_identifier
        columns = ", ".join(quote(column) for column in values)
        stmt = f"SELECT {quote(key)} AS {quote(KEY_ALIAS)}, {columns} FROM {quote(table)}"
        result = await self.database.query(self.conditions.add_conditions(stmt, conditions))

        shaped: dict[Any, dict[str, Any]] = {}
        for row in result.rows:
            data = dict(row)
            shaped[data.pop(KEY_ALIAS)] = data
        return shaped

    async def select_column(self, stmt: str, params: Params = None) -> list[Any]:
        """Return the first column of every row."""
        rows = await self.database.select(stmt, params)
        return [next(iter(row.values())) for row in rows if row]

    async def select_count(
        self, table: str, conditions: Conditions = None, params: Params = None
    ) -> int:
        """Count rows in ``table`` matching ``conditions``; ``params`` is ignored."""
        quote = self.database.quote_identifier
        stmt = f"SELECT COUNT(*) AS {quote(COUNT_ALIAS)} FROM {quote(table)}"
        count = await self.select_single(self.conditions.add_conditions(stmt, conditions))
        return int(count or 0)

    async def entry_exists(self, table: str, column: str, value: Any) -> bool:
        """Check whether any row has ``column`` equal to ``value``."""
        return await self.select_count(table, {column: value}) > 0

    def add_conditions(self, stmt: str, conditions: Conditions = None) -> str:
        """Append a WHERE clause built from ``conditions`` (see ``ConditionBuilder``)."""
        return self.conditions.add_conditions(stmt, conditions)
