"""WHERE clause assembly from a column -> value mapping.

Supports:
- Equality: {"status": "active"} -> status = 'active'
- IN: {"id": [1, 2, 3]} -> id IN (1, 2, 3)
- IS NULL: {"deleted_at": None} -> deleted_at IS NULL

Column names are validated against ``IDENTIFIER_PATTERN`` before they are
quoted and interpolated.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, time
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from .exceptions import ConditionError, ErrorCode, InvalidIdentifierError

if TYPE_CHECKING:
    from .backend import DatabaseInterface

IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z0-9_{}.]+$")

WHERE_PATTERN = re.compile(r" WHERE ", re.IGNORECASE)

COLLECTION_TYPES = (list, tuple, set, frozenset)
SCALAR_TYPES = (str, int, float, Decimal, date, time, bytes, bytearray)

Conditions = Mapping[str, Any] | None


def check_identifier(name: Any) -> str:
    """Validate a table or column name.

    Identifiers may contain letters, digits, underscores, dots (for
    ``schema.table``) and braces (for the ``{TABLE_PREFIX}`` token).

    Returns:
        The validated name

    Raises:
        InvalidIdentifierError: If the name does not match
    """
    if not isinstance(name, str) or IDENTIFIER_PATTERN.fullmatch(name) is None:
        raise InvalidIdentifierError(name)
    return name


class ConditionBuilder:
    """Renders condition mappings into WHERE clauses for one database.

    The database supplies literal escaping and identifier quoting, so the
    same conditions render correctly for every backend.

    Example:
        builder = ConditionBuilder(db)
        builder.add_conditions("SELECT * FROM users", {"status": "active", "id": [1, 2]})
        # -> SELECT * FROM users WHERE `status` = 'active' AND `id` IN (1, 2)
    """

    def __init__(self, database: DatabaseInterface):
        self.database = database

    def add_conditions(self, stmt: str, conditions: Conditions = None) -> str:
        """Append a WHERE clause built from ``conditions``.

        Args:
            stmt: SQL statement without a WHERE clause
            conditions: Column -> value, collection or None

        Returns:
            Statement with the WHERE clause appended (unchanged if no conditions)

        Raises:
            ConditionError: If the statement already has a WHERE clause, or a
                value is an empty collection or of an unsupported type
            InvalidIdentifierError: If a column name is invalid
        """
        if WHERE_PATTERN.search(stmt) is not None:
            raise ConditionError(
                f"WHERE-Condition in stmt <{stmt}> already set",
                ErrorCode.WHERE_CONDITION_ALREADY_SET,
            )

        if not conditions:
            return stmt

        predicates = [self.build_predicate(column, value) for column, value in conditions.items()]
        return f"{stmt} WHERE " + " AND ".join(predicates)

    def build_predicate(self, column: str, value: Any) -> str:
        """Render a single ``column <op> value`` predicate."""
        quoted = self.database.quote_identifier(column)

        if isinstance(value, COLLECTION_TYPES):
            if not value:
                raise ConditionError(f"Empty value list for column <{column}> given")
            return f"{quoted} IN ({self.database.escape(value)})"
        if value is None:
            return f"{quoted} IS NULL"
        if isinstance(value, SCALAR_TYPES):
            return f"{quoted} = {self.database.escape(value)}"
        raise ConditionError(f"Invalid type <{type(value).__name__}> for column <{column}> given")
