"""Database exceptions raised by backends and the query helper.

Every error carries an ``ErrorCode`` so callers can branch on the failure
kind without matching message text. Native driver exceptions are always
chained (``raise ... from e``) so the original traceback stays available.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(Enum):
    """Failure categories for database operations."""

    INIT_CONNECTION_FAILED = "init_connection_failed"
    QUERY_FAILED = "query_failed"
    WHERE_CONDITION_ALREADY_SET = "where_condition_already_set"
    INVALID_IDENTIFIER = "invalid_identifier"
    INVALID_CONDITION = "invalid_condition"
    INVALID_PARAMETER = "invalid_parameter"


class DatabaseError(Exception):
    """Base exception for database errors.

    Attributes:
        code: Failure category
    """

    default_code: ErrorCode = ErrorCode.QUERY_FAILED

    def __init__(self, message: str, code: ErrorCode | None = None):
        self.code = code or self.default_code
        super().__init__(message)

    def __repr__(self) -> str:
        """Developer-friendly representation."""
        return f"{type(self).__name__}({str(self)!r}, code={self.code.name})"


class DatabaseConnectionError(DatabaseError):
    """Failed to establish database connection."""

    default_code = ErrorCode.INIT_CONNECTION_FAILED


class QueryFailedError(DatabaseError):
    """Statement execution failed in the native driver.

    Attributes:
        sql: The fully rendered statement that was sent to the driver
        reason: Native driver error message
    """

    def __init__(self, sql: str, reason: str):
        self.sql = sql
        self.reason = reason
        super().__init__(f"query <{sql}> failed! ({reason})", ErrorCode.QUERY_FAILED)


class ConditionError(DatabaseError):
    """WHERE condition could not be built."""

    default_code = ErrorCode.INVALID_CONDITION


class InvalidIdentifierError(DatabaseError):
    """Table or column name failed validation."""

    default_code = ErrorCode.INVALID_IDENTIFIER

    def __init__(self, name: object):
        self.name = name
        super().__init__(f"Invalid identifier <{name}> given")


class ParameterError(DatabaseError):
    """Statement parameter could not be escaped or interpolated."""

    default_code = ErrorCode.INVALID_PARAMETER
