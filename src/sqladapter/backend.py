"""Database backend protocol and data classes.

This module defines the interface that all database backends implement, the
shared base class carrying escaping, statement rendering and result shaping,
and the data structures for configuration and query results.

Backends only provide the native parts: opening/closing the connection,
running one finished SQL string, and quoting a string literal.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Protocol, runtime_checkable

from .conditions import COLLECTION_TYPES, Conditions, check_identifier
from .exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    InvalidIdentifierError,
    ParameterError,
    QueryFailedError,
)
from .query_helper import QueryHelper
from .statement import Params, add_limit, apply_table_prefix, render_statement

logger = logging.getLogger(__name__)

DEFAULT_TABLE_PREFIX = "app"


class DatabaseEngine(Enum):
    """Supported database engines."""

    SQLITE = "sqlite"
    MARIADB = "mariadb"
    POSTGRESQL = "postgresql"


@dataclass
class ConnectionConfig:
    """Database connection configuration.

    Attributes:
        engine: Database engine (sqlite, mariadb, postgresql)
        path: SQLite database file path (or ":memory:" for in-memory)
        host: Database server host (MariaDB/PostgreSQL)
        port: Database server port
        database: Database name
        username: Database username
        password: Database password
        ssl: Enable SSL/TLS (bool or sslmode string)
        timeout: Query execution timeout in seconds
        connect_timeout: Connection establishment timeout in seconds
        table_prefix: Replacement for the {TABLE_PREFIX} token in statements
        options: Backend-specific options (e.g., sqlite_pragmas)
    """

    engine: DatabaseEngine
    path: str | None = None
    host: str | None = None
    port: int | None = None
    database: str | None = None
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    ssl: bool | str = False
    timeout: int = 30
    connect_timeout: int = 10
    table_prefix: str = DEFAULT_TABLE_PREFIX
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate configuration based on engine."""
        if self.engine == DatabaseEngine.SQLITE:
            if not self.path:
                raise ValueError("SQLite requires 'path' parameter")
        else:
            if not self.host:
                raise ValueError(f"{self.engine.value} requires 'host' parameter")
            if not self.database:
                raise ValueError(f"{self.engine.value} requires 'database' parameter")

            if self.port is None:
                if self.engine == DatabaseEngine.POSTGRESQL:
                    self.port = 5432
                elif self.engine == DatabaseEngine.MARIADB:
                    self.port = 3306


@dataclass
class QueryResult:
    """Unified query result across backends.

    Attributes:
        rows: Result rows as list of dicts (for SELECT queries)
        row_count: Number of rows returned (SELECT) or affected (INSERT/UPDATE/DELETE)
        columns: Column names from result set
        last_insert_id: Last inserted row ID (for INSERT operations)
        affected_rows: Number of rows affected by INSERT/UPDATE/DELETE
    """

    rows: list[dict[str, Any]] = field(default_factory=list)
    row_count: int = 0
    columns: list[str] = field(default_factory=list)
    last_insert_id: int | None = None
    affected_rows: int = 0


@runtime_checkable
class DatabaseInterface(Protocol):
    """Protocol defining the operations every database backend offers.

    Statements are templates with ``%s`` / ``%(name)s`` markers and an
    optional ``{TABLE_PREFIX}`` token. Parameters are escaped by the backend
    and interpolated before execution.
    """

    engine: DatabaseEngine

    async def connect(self, config: ConnectionConfig) -> None:
        """Open the native connection.

        Raises:
            DatabaseConnectionError: If connection fails
        """
        ...

    async def disconnect(self) -> None:
        """Close the native connection. Safe to call multiple times."""
        ...

    async def query(self, stmt: str, params: Params = None) -> QueryResult:
        """Render and execute a statement.

        Raises:
            QueryFailedError: If the native driver rejects the statement
        """
        ...

    async def select(
        self, stmt: str, params: Params = None, count: int | None = None, offset: int = 0
    ) -> list[dict[str, Any]]:
        """Execute a SELECT, optionally limited, and return its rows."""
        ...

    async def insert(self, stmt: str, params: Params = None) -> int:
        """Execute an INSERT and return the last inserted id."""
        ...

    async def update(self, stmt: str, params: Params = None) -> int:
        """Execute an UPDATE and return the number of affected rows."""
        ...

    async def delete(self, stmt: str, params: Params = None) -> int:
        """Execute a DELETE and return the number of affected rows."""
        ...

    async def execute_script(self, sql: str) -> None:
        """Execute a multi-statement script; the table prefix applies, parameters do not."""
        ...

    async def select_row(self, stmt: str, params: Params = None, row: int = 0) -> dict[str, Any]:
        """Return one row of the result, or an empty dict."""
        ...

    async def select_single(self, stmt: str, params: Params = None) -> Any:
        """Return the first value of the first row, or None."""
        ...

    async def select_column(self, stmt: str, params: Params = None) -> list[Any]:
        """Return the first value of every row."""
        ...

    async def select_key_value(
        self,
        key: str,
        value: str,
        table: str,
        conditions: Conditions = None,
        params: Params = None,
    ) -> dict[Any, Any]:
        """Map ``key`` column values onto ``value`` column values."""
        ...

    async def select_key_values(
        self,
        key: str,
        values: Sequence[str],
        table: str,
        conditions: Conditions = None,
        params: Params = None,
    ) -> dict[Any, dict[str, Any]]:
        """Map ``key`` column values onto dicts of ``values`` columns."""
        ...

    async def select_count(
        self, table: str, conditions: Conditions = None, params: Params = None
    ) -> int:
        """Count matching rows."""
        ...

    async def entry_exists(self, table: str, column: str, value: Any) -> bool:
        """Check whether a row with ``column = value`` exists."""
        ...

    def escape(self, data: Any) -> str:
        """Render a Python value as an SQL literal."""
        ...

    def quote_identifier(self, name: str) -> str:
        """Validate and quote a table or column name."""
        ...


class DatabaseBackendBase(ABC):
    """Abstract base class for database backends.

    Provides escaping, statement rendering, error wrapping and result shaping.
    Subclasses implement the native connection and execution hooks.

    Attributes:
        engine: Database engine served by the backend
        IDENTIFIER_QUOTE: Character used to quote identifiers
        TRUE_LITERAL: SQL literal for True
        FALSE_LITERAL: SQL literal for False
    """

    engine: ClassVar[DatabaseEngine]

    IDENTIFIER_QUOTE: ClassVar[str] = '"'
    TRUE_LITERAL: ClassVar[str] = "1"
    FALSE_LITERAL: ClassVar[str] = "0"

    def __init__(self) -> None:
        self._config: ConnectionConfig | None = None
        self.table_prefix: str = DEFAULT_TABLE_PREFIX

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def connect(self, config: ConnectionConfig) -> None:
        """Open the native connection.

        Args:
            config: Connection configuration

        Raises:
            DatabaseConnectionError: If the native driver cannot connect
            ImportError: If the driver package is not installed
        """
        if config.engine != self.engine:
            raise ValueError(
                f"{type(self).__name__} cannot connect to {config.engine.value} databases"
            )

        self._config = config
        self.table_prefix = config.table_prefix

        try:
            await self._open(config)
        except (DatabaseError, ImportError):
            raise
        except Exception as e:
            raise DatabaseConnectionError(f"Could not connect to database <{e}>") from e

    async def disconnect(self) -> None:
        """Close the native connection. Safe to call multiple times."""
        await self._close()

    @property
    def is_connected(self) -> bool:
        """Check if the native connection is open."""
        return self._native_handle() is not None

    def _ensure_connected(self) -> None:
        """Ensure database is connected.

        Raises:
            DatabaseConnectionError: If not connected
        """
        if not self.is_connected:
            raise DatabaseConnectionError("Not connected to database. Call connect() first.")

    # ------------------------------------------------------------------
    # Statement execution
    # ------------------------------------------------------------------

    async def query(self, stmt: str, params: Params = None) -> QueryResult:
        """Render a statement and execute it natively.

        Args:
            stmt: SQL template with %s / %(name)s markers
            params: Values for the markers

        Returns:
            QueryResult with rows and metadata

        Raises:
            QueryFailedError: If the native driver rejects the statement
            ParameterError: If parameters cannot be escaped or interpolated
        """
        self._ensure_connected()
        sql = render_statement(stmt, params, self.escape, self.table_prefix)
        logger.debug(f"Executing on {self.engine.value}: {sql}")

        try:
            return await self._run(sql)
        except DatabaseError:
            raise
        except Exception as e:
            raise QueryFailedError(sql, str(e)) from e

    async def select(
        self, stmt: str, params: Params = None, count: int | None = None, offset: int = 0
    ) -> list[dict[str, Any]]:
        """Execute a SELECT with optional LIMIT/OFFSET and return its rows."""
        result = await self.query(add_limit(stmt, count, offset), params)
        return result.rows

    async def insert(self, stmt: str, params: Params = None) -> int:
        """Execute an INSERT and return the last inserted id (0 if none)."""
        result = await self.query(stmt, params)
        return result.last_insert_id or 0

    async def update(self, stmt: str, params: Params = None) -> int:
        """Execute an UPDATE and return the number of affected rows."""
        result = await self.query(stmt, params)
        return result.affected_rows

    async def delete(self, stmt: str, params: Params = None) -> int:
        """Execute a DELETE and return the number of affected rows."""
        return await self.update(stmt, params)

    async def execute_script(self, sql: str) -> None:
        """Execute a multi-statement SQL script (schema setup).

        The table prefix is substituted; parameters are not supported.

        Raises:
            QueryFailedError: If script execution fails
        """
        self._ensure_connected()
        script = apply_table_prefix(sql, self.table_prefix)

        try:
            await self._run_script(script)
        except DatabaseError:
            raise
        except Exception as e:
            raise QueryFailedError(script, str(e)) from e
        logger.debug("Executed SQL script")

    # ------------------------------------------------------------------
    # Shaped results (delegated to QueryHelper)
    # ------------------------------------------------------------------

    @property
    def helper(self) -> QueryHelper:
        """Query helper bound to this backend."""
        return QueryHelper(self)

    async def select_row(self, stmt: str, params: Params = None, row: int = 0) -> dict[str, Any]:
        return await self.helper.select_row(stmt, params, row)

    async def select_single(self, stmt: str, params: Params = None) -> Any:
        return await self.helper.select_single(stmt, params)

    async def select_key_value(
        self,
        key: str,
        value: str,
        table: str,
        conditions: Conditions = None,
        params: Params = None,
    ) -> dict[Any, Any]:
        return await self.helper.select_key_value(key, value, table, conditions, params)

    async def select_key_values(
        self,
        key: str,
        values: Sequence[str],
        table: str,
        conditions: Conditions = None,
        params: Params = None,
    ) -> dict[Any, dict[str, Any]]:
        return await self.helper.select_key_values(key, values, table, conditions, params)

    async def select_column(self, stmt: str, params: Params = None) -> list[Any]:
        return await self.helper.select_column(stmt, params)

    async def select_count(
        self, table: str, conditions: Conditions = None, params: Params = None
    ) -> int:
        return await self.helper.select_count(table, conditions, params)

    async def entry_exists(self, table: str, column: str, value: Any) -> bool:
        return await self.helper.entry_exists(table, column, value)

    # ------------------------------------------------------------------
    # Escaping
    # ------------------------------------------------------------------

    def escape(self, data: Any) -> str:
        """Render a Python value as an SQL literal.

        Collections render as comma-separated literals for ``IN (...)``.
        Timezone-aware datetimes are converted to UTC and rendered without offset.

        Raises:
            ParameterError: If the value type is not supported
        """
        if data is None:
            return "NULL"
        if isinstance(data, bool):
            return self.TRUE_LITERAL if data else self.FALSE_LITERAL
        if isinstance(data, COLLECTION_TYPES):
            return ", ".join(self.escape(item) for item in data)
        if isinstance(data, int):
            return str(data)
        if isinstance(data, float):
            if not math.isfinite(data):
                raise ParameterError(f"Cannot escape non-finite number <{data}>")
            return repr(data)
        if isinstance(data, Decimal):
            if not data.is_finite():
                raise ParameterError(f"Cannot escape non-finite number <{data}>")
            return str(data)
        if isinstance(data, datetime):
            if data.tzinfo is not None:
                data = data.astimezone(timezone.utc).replace(tzinfo=None)
            return self._escape_string(data.isoformat(sep=" "))
        if isinstance(data, (date, time)):
            return self._escape_string(data.isoformat())
        if isinstance(data, (bytes, bytearray)):
            return self._escape_bytes(bytes(data))
        if isinstance(data, str):
            return self._escape_string(data)
        raise ParameterError(f"Cannot escape value of type <{type(data).__name__}>")

    def quote_identifier(self, name: str) -> str:
        """Validate and quote an identifier; dotted names quote each part.

        Raises:
            InvalidIdentifierError: If the name is not a valid identifier
        """
        parts = check_identifier(name).split(".")
        if not all(parts):
            raise InvalidIdentifierError(name)
        q = self.IDENTIFIER_QUOTE
        return ".".join(f"{q}{part}{q}" for part in parts)

    def _escape_bytes(self, data: bytes) -> str:
        return f"X'{data.hex()}'"

    # ------------------------------------------------------------------
    # Native hooks
    # ------------------------------------------------------------------

    @abstractmethod
    async def _open(self, config: ConnectionConfig) -> None:
        """Open the native connection or pool."""

    @abstractmethod
    async def _close(self) -> None:
        """Close the native connection or pool."""

    @abstractmethod
    def _native_handle(self) -> Any:
        """Return the native connection or pool, None when disconnected."""

    @abstractmethod
    async def _run(self, sql: str) -> QueryResult:
        """Execute one finished SQL statement natively."""

    @abstractmethod
    async def _run_script(self, sql: str) -> None:
        """Execute a multi-statement script natively."""

    @abstractmethod
    def _escape_string(self, value: str) -> str:
        """Quote a string as a complete SQL literal."""
