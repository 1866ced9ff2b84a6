"""Database access abstraction layer.

This package provides one interface for executing SQL against multiple
database backends: SQLite, MariaDB/MySQL and PostgreSQL, plus a query helper
that builds WHERE clauses, key-value projections, counts and existence checks.

Features:
    - Pluggable backend architecture
    - Per-backend literal escaping and identifier quoting
    - %s / %(name)s statement parameters and {TABLE_PREFIX} substitution
    - LIMIT/OFFSET injection
    - Uniform result shaping (row, single value, key-value maps)

Usage:
    from sqladapter import DatabaseSettings, open_database

    settings = DatabaseSettings.from_dsn("sqlite:/data/app.db", table_prefix="shop")
    async with open_database(settings.to_connection_config()) as db:
        await db.insert(
            "INSERT INTO {TABLE_PREFIX}_users (name, active) VALUES (%s, %s)",
            ["Alice", True],
        )
        names = await db.select_key_value("id", "name", "{TABLE_PREFIX}_users")
        active = await db.select_count("{TABLE_PREFIX}_users", {"active": True})
"""

from .backend import (
    DEFAULT_TABLE_PREFIX,
    ConnectionConfig,
    DatabaseBackendBase,
    DatabaseEngine,
    DatabaseInterface,
    QueryResult,
)
from .conditions import ConditionBuilder, check_identifier
from .exceptions import (
    ConditionError,
    DatabaseConnectionError,
    DatabaseError,
    ErrorCode,
    InvalidIdentifierError,
    ParameterError,
    QueryFailedError,
)
from .factory import create_backend, open_database, resolve_engine
from .mariadb_backend import MariaDBBackend
from .postgres_backend import PostgresBackend
from .query_helper import QueryHelper
from .settings import DatabaseSettings
from .sqlite_backend import SqliteBackend
from .statement import TABLE_PREFIX_TOKEN, Params, add_limit, interpolate, render_statement

__version__ = "0.1.0"

__all__ = [
    # Core types
    "ConnectionConfig",
    "DatabaseBackendBase",
    "DatabaseEngine",
    "DatabaseInterface",
    "DatabaseSettings",
    "Params",
    "QueryResult",
    "DEFAULT_TABLE_PREFIX",
    "TABLE_PREFIX_TOKEN",
    # Backends
    "SqliteBackend",
    "MariaDBBackend",
    "PostgresBackend",
    "create_backend",
    "open_database",
    "resolve_engine",
    # SQL assembly
    "ConditionBuilder",
    "QueryHelper",
    "add_limit",
    "check_identifier",
    "interpolate",
    "render_statement",
    # Errors
    "ConditionError",
    "DatabaseConnectionError",
    "DatabaseError",
    "ErrorCode",
    "InvalidIdentifierError",
    "ParameterError",
    "QueryFailedError",
]
