"""Backend construction and connection scoping."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from .backend import ConnectionConfig, DatabaseBackendBase, DatabaseEngine
from .mariadb_backend import MariaDBBackend
from .postgres_backend import PostgresBackend
from .sqlite_backend import SqliteBackend

BACKENDS: dict[DatabaseEngine, type[DatabaseBackendBase]] = {
    DatabaseEngine.SQLITE: SqliteBackend,
    DatabaseEngine.MARIADB: MariaDBBackend,
    DatabaseEngine.POSTGRESQL: PostgresBackend,
}

ENGINE_ALIASES = {
    "mysql": DatabaseEngine.MARIADB,
    "pgsql": DatabaseEngine.POSTGRESQL,
    "postgres": DatabaseEngine.POSTGRESQL,
    "sqlite3": DatabaseEngine.SQLITE,
}


def resolve_engine(engine: DatabaseEngine | str) -> DatabaseEngine:
    """Map an engine name or alias (``mysql``, ``pgsql``) to a DatabaseEngine.

    Raises:
        ValueError: If the engine is unknown
    """
    if isinstance(engine, DatabaseEngine):
        return engine
    if not isinstance(engine, str):
        raise ValueError(f"Unsupported database engine: {engine!r}")
    name = engine.strip().lower()
    if name in ENGINE_ALIASES:
        return ENGINE_ALIASES[name]
    try:
        return DatabaseEngine(name)
    except ValueError as e:
        raise ValueError(f"Unsupported database engine: {engine}") from e


def create_backend(engine: DatabaseEngine | str) -> DatabaseBackendBase:
    """Create an unconnected backend for the given engine."""
    return BACKENDS[resolve_engine(engine)]()


@asynccontextmanager
async def open_database(config: ConnectionConfig) -> AsyncIterator[DatabaseBackendBase]:
    """Connect a backend for ``config`` and disconnect it on exit.

    Example:
        async with open_database(settings.to_connection_config()) as db:
            count = await db.select_count("{TABLE_PREFIX}_users")
    """
    backend = create_backend(config.engine)
    await backend.connect(config)
    try:
        yield backend
    finally:
        await backend.disconnect()
