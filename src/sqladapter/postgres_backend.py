"""PostgreSQL database backend implementation.

This module provides the PostgreSQL backend, using asyncpg for native async
operation with connection pooling.

Features:
    - Native async driver (asyncpg)
    - Connection pooling
    - SSL/TLS support
    - Affected-row counts parsed from the command status
    - last_insert_id read from lastval() after INSERT

Note:
    Requires the 'asyncpg' package: pip install sqladapter[postgresql]
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .backend import ConnectionConfig, DatabaseBackendBase, DatabaseEngine, QueryResult
from .exceptions import ParameterError

if TYPE_CHECKING:
    import asyncpg  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

POOL_MAX_SIZE = 5
POOL_INACTIVE_LIFETIME_SECONDS = 300


def _import_asyncpg() -> Any:
    """Import asyncpg with helpful error message if not installed."""
    try:
        import asyncpg

        return asyncpg
    except ImportError as e:
        raise ImportError(
            "PostgreSQL backend requires 'asyncpg' package. "
            "Install with: pip install sqladapter[postgresql]"
        ) from e


def parse_status_count(status: str | None) -> int:
    """Extract the row count from a command status such as ``INSERT 0 3``.

    Returns:
        Trailing integer of the status, or 0 when there is none
    """
    if not status:
        return 0
    last = status.rsplit(" ", 1)[-1]
    return int(last) if last.isdigit() else 0


class PostgresBackend(DatabaseBackendBase):
    """PostgreSQL backend using asyncpg with connection pooling.

    Attributes:
        engine: DatabaseEngine.POSTGRESQL

    Example:
        backend = PostgresBackend()
        await backend.connect(ConnectionConfig(
            engine=DatabaseEngine.POSTGRESQL,
            host="localhost",
            database="mydb",
            username="user",
            password="pass"
        ))
        rows = await backend.select("SELECT * FROM users WHERE id = %s", (42,))
        await backend.disconnect()
    """

    engine = DatabaseEngine.POSTGRESQL

    TRUE_LITERAL = "TRUE"
    FALSE_LITERAL = "FALSE"

    def __init__(self) -> None:
        """Initialize PostgreSQL backend."""
        super().__init__()
        self._pool: asyncpg.Pool | None = None

    async def _open(self, config: ConnectionConfig) -> None:
        """Create connection pool.

        Pool settings:
            - min_size: 1
            - max_size: options["pool_size"] or POOL_MAX_SIZE
            - max_inactive_connection_lifetime: 300s
            - command_timeout: config.timeout
        """
        asyncpg = _import_asyncpg()

        ssl_context = None
        if config.ssl:
            if isinstance(config.ssl, str):
                # sslmode string (require, verify-ca, verify-full) is passed through
                ssl_context = config.ssl
            elif config.ssl is True:
                ssl_context = True

        self._pool = await asyncpg.create_pool(
            host=config.host,
            port=config.port,
            database=config.database,
            user=config.username,
            password=config.password,
            ssl=ssl_context,
            min_size=1,
            max_size=config.options.get("pool_size", POOL_MAX_SIZE),
            max_inactive_connection_lifetime=POOL_INACTIVE_LIFETIME_SECONDS,
            command_timeout=config.timeout,
            timeout=config.connect_timeout,
        )

        logger.debug(f"Connected to PostgreSQL: {config.host}:{config.port}/{config.database}")

    async def _close(self) -> None:
        """Close connection pool gracefully."""
        if self._pool is None:
            return

        pool = self._pool
        self._pool = None
        await pool.close()
        logger.debug("Disconnected from PostgreSQL")

    def _native_handle(self) -> Any:
        return self._pool

    async def _run(self, sql: str) -> QueryResult:
        asyncpg = _import_asyncpg()
        assert self._pool is not None

        async with self._pool.acquire() as conn:
            prepared = await conn.prepare(sql)
            records = await prepared.fetch()
            status = prepared.get_statusmsg()
            columns = [attr.name for attr in prepared.get_attributes()]

            last_id = None
            if status and status.startswith("INSERT"):
                try:
                    last_id = await conn.fetchval("SELECT lastval()")
                except asyncpg.exceptions.ObjectNotInPrerequisiteStateError:
                    # No sequence was used in this session
                    last_id = None

        rows = [dict(record) for record in records]
        affected = 0 if columns else parse_status_count(status)
        return QueryResult(
            rows=rows,
            row_count=len(rows) if columns else affected,
            columns=columns,
            last_insert_id=last_id,
            affected_rows=affected,
        )

    async def _run_script(self, sql: str) -> None:
        """Execute multi-statement SQL script (simple query protocol)."""
        assert self._pool is not None
        async with self._pool.acquire() as conn:
            await conn.execute(sql)

    def _escape_string(self, value: str) -> str:
        if "\x00" in value:
            raise ParameterError("PostgreSQL string literals cannot contain NUL characters")
        # standard_conforming_strings: backslashes are literal, only quotes double
        return "'" + value.replace("'", "''") + "'"

    def _escape_bytes(self, data: bytes) -> str:
        return f"'\\x{data.hex()}'::bytea"
