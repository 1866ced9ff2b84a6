"""MariaDB/MySQL database backend implementation.

This module provides the MariaDB backend, using aiomysql for native async
operation with connection pooling.

Features:
    - Native async driver (aiomysql)
    - Connection pooling (autocommit)
    - SSL/TLS support
    - Backslash-aware string escaping via PyMySQL converters
    - Compatible with MySQL 5.7+ and MariaDB 10.2+

Note:
    Requires the 'aiomysql' package: pip install sqladapter[mariadb]
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .backend import ConnectionConfig, DatabaseBackendBase, DatabaseEngine, QueryResult

if TYPE_CHECKING:
    import aiomysql  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

POOL_MAX_SIZE = 5
POOL_RECYCLE_SECONDS = 300


def _import_aiomysql() -> Any:
    """Import aiomysql with helpful error message if not installed."""
    try:
        import aiomysql

        return aiomysql
    except ImportError as e:
        raise ImportError(
            "MariaDB backend requires 'aiomysql' package. "
            "Install with: pip install sqladapter[mariadb]"
        ) from e


def _import_converters() -> Any:
    """Import PyMySQL's literal converters (installed alongside aiomysql)."""
    try:
        from pymysql import converters

        return converters
    except ImportError as e:
        raise ImportError(
            "MariaDB escaping requires 'PyMySQL' package. "
            "Install with: pip install sqladapter[mariadb]"
        ) from e


class MariaDBBackend(DatabaseBackendBase):
    """MariaDB/MySQL backend using aiomysql with connection pooling.

    Attributes:
        engine: DatabaseEngine.MARIADB

    Example:
        backend = MariaDBBackend()
        await backend.connect(ConnectionConfig(
            engine=DatabaseEngine.MARIADB,
            host="localhost",
            database="mydb",
            username="user",
            password="pass"
        ))
        rows = await backend.select("SELECT * FROM users WHERE id = %s", (42,))
        await backend.disconnect()
    """

    engine = DatabaseEngine.MARIADB

    IDENTIFIER_QUOTE = "`"

    def __init__(self) -> None:
        """Initialize MariaDB backend."""
        super().__init__()
        self._pool: aiomysql.Pool | None = None

    async def _open(self, config: ConnectionConfig) -> None:
        """Create connection pool.

        Pool settings:
            - minsize: 1
            - maxsize: options["pool_size"] or POOL_MAX_SIZE
            - pool_recycle: 300s (prevent stale connections)
            - connect_timeout: config.connect_timeout
        """
        aiomysql = _import_aiomysql()

        # aiomysql accepts True for SSL with default settings
        ssl_context = True if config.ssl else None

        self._pool = await aiomysql.create_pool(
            host=config.host,
            port=config.port or 3306,
            db=config.database,
            user=config.username,
            password=config.password or "",
            ssl=ssl_context,
            minsize=1,
            maxsize=config.options.get("pool_size", POOL_MAX_SIZE),
            pool_recycle=POOL_RECYCLE_SECONDS,
            connect_timeout=config.connect_timeout,
            charset=config.options.get("charset", "utf8mb4"),
            autocommit=True,
        )

        logger.debug(f"Connected to MariaDB: {config.host}:{config.port}/{config.database}")

    async def _close(self) -> None:
        """Close connection pool gracefully.

        Waits for all connections to be released before closing.
        """
        if self._pool is None:
            return

        pool = self._pool
        self._pool = None
        pool.close()
        await pool.wait_closed()
        logger.debug("Disconnected from MariaDB")

    def _native_handle(self) -> Any:
        return self._pool

    async def _run(self, sql: str) -> QueryResult:
        aiomysql = _import_aiomysql()
        assert self._pool is not None

        async with self._pool.acquire() as conn:
            async with conn.cursor(aiomysql.DictCursor) as cursor:
                await cursor.execute(sql)
                if cursor.description:
                    rows = list(await cursor.fetchall())
                    columns = [desc[0] for desc in cursor.description]
                else:
                    rows = []
                    columns = []
                affected = max(cursor.rowcount, 0)
                last_id = cursor.lastrowid

        return QueryResult(
            rows=rows,
            row_count=len(rows) if columns else affected,
            columns=columns,
            last_insert_id=last_id or None,
            affected_rows=0 if columns else affected,
        )

    async def _run_script(self, sql: str) -> None:
        """Execute multi-statement SQL script.

        Statements are split on semicolons and executed individually.
        """
        assert self._pool is not None
        statements = [s.strip() for s in sql.split(";") if s.strip()]

        async with self._pool.acquire() as conn:
            async with conn.cursor() as cursor:
                for stmt in statements:
                    await cursor.execute(stmt)

    def _escape_string(self, value: str) -> str:
        converters = _import_converters()
        return "'" + converters.escape_string(value) + "'"
