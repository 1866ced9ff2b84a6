"""SQLite database backend implementation.

This module provides the SQLite backend, using the stdlib sqlite3 module with
asyncio run_in_executor for async operation.

Features:
    - Foreign key enforcement enabled
    - busy_timeout derived from the configured timeout
    - Path validation and parent directory creation
    - PRAGMA configuration via options
    - Autocommit after every statement
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Any, ClassVar

from .backend import ConnectionConfig, DatabaseBackendBase, DatabaseEngine, QueryResult
from .exceptions import ParameterError

logger = logging.getLogger(__name__)


class SqliteBackend(DatabaseBackendBase):
    """SQLite backend using stdlib sqlite3 with async executor.

    Attributes:
        engine: DatabaseEngine.SQLITE
        DEFAULT_PRAGMAS: Default PRAGMA settings applied on connection

    Example:
        backend = SqliteBackend()
        await backend.connect(ConnectionConfig(
            engine=DatabaseEngine.SQLITE,
            path="/data/app.db"
        ))
        rows = await backend.select("SELECT * FROM users WHERE id = %s", (42,))
        await backend.disconnect()
    """

    engine = DatabaseEngine.SQLITE

    DEFAULT_PRAGMAS: ClassVar[dict[str, str | int]] = {
        "busy_timeout": 30000,
        "foreign_keys": "ON",
    }

    def __init__(self) -> None:
        """Initialize SQLite backend."""
        super().__init__()
        self._conn: sqlite3.Connection | None = None

    async def _open(self, config: ConnectionConfig) -> None:
        """Connect to SQLite database.

        Creates parent directories if they don't exist and applies PRAGMA
        settings from config.options or defaults.
        """

        def _connect() -> sqlite3.Connection:
            path = config.path
            if path is None:
                raise ValueError("SQLite requires 'path' parameter")

            if path != ":memory:" and not path.startswith(":"):
                Path(path).parent.mkdir(parents=True, exist_ok=True)

            # check_same_thread=False: calls arrive from executor threads
            conn = sqlite3.connect(path, check_same_thread=False)
            conn.row_factory = sqlite3.Row

            pragmas = {**self.DEFAULT_PRAGMAS}
            if config.timeout:
                pragmas["busy_timeout"] = config.timeout * 1000
            if config.options.get("sqlite_pragmas"):
                pragmas.update(config.options["sqlite_pragmas"])

            for pragma, value in pragmas.items():
                try:
                    conn.execute(f"PRAGMA {pragma}={value}")
                except sqlite3.Error as e:
                    logger.warning(f"Failed to set PRAGMA {pragma}={value}: {e}")

            logger.debug(f"Connected to SQLite database: {path}")
            return conn

        loop = asyncio.get_running_loop()
        self._conn = await loop.run_in_executor(None, _connect)

    async def _close(self) -> None:
        """Close SQLite connection."""
        if self._conn is None:
            return

        conn = self._conn
        self._conn = None
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, conn.close)
        logger.debug("Disconnected from SQLite database")

    def _native_handle(self) -> Any:
        return self._conn

    async def _run(self, sql: str) -> QueryResult:
        def _execute() -> QueryResult:
            assert self._conn is not None
            cursor = self._conn.execute(sql)

            if cursor.description:
                rows = [dict(row) for row in cursor.fetchall()]
                columns = [desc[0] for desc in cursor.description]
            else:
                rows = []
                columns = []

            if self._conn.in_transaction:
                self._conn.commit()

            # rowcount is -1 for SELECT statements
            affected = max(cursor.rowcount, 0)
            return QueryResult(
                rows=rows,
                row_count=len(rows) if columns else affected,
                columns=columns,
                last_insert_id=cursor.lastrowid or None,
                affected_rows=affected,
            )

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, _execute)

    async def _run_script(self, sql: str) -> None:
        """Execute multi-statement SQL script via sqlite3.executescript()."""
        assert self._conn is not None
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._conn.executescript, sql)

    def _escape_string(self, value: str) -> str:
        if "\x00" in value:
            raise ParameterError("SQLite string literals cannot contain NUL characters")
        return "'" + value.replace("'", "''") + "'"
