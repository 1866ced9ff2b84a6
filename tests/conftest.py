"""Shared test configuration for sqladapter tests.

Provides:
- A recording backend that captures rendered SQL instead of executing it
- A connected in-memory SQLite backend with a small users table
"""

from collections.abc import AsyncIterator
from typing import Any

import pytest

from sqladapter import (
    ConnectionConfig,
    DatabaseBackendBase,
    DatabaseEngine,
    QueryResult,
    SqliteBackend,
)

USERS_SCHEMA = """
CREATE TABLE {TABLE_PREFIX}_users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT,
    status TEXT DEFAULT 'active',
    score REAL
);
"""


class RecordingBackend(DatabaseBackendBase):
    """Backend double with MySQL-style quoting that records every statement.

    Results queued in ``results`` are returned in order; an empty queue yields
    an empty QueryResult.
    """

    engine = DatabaseEngine.MARIADB

    IDENTIFIER_QUOTE = "`"

    def __init__(self) -> None:
        super().__init__()
        self.statements: list[str] = []
        self.results: list[QueryResult] = []
        self._handle: Any = object()

    def queue(self, *rows: dict[str, Any], **kwargs: Any) -> None:
        """Queue one result made of ``rows``."""
        columns = list(rows[0].keys()) if rows else []
        self.results.append(
            QueryResult(rows=list(rows), row_count=len(rows), columns=columns, **kwargs)
        )

    async def _open(self, config: ConnectionConfig) -> None:
        self._handle = object()

    async def _close(self) -> None:
        self._handle = None

    def _native_handle(self) -> Any:
        return self._handle

    async def _run(self, sql: str) -> QueryResult:
        self.statements.append(sql)
        if self.results:
            return self.results.pop(0)
        return QueryResult()

    async def _run_script(self, sql: str) -> None:
        self.statements.append(sql)

    def _escape_string(self, value: str) -> str:
        return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


@pytest.fixture
def recording() -> RecordingBackend:
    """Recording backend with the default table prefix."""
    return RecordingBackend()


@pytest.fixture
async def sqlite_db() -> AsyncIterator[SqliteBackend]:
    """Connected in-memory SQLite backend with a ``test_users`` table."""
    backend = SqliteBackend()
    config = ConnectionConfig(engine=DatabaseEngine.SQLITE, path=":memory:", table_prefix="test")
    await backend.connect(config)
    await backend.execute_script(USERS_SCHEMA)
    yield backend
    await backend.disconnect()
