"""Tests for connection settings, DSN parsing and backend construction."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from sqladapter import (
    ConnectionConfig,
    DatabaseEngine,
    DatabaseSettings,
    MariaDBBackend,
    PostgresBackend,
    SqliteBackend,
    create_backend,
    resolve_engine,
)


class TestConnectionConfig:
    """Tests for the runtime ConnectionConfig dataclass."""

    def test_sqlite_requires_path(self) -> None:
        with pytest.raises(ValueError, match="path"):
            ConnectionConfig(engine=DatabaseEngine.SQLITE)

    def test_remote_requires_host_and_database(self) -> None:
        with pytest.raises(ValueError, match="host"):
            ConnectionConfig(engine=DatabaseEngine.POSTGRESQL, database="shop")
        with pytest.raises(ValueError, match="database"):
            ConnectionConfig(engine=DatabaseEngine.MARIADB, host="db")

    def test_default_ports(self) -> None:
        pg = ConnectionConfig(engine=DatabaseEngine.POSTGRESQL, host="db", database="shop")
        my = ConnectionConfig(engine=DatabaseEngine.MARIADB, host="db", database="shop")
        assert (pg.port, my.port) == (5432, 3306)

    def test_password_not_in_repr(self) -> None:
        config = ConnectionConfig(
            engine=DatabaseEngine.MARIADB, host="db", database="shop", password="hunter2"
        )
        assert "hunter2" not in repr(config)


class TestDatabaseSettings:
    """Tests for the validated settings model."""

    def test_engine_alias(self) -> None:
        settings = DatabaseSettings(engine="mysql", host="db", database="shop")
        assert settings.engine == DatabaseEngine.MARIADB

    def test_unknown_engine(self) -> None:
        with pytest.raises(ValidationError):
            DatabaseSettings(engine="oracle", host="db", database="shop")

    def test_missing_path(self) -> None:
        with pytest.raises(ValidationError, match="path"):
            DatabaseSettings(engine="sqlite")

    @pytest.mark.parametrize("port", ["abc", 0, 70000])
    def test_invalid_port(self, port: object) -> None:
        with pytest.raises(ValidationError):
            DatabaseSettings(engine="pgsql", host="db", database="shop", port=port)

    def test_to_connection_config(self) -> None:
        settings = DatabaseSettings(
            engine="postgresql",
            host="db",
            database="shop",
            username="app",
            password="secret",
            table_prefix="shop",
        )
        config = settings.to_connection_config()

        assert config.engine == DatabaseEngine.POSTGRESQL
        assert config.port == 5432
        assert config.password == "secret"
        assert config.table_prefix == "shop"
        assert "secret" not in repr(settings)


class TestFromDsn:
    """Tests for PDO-style DSN parsing."""

    def test_sqlite_path(self) -> None:
        settings = DatabaseSettings.from_dsn("sqlite:/var/data/app.db")
        assert settings.engine == DatabaseEngine.SQLITE
        assert settings.path == "/var/data/app.db"

    def test_sqlite_memory(self) -> None:
        assert DatabaseSettings.from_dsn("sqlite::memory:").path == ":memory:"

    def test_mysql(self) -> None:
        settings = DatabaseSettings.from_dsn(
            "mysql:host=localhost;port=3307;dbname=shop;charset=utf8mb4", "app", "pw"
        )
        assert settings.engine == DatabaseEngine.MARIADB
        assert settings.host == "localhost"
        assert settings.port == 3307
        assert settings.database == "shop"
        assert settings.username == "app"
        assert settings.options == {"charset": "utf8mb4"}

    def test_pgsql_with_sslmode(self) -> None:
        settings = DatabaseSettings.from_dsn("pgsql:host=db;dbname=shop;sslmode=require;")
        assert settings.engine == DatabaseEngine.POSTGRESQL
        assert settings.ssl == "require"

    def test_overrides(self) -> None:
        settings = DatabaseSettings.from_dsn("sqlite::memory:", table_prefix="t", timeout=5)
        assert (settings.table_prefix, settings.timeout) == ("t", 5)

    @pytest.mark.parametrize("dsn", ["no-scheme", ":memory:", "mysql:host"])
    def test_malformed(self, dsn: str) -> None:
        with pytest.raises(ValueError):
            DatabaseSettings.from_dsn(dsn)

    def test_unknown_scheme(self) -> None:
        with pytest.raises(ValueError, match="Unsupported database engine"):
            DatabaseSettings.from_dsn("oci:dbname=x")


class TestFromEnv:
    """Tests for environment-based settings."""

    def test_individual_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TESTDB_ENGINE", "mariadb")
        monkeypatch.setenv("TESTDB_HOST", "db.internal")
        monkeypatch.setenv("TESTDB_PORT", "3310")
        monkeypatch.setenv("TESTDB_DATABASE", "shop")
        monkeypatch.setenv("TESTDB_TABLE_PREFIX", "shop")

        settings = DatabaseSettings.from_env(prefix="TESTDB_")

        assert settings.engine == DatabaseEngine.MARIADB
        assert settings.port == 3310
        assert settings.table_prefix == "shop"

    def test_dsn_takes_precedence(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TESTDB_DSN", "sqlite::memory:")
        monkeypatch.setenv("TESTDB_ENGINE", "postgresql")
        monkeypatch.setenv("TESTDB_TIMEOUT", "12")

        settings = DatabaseSettings.from_env(prefix="TESTDB_")

        assert settings.engine == DatabaseEngine.SQLITE
        assert settings.timeout == 12

    def test_missing_engine(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NOPE_ENGINE", raising=False)
        monkeypatch.delenv("NOPE_DSN", raising=False)
        with pytest.raises(ValidationError):
            DatabaseSettings.from_env(prefix="NOPE_")


class TestFactory:
    """Tests for backend construction."""

    @pytest.mark.parametrize(
        ("engine", "backend_type"),
        [
            ("sqlite", SqliteBackend),
            (DatabaseEngine.SQLITE, SqliteBackend),
            ("mysql", MariaDBBackend),
            ("MariaDB", MariaDBBackend),
            ("pgsql", PostgresBackend),
            ("postgresql", PostgresBackend),
        ],
    )
    def test_create_backend(self, engine: DatabaseEngine | str, backend_type: type) -> None:
        assert isinstance(create_backend(engine), backend_type)

    def test_unknown_engine(self) -> None:
        with pytest.raises(ValueError):
            resolve_engine("oracle")
