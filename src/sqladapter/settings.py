"""Validated connection settings.

``DatabaseSettings`` is the user-facing configuration model. It can be built
directly, from environment variables, or from a PDO-style DSN, and converts
into the runtime ``ConnectionConfig`` consumed by backends.

Environment variables (default prefix ``SQLADAPTER_``):
    SQLADAPTER_DSN           PDO-style DSN (takes precedence over ENGINE/HOST/...)
    SQLADAPTER_ENGINE        sqlite, mariadb (mysql), postgresql (pgsql)
    SQLADAPTER_PATH          SQLite database path
    SQLADAPTER_HOST          Server host
    SQLADAPTER_PORT          Server port
    SQLADAPTER_DATABASE      Database name
    SQLADAPTER_USERNAME      Database user
    SQLADAPTER_PASSWORD      Database password
    SQLADAPTER_TABLE_PREFIX  Replacement for {TABLE_PREFIX}
    SQLADAPTER_TIMEOUT       Query timeout in seconds
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator

from .backend import DEFAULT_TABLE_PREFIX, ConnectionConfig, DatabaseEngine
from .factory import resolve_engine

if TYPE_CHECKING:
    from typing import Self

ENV_PREFIX = "SQLADAPTER_"

# PDO DSN keys -> settings fields
DSN_KEYS = {
    "host": "host",
    "port": "port",
    "dbname": "database",
    "user": "username",
    "password": "password",
    "sslmode": "ssl",
}


class DatabaseSettings(BaseModel):
    """Database connection settings."""

    model_config = ConfigDict(frozen=True)

    engine: DatabaseEngine = Field(description="Database engine")

    # SQLite-specific
    path: str | None = Field(
        default=None, description="SQLite: Database file path. Use ':memory:' for in-memory DB."
    )

    # Remote database connection (MariaDB/PostgreSQL)
    host: str | None = Field(default=None, description="Database host")
    port: int | None = Field(
        default=None, description="Database port (default: 3306 for MariaDB, 5432 for PostgreSQL)"
    )
    database: str | None = Field(default=None, description="Database name")
    username: str | None = Field(default=None, description="Database username")
    password: SecretStr | None = Field(default=None, description="Database password")
    ssl: bool | str = Field(
        default=False,
        description="Enable SSL/TLS. Boolean or sslmode string (require, verify-ca, verify-full)",
    )

    timeout: int = Field(default=30, ge=1, le=3600, description="Query timeout in seconds")
    connect_timeout: int = Field(
        default=10, ge=1, le=300, description="Connection establishment timeout in seconds"
    )
    table_prefix: str = Field(
        default=DEFAULT_TABLE_PREFIX, description="Replacement for the {TABLE_PREFIX} token"
    )
    options: dict[str, Any] = Field(
        default_factory=dict, description="Backend-specific options (sqlite_pragmas, charset, ...)"
    )

    @field_validator("engine", mode="before")
    @classmethod
    def _validate_engine(cls, v: Any) -> DatabaseEngine:
        """Accept engine aliases such as 'mysql' and 'pgsql'."""
        return resolve_engine(v)

    @field_validator("port", mode="before")
    @classmethod
    def _validate_port(cls, v: Any) -> int | None:
        """Validate port, allowing None."""
        if v is None or v == "":
            return None
        try:
            port = int(v)
        except (ValueError, TypeError) as e:
            raise ValueError(f"Invalid port value: {v}") from e
        if not 1 <= port <= 65535:
            raise ValueError("port must be between 1 and 65535")
        return port

    @model_validator(mode="after")
    def validate_connection_params(self) -> Self:
        """Validate connection parameters based on engine."""
        if self.engine == DatabaseEngine.SQLITE:
            if not self.path:
                raise ValueError("SQLite requires 'path' parameter")
        else:
            if not self.host:
                raise ValueError(f"{self.engine.value} requires 'host' parameter")
            if not self.database:
                raise ValueError(f"{self.engine.value} requires 'database' parameter")
        return self

    def to_connection_config(self) -> ConnectionConfig:
        """Create the runtime connection configuration."""
        return ConnectionConfig(
            engine=self.engine,
            path=self.path,
            host=self.host,
            port=self.port,
            database=self.database,
            username=self.username,
            password=self.password.get_secret_value() if self.password else None,
            ssl=self.ssl,
            timeout=self.timeout,
            connect_timeout=self.connect_timeout,
            table_prefix=self.table_prefix,
            options=dict(self.options),
        )

    @classmethod
    def from_dsn(
        cls,
        dsn: str,
        username: str | None = None,
        password: str | None = None,
        **overrides: Any,
    ) -> DatabaseSettings:
        """Build settings from a PDO-style DSN.

        Examples:
            sqlite:/var/data/app.db
            sqlite::memory:
            mysql:host=localhost;port=3306;dbname=shop;charset=utf8mb4
            pgsql:host=db;dbname=shop;sslmode=require

        Unknown DSN keys are passed on as backend options.

        Raises:
            ValueError: If the DSN has no scheme or an unknown engine
        """
        scheme, sep, rest = dsn.partition(":")
        if not sep or not scheme:
            raise ValueError(f"Invalid DSN <{dsn}>: missing '<engine>:' prefix")

        engine = resolve_engine(scheme)
        values: dict[str, Any] = {"engine": engine}
        options: dict[str, Any] = {}

        if engine == DatabaseEngine.SQLITE:
            values["path"] = rest
        else:
            for part in rest.split(";"):
                if not part.strip():
                    continue
                key, eq, value = part.partition("=")
                if not eq:
                    raise ValueError(f"Invalid DSN <{dsn}>: expected key=value, got '{part}'")
                key = key.strip().lower()
                if key in DSN_KEYS:
                    values[DSN_KEYS[key]] = value.strip()
                else:
                    options[key] = value.strip()

        if username is not None:
            values["username"] = username
        if password is not None:
            values["password"] = password
        if options:
            values["options"] = {**options, **overrides.pop("options", {})}
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX) -> DatabaseSettings:
        """Build settings from environment variables (see module docstring)."""

        def env(name: str) -> str | None:
            value = os.getenv(f"{prefix}{name}")
            return value if value else None

        values: dict[str, Any] = {}
        for name in ("USERNAME", "PASSWORD", "TABLE_PREFIX", "TIMEOUT"):
            value = env(name)
            if value is not None:
                values[name.lower()] = value

        dsn = env("DSN")
        if dsn:
            return cls.from_dsn(dsn, **values)

        for name in ("ENGINE", "PATH", "HOST", "PORT", "DATABASE"):
            value = env(name)
            if value is not None:
                values[name.lower()] = value
        return cls(**values)
