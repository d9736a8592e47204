"""
pitstop.config.postgres – PostgreSQL connection config (dataclass + validators).

Env vars: DATABASE_URL, DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_TIMEOUT,
DB_POOL_RECYCLE, DB_ECHO, DB_APPLICATION_NAME.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping

_SCHEMES = ("postgresql://", "postgres://", "postgresql+asyncpg://")
_TRUTHY = ("1", "true", "yes")


def _validate_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        raise ValueError("DATABASE_URL is required and must be non-empty")
    if not url.startswith(_SCHEMES):
        raise ValueError(
            "DATABASE_URL must start with one of: " + ", ".join(_SCHEMES)
        )
    return url


def _validate_int(value: int, name: str, min_val: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < min_val:
        raise ValueError(f"{name} must be an integer >= {min_val}, got {value!r}")
    return value


@dataclass(frozen=True)
class PostgresConfig:
    """
    Connection pool settings for the shared async engine.

    One engine (and one pool) serves every webhook request concurrently;
    pool_size bounds how many storage calls run at the same time.
    """

    url: str
    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 30
    # Seconds before a pooled connection is recycled
    pool_recycle: int = 1800
    echo: bool = False
    application_name: str = "pitstop"

    def __post_init__(self) -> None:
        _validate_url(self.url)
        _validate_int(self.pool_size, "pool_size", 1)
        _validate_int(self.max_overflow, "max_overflow", 0)
        _validate_int(self.pool_timeout, "pool_timeout", 1)
        _validate_int(self.pool_recycle, "pool_recycle", 1)
        if not isinstance(self.echo, bool):
            raise ValueError("echo must be a boolean")
        if not str(self.application_name).strip():
            raise ValueError("application_name must be a non-empty string")

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> "PostgresConfig":
        """
        Build config from environment variables. Keyword overrides win over env.

        DATABASE_URL defaults to postgresql://localhost/pitstop.
        """
        env = os.environ if env is None else env

        def pick(attr: str, var: str, default: Any) -> Any:
            if overrides.get(attr) is not None:
                return overrides[attr]
            raw = env.get(var)
            return default if raw in (None, "") else raw

        echo = pick("echo", "DB_ECHO", False)
        if isinstance(echo, str):
            echo = echo.strip().lower() in _TRUTHY
        return cls(
            url=_validate_url(str(pick("url", "DATABASE_URL", "postgresql://localhost/pitstop"))),
            pool_size=int(pick("pool_size", "DB_POOL_SIZE", 10)),
            max_overflow=int(pick("max_overflow", "DB_MAX_OVERFLOW", 20)),
            pool_timeout=int(pick("pool_timeout", "DB_POOL_TIMEOUT", 30)),
            pool_recycle=int(pick("pool_recycle", "DB_POOL_RECYCLE", 1800)),
            echo=bool(echo),
            application_name=str(pick("application_name", "DB_APPLICATION_NAME", "pitstop")),
        )


def load_postgres_config(**overrides: Any) -> PostgresConfig:
    """Load and validate PostgreSQL config from the environment. Raises ValueError."""
    return PostgresConfig.from_env(**overrides)
