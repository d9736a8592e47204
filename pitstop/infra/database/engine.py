"""
pitstop.infra.database.engine – Async SQLAlchemy 2.0 engine and session factory.

One engine (one connection pool) is shared by every request. Accepts a
PostgresConfig; loads it from env via load_postgres_config() when omitted.

ensure_database_exists() creates the target database on first run
(connects to "postgres", then CREATE DATABASE).
"""
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Optional
from urllib.parse import urlparse, urlunparse

import asyncpg
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

# Registers every ORM model on Base.metadata before create_all()
import pitstop.infra.database.models  # noqa: F401
from pitstop.infra.database.models.base import Base

if TYPE_CHECKING:
    from pitstop.config import PostgresConfig

logger = logging.getLogger(__name__)

# Database names we are willing to interpolate into CREATE DATABASE
_DBNAME_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _load_config(config: Optional["PostgresConfig"]) -> "PostgresConfig":
    if config is not None:
        return config
    from pitstop.config import load_postgres_config
    return load_postgres_config()


def make_async_url(url: str) -> str:
    """postgresql:// or postgres:// -> postgresql+asyncpg://."""
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


def _split_maintenance_url(url: str) -> tuple[str, str]:
    """Return (target db name, plain URL pointing at the "postgres" database)."""
    parsed = urlparse(url.replace("postgresql+asyncpg://", "postgresql://", 1))
    dbname = (parsed.path or "/postgres").strip("/").split("?")[0] or "postgres"
    maintenance = urlunparse(parsed._replace(path="/postgres"))
    return dbname, maintenance


async def ensure_database_exists(config: Optional["PostgresConfig"] = None) -> None:
    """Create the configured database when missing. Connection failures only log."""
    config = _load_config(config)
    dbname, maintenance_url = _split_maintenance_url(config.url)
    if dbname == "postgres":
        return
    if not _DBNAME_PATTERN.match(dbname):
        logger.warning("ensure_database_exists: skipping unsafe database name %r", dbname)
        return
    try:
        conn = await asyncpg.connect(maintenance_url)
    except (OSError, asyncpg.PostgresError) as exc:
        logger.debug("ensure_database_exists: maintenance connection failed (%s), skipping", exc)
        return
    try:
        exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", dbname)
        if exists is None:
            await conn.execute(f'CREATE DATABASE "{dbname}"')
            logger.info("Database created: %s", dbname)
    finally:
        await conn.close()


def build_engine(
    config: Optional["PostgresConfig"] = None,
    *,
    use_null_pool: bool = False,
) -> AsyncEngine:
    """Create (once) and return the shared async engine."""
    global _engine
    if _engine is not None:
        return _engine

    config = _load_config(config)
    url = make_async_url(config.url)
    connect_args: dict = {
        "server_settings": {"application_name": config.application_name, "jit": "off"},
    }

    if use_null_pool:
        _engine = create_async_engine(
            url, echo=config.echo, poolclass=NullPool, connect_args=connect_args,
        )
        logger.info("AsyncEngine created with NullPool")
    else:
        _engine = create_async_engine(
            url,
            echo=config.echo,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
        logger.info(
            "AsyncEngine created: pool_size=%d max_overflow=%d",
            config.pool_size, config.max_overflow,
        )
    return _engine


def build_session_factory(
    engine: Optional[AsyncEngine] = None,
) -> async_sessionmaker[AsyncSession]:
    """Create (once) the async session factory bound to the shared engine."""
    global _session_factory
    if _session_factory is not None:
        return _session_factory
    _session_factory = async_sessionmaker(
        engine or build_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return _session_factory


async def init_db(
    config: Optional["PostgresConfig"] = None,
    *,
    drop_all: bool = False,
) -> None:
    """Create all ORM tables. For dev/staging; production schemas go through migrations."""
    engine = build_engine(_load_config(config))
    async with engine.begin() as conn:
        if drop_all:
            logger.warning("Dropping all ORM tables (drop_all=True)")
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialised (%d tables)", len(Base.metadata.tables))


async def close_engine() -> None:
    """Dispose the connection pool. Call on app shutdown."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        logger.info("AsyncEngine disposed")
    _engine = None
    _session_factory = None
