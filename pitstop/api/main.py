"""Pitstop FastAPI application: entry point.

Start with:
    uvicorn pitstop.api.main:app --host 0.0.0.0 --port 8000

Model backends come from env (OPENAI_API_KEY primary, GEMINI_API_KEY fallback);
at least one is required. Telegram, Wazzup and OpenWeatherMap are optional
and disabled with a warning when their keys are missing.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Optional

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from pitstop.api.routers import webhooks
from pitstop.clients.llm import HybridLLMEngine, ToolCapableLLMClient, default_registry
from pitstop.config import load_app_config, load_postgres_config
from pitstop.core.background import BackgroundWorker
from pitstop.core.logger import configure as configure_logging
from pitstop.infra.database.engine import (
    build_engine,
    build_session_factory,
    close_engine,
    ensure_database_exists,
    init_db,
)
from pitstop.integrations.notifier import AdminNotifier
from pitstop.integrations.telegram import TelegramClient
from pitstop.integrations.wazzup import WazzupClient
from pitstop.integrations.weather import OpenWeatherClient
from pitstop.orchestrator.orchestrator import Orchestrator
from pitstop.orchestrator.types import OrchestratorConfig
from pitstop.services import AnalyticsService, BookingService, DatabaseStore
from pitstop.tools.builtin.analytics_tools import AnalyticsTools
from pitstop.tools.registry_builder import RegistryFactory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from pitstop.config.app import AppConfig

logger = logging.getLogger(__name__)


def build_engine_from_config(config: "AppConfig", *, timeout_seconds: Optional[float] = None) -> HybridLLMEngine:
    primary = default_registry.build_from_config(config.primary_llm)
    if primary is not None and not isinstance(primary, ToolCapableLLMClient):
        logger.warning("API: primary backend %s cannot call tools, using it as fallback", primary.provider)
        fallback = primary
        primary = None
    else:
        fallback = default_registry.build_from_config(config.fallback_llm)
    engine = HybridLLMEngine(primary, fallback, timeout_seconds=timeout_seconds)
    logger.info("API: model backends %s", engine.describe())
    return engine


def build_orchestrator(
    config: "AppConfig",
    session_factory: "async_sessionmaker[AsyncSession]",
    worker: BackgroundWorker,
    *,
    engine: Optional[HybridLLMEngine] = None,
    telegram: Optional[TelegramClient] = None,
) -> Orchestrator:
    """Wire services, tools and integrations around one shared session factory."""
    store = DatabaseStore(session_factory)
    analytics = AnalyticsService(session_factory)
    booking = BookingService(store, payment_base_url=config.payment_base_url)
    weather = OpenWeatherClient(config.openweather_api_key, config.weather_lat, config.weather_lon)
    notifier = AdminNotifier(telegram, config.notify_chat_id)
    registries = RegistryFactory(booking, AnalyticsTools(analytics, weather))
    orchestrator_config = OrchestratorConfig(
        max_tool_steps=config.max_tool_steps,
        llm_timeout_seconds=config.llm_timeout_seconds,
    )
    return Orchestrator(
        engine or build_engine_from_config(config, timeout_seconds=orchestrator_config.llm_timeout_seconds),
        store,
        registries,
        analytics=analytics,
        notifier=notifier,
        worker=worker,
        config=orchestrator_config,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── Startup ──────────────────────────────────────────────────
    configure_logging()
    config = load_app_config()
    pg_config = load_postgres_config()

    await ensure_database_exists(pg_config)
    engine = build_engine(pg_config)
    session_factory = build_session_factory(engine)
    await init_db(pg_config)

    worker = BackgroundWorker("pitstop")
    telegram = TelegramClient(config.telegram_bot_token) if config.telegram_bot_token else None
    wazzup = WazzupClient(config.wazzup_api_key) if config.wazzup_api_key else None

    app.state.config = config
    app.state.session_factory = session_factory
    app.state.worker = worker
    app.state.telegram = telegram
    app.state.wazzup = wazzup
    app.state.orchestrator = build_orchestrator(config, session_factory, worker, telegram=telegram)
    logger.info("API: orchestrator ready")

    yield

    # ── Shutdown ─────────────────────────────────────────────────
    await worker.drain()
    await close_engine()
    logger.info("API: engine disposed")


app = FastAPI(
    title="Pitstop",
    version="1.0.0",
    description="Booking assistant for a sim-racing club: WhatsApp and Telegram webhooks.",
    lifespan=lifespan,
)

app.state.limiter = webhooks.limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(webhooks.router)


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok"}
