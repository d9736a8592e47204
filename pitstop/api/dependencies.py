"""FastAPI dependency providers."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from fastapi import HTTPException, Request, status

if TYPE_CHECKING:
    from pitstop.config.app import AppConfig
    from pitstop.core.background import BackgroundWorker
    from pitstop.integrations.telegram import TelegramClient
    from pitstop.integrations.wazzup import WazzupClient
    from pitstop.orchestrator.orchestrator import Orchestrator


def get_orchestrator(request: Request) -> "Orchestrator":
    """The orchestrator built at startup; 503 until it exists."""
    orch = getattr(request.app.state, "orchestrator", None)
    if orch is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Orchestrator not initialised. Check server startup logs.",
        )
    return orch


def get_worker(request: Request) -> "BackgroundWorker":
    worker = getattr(request.app.state, "worker", None)
    if worker is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Background worker not initialised.",
        )
    return worker


def get_app_config(request: Request) -> Optional["AppConfig"]:
    return getattr(request.app.state, "config", None)


def get_telegram(request: Request) -> Optional["TelegramClient"]:
    return getattr(request.app.state, "telegram", None)


def get_wazzup(request: Request) -> Optional["WazzupClient"]:
    return getattr(request.app.state, "wazzup", None)
