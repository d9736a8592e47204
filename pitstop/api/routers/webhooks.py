"""Public webhook endpoints for Wazzup (WhatsApp) and Telegram.

Wazzup messages are processed inline and the reply is sent before the
request returns. Telegram updates are acknowledged immediately; the typing
indicator, processing and the outbound send run on the background worker.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from slowapi import Limiter
from slowapi.util import get_remote_address

from pitstop.api.dependencies import (
    get_app_config,
    get_orchestrator,
    get_telegram,
    get_wazzup,
    get_worker,
)
from pitstop.api.schemas.webhooks import TelegramUpdate, WazzupWebhook, WebhookAck
from pitstop.config.app import AppConfig
from pitstop.core.background import BackgroundWorker
from pitstop.integrations.telegram import TelegramClient
from pitstop.integrations.wazzup import WazzupClient
from pitstop.orchestrator.orchestrator import Orchestrator
from pitstop.orchestrator.types import Role

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/webhooks", tags=["webhooks"])
limiter = Limiter(key_func=get_remote_address)

WEBHOOK_RATE_LIMIT = os.environ.get("WEBHOOK_RATE_LIMIT", "60/minute")

SERVER_ERROR_REPLY = "Ошибка сервера. Попробуйте позже."
VOICE_REPLY = "Пока не умею слушать голосовые. Напишите, пожалуйста, текстом."

WHATSAPP_PREFIX = "WA-"
TELEGRAM_PREFIX = "TG-"


async def _read_json(request: Request) -> Optional[object]:
    try:
        return await request.json()
    except ValueError:
        logger.warning("webhooks: body is not JSON (%s)", request.url.path)
        return None


# ── Wazzup (WhatsApp) ─────────────────────────────────────────────────────────

@router.post("/wazzup", response_model=WebhookAck)
@limiter.limit(WEBHOOK_RATE_LIMIT)
async def wazzup_inbound(
    request: Request,
    orchestrator: Orchestrator = Depends(get_orchestrator),
    wazzup: Optional[WazzupClient] = Depends(get_wazzup),
):
    """Answer each inbound WhatsApp message and send the reply through Wazzup."""
    body = await _read_json(request)
    try:
        payload = WazzupWebhook.model_validate(body or {})
    except PydanticValidationError:
        logger.warning("webhooks: Wazzup payload parse error", exc_info=True)
        return WebhookAck(status="ignored")

    processed = 0
    for msg in payload.messages:
        if not msg.is_inbound or not msg.chat_id:
            continue
        client_id = f"{WHATSAPP_PREFIX}{msg.chat_id}"
        if msg.is_voice:
            reply = VOICE_REPLY
        elif not msg.text.strip():
            continue
        else:
            result = await orchestrator.process(
                client_id, msg.text, role=Role.CLIENT, lead_source="whatsapp",
            )
            reply = result.answer or SERVER_ERROR_REPLY
        processed += 1

        if wazzup is None:
            logger.warning("webhooks: Wazzup client not configured, reply to %s dropped", client_id)
            continue
        try:
            await wazzup.send_message(payload.channel_id, msg.chat_id, reply)
        except httpx.HTTPError as exc:
            logger.error(
                "webhooks: Wazzup send failed for %s: %s", client_id, exc,
                extra={"client_id": client_id, "channel": "whatsapp"},
            )
    return WebhookAck(processed=processed)


# ── Telegram ──────────────────────────────────────────────────────────────────

async def _answer_telegram(
    orchestrator: Orchestrator,
    telegram: TelegramClient,
    chat_id: int,
    text: Optional[str],
    is_admin: bool,
) -> None:
    client_id = f"{TELEGRAM_PREFIX}{chat_id}"
    if text is None:
        await telegram.send_message(chat_id, VOICE_REPLY)
        return
    try:
        await telegram.send_typing(chat_id)
    except httpx.HTTPError as exc:
        logger.warning("webhooks: typing indicator failed for %s: %s", client_id, exc)
    result = await orchestrator.process(
        client_id,
        text,
        role=Role.ADMIN if is_admin else Role.CLIENT,
        lead_source="telegram",
    )
    await telegram.send_message(chat_id, result.answer or SERVER_ERROR_REPLY)


@router.post("/telegram", response_model=WebhookAck)
@limiter.limit(WEBHOOK_RATE_LIMIT)
async def telegram_inbound(
    request: Request,
    orchestrator: Orchestrator = Depends(get_orchestrator),
    worker: BackgroundWorker = Depends(get_worker),
    telegram: Optional[TelegramClient] = Depends(get_telegram),
    config: Optional[AppConfig] = Depends(get_app_config),
):
    """Acknowledge a Telegram update and answer it in the background."""
    if telegram is None:
        return JSONResponse(
            status_code=503,
            content={"detail": "Telegram integration not configured"},
        )

    body = await _read_json(request)
    try:
        update = TelegramUpdate.model_validate(body or {})
    except PydanticValidationError:
        logger.warning("webhooks: Telegram payload parse error", exc_info=True)
        return WebhookAck(status="ignored")

    msg = update.message
    if msg is None:
        return WebhookAck(status="ignored")

    text = msg.text if msg.text and msg.text.strip() else None
    if text is None and msg.voice is None:
        return WebhookAck(status="ignored")

    admin_id = config.admin_telegram_id if config is not None else None
    is_admin = admin_id is not None and msg.from_user is not None and msg.from_user.id == admin_id

    worker.submit(
        _answer_telegram(orchestrator, telegram, msg.chat.id, text, is_admin),
        name=f"telegram:{msg.chat.id}",
    )
    return WebhookAck(processed=1)
