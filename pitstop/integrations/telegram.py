"""Telegram Bot API client: outbound messages and the typing indicator."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

import httpx

logger = logging.getLogger(__name__)

_MAX_MESSAGE_LEN = 4096

ChatId = Union[int, str]


class TelegramClient:
    BASE = "https://api.telegram.org/bot{token}"

    def __init__(self, token: str, *, timeout: float = 15.0) -> None:
        self._base = self.BASE.format(token=token)
        self._timeout = timeout

    async def _call(self, client: httpx.AsyncClient, method: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        resp = await client.post(f"{self._base}/{method}", json=payload)
        if resp.status_code != 200:
            logger.warning(
                "TelegramClient: %s failed (status=%s): %s", method, resp.status_code, resp.text,
            )
            return None
        try:
            body = resp.json()
        except ValueError:
            logger.warning("TelegramClient: %s returned a non-JSON body: %.200s", method, resp.text)
            return None
        if not isinstance(body, dict):
            logger.warning("TelegramClient: %s returned %s instead of an object", method, type(body).__name__)
            return None
        if not body.get("ok"):
            logger.warning("TelegramClient: %s rejected: %s", method, body.get("description"))
            return None
        return body

    async def send_message(self, chat_id: ChatId, text: str) -> bool:
        """Send *text* to *chat_id*, split into 4096-char chunks. False if any chunk failed."""
        chunks = [text[i : i + _MAX_MESSAGE_LEN] for i in range(0, len(text), _MAX_MESSAGE_LEN)] or [""]
        ok = True
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            for chunk in chunks:
                if await self._call(client, "sendMessage", {"chat_id": chat_id, "text": chunk}) is None:
                    ok = False
        return ok

    async def send_typing(self, chat_id: ChatId) -> bool:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            body = await self._call(client, "sendChatAction", {"chat_id": chat_id, "action": "typing"})
        return body is not None

