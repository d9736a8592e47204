"""Wazzup (WhatsApp gateway) client: outbound message sending."""
from __future__ import annotations

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

_API_URL = "https://api.wazzup24.com/v3/message"
_MAX_MESSAGE_LEN = 4096


class WazzupClient:
    def __init__(self, api_key: Optional[str], *, timeout: float = 15.0) -> None:
        self._api_key = api_key
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    async def send_message(self, channel_id: str, chat_id: str, text: str) -> bool:
        """Send *text* to a WhatsApp chat through the given Wazzup channel."""
        if not self._api_key:
            logger.warning("WazzupClient: API key not set, message to %s skipped", chat_id)
            return False
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        chunks = [text[i : i + _MAX_MESSAGE_LEN] for i in range(0, len(text), _MAX_MESSAGE_LEN)]
        ok = True
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            for chunk in chunks:
                payload = {
                    "channelId": channel_id,
                    "chatType": "whatsapp",
                    "chatId": chat_id,
                    "text": chunk,
                }
                resp = await client.post(_API_URL, headers=headers, json=payload)
                if resp.status_code not in (200, 201):
                    ok = False
                    logger.warning(
                        "WazzupClient: send failed (chat=%s status=%s): %s",
                        chat_id, resp.status_code, resp.text,
                    )
        return ok
