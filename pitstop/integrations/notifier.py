"""Admin alerts for failures the end user never sees."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from pitstop.integrations.telegram import ChatId, TelegramClient

logger = logging.getLogger(__name__)


class AdminNotifier:
    """Send alerts to the admin's Telegram chat; log only when that is not configured."""

    def __init__(
        self,
        telegram: Optional["TelegramClient"] = None,
        chat_id: Optional["ChatId"] = None,
    ) -> None:
        self._telegram = telegram
        self._chat_id = chat_id

    async def notify_admin(self, message: str) -> None:
        logger.warning("ADMIN NOTIFY: %s", message)
        if self._telegram is None or self._chat_id is None:
            return
        await self._telegram.send_message(self._chat_id, f"⚠️ {message}")
