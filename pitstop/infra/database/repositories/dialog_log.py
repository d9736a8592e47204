"""Repository for DialogLogEntry rows."""
from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from pitstop.infra.database.models.dialog_log import DialogLogEntry
from pitstop.infra.database.repositories.base import BaseRepository


class DialogLogRepository(BaseRepository[DialogLogEntry]):
    model: ClassVar[type] = DialogLogEntry

    async def append(
        self,
        *,
        client_id: str,
        timestamp: datetime,
        message_text: str,
        intent: str,
        lead_source: str,
        sentiment: str,
    ) -> DialogLogEntry:
        return await self.create({
            "client_id": client_id,
            "timestamp": timestamp,
            "message_text": message_text,
            "intent": intent,
            "lead_source": lead_source,
            "sentiment": sentiment,
        })
