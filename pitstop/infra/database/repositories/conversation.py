"""Repositories for the message log and chat sessions."""
from __future__ import annotations

from datetime import datetime
from typing import ClassVar, List, Optional

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert

from pitstop.infra.database.models.conversation import ChatSession, Message
from pitstop.infra.database.repositories.base import BaseRepository


class MessageRepository(BaseRepository[Message]):
    model: ClassVar[type] = Message

    async def add(self, client_id: str, sender: str, text: str) -> Message:
        return await self.create({"client_id": client_id, "sender": sender, "text": text})

    async def get_since(
        self,
        client_id: str,
        since: datetime,
        *,
        limit: int = 200,
    ) -> List[Message]:
        """Messages newer than *since*, oldest first (the newest *limit* if more)."""
        newest = (
            select(Message)
            .where(Message.client_id == client_id, Message.created_at >= since)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(newest)
        rows = list(result.scalars().all())
        rows.reverse()
        return rows


class ChatSessionRepository(BaseRepository[ChatSession]):
    model: ClassVar[type] = ChatSession

    async def upsert(
        self,
        client_id: str,
        expires_at: datetime,
        booking_id: Optional[str] = None,
    ) -> None:
        """Insert or refresh the client's session; booking_id is only overwritten when given."""
        values = {"client_id": client_id, "expires_at": expires_at, "booking_id": booking_id}
        update_values = {"expires_at": expires_at}
        stmt = pg_insert(ChatSession).values(**values)
        update_values["booking_id"] = func.coalesce(stmt.excluded.booking_id, ChatSession.booking_id)
        stmt = stmt.on_conflict_do_update(index_elements=[ChatSession.client_id], set_=update_values)
        await self.session.execute(stmt)
