"""ConversationService: message log, chat history, sessions and client profiles."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable, List, Optional

from pitstop.infra.database.repositories.client import ClientRepository
from pitstop.infra.database.repositories.conversation import (
    ChatSessionRepository,
    MessageRepository,
)
from pitstop.services.interfaces import ClientProfileView, HistoryItem

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

SESSION_TTL = timedelta(hours=24)
PROFILE_HISTORY_WINDOW = timedelta(hours=2)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationService:
    """Per-session persistence for the conversational context.

    Works inside the caller's AsyncSession; the caller commits.
    """

    def __init__(
        self,
        session: "AsyncSession",
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session = session
        self._clock = clock
        self._msg_repo = MessageRepository(session)
        self._session_repo = ChatSessionRepository(session)
        self._client_repo = ClientRepository(session)

    # ── Message log ───────────────────────────────────────────────

    async def record_message(self, client_id: str, sender: str, text: str) -> None:
        await self._msg_repo.add(client_id, sender, text)
        logger.debug("Message recorded for %s (sender=%s)", client_id, sender)

    async def get_history(
        self,
        client_id: str,
        window: timedelta = timedelta(hours=24),
    ) -> List[HistoryItem]:
        """Messages inside *window*, oldest first."""
        since = self._clock() - window
        rows = await self._msg_repo.get_since(client_id, since)
        return [HistoryItem(timestamp=m.created_at, sender=m.sender, text=m.text or "") for m in rows]

    # ── Sessions ──────────────────────────────────────────────────

    async def touch_session(self, client_id: str, booking_id: Optional[str] = None) -> None:
        """Create the session or push its expiry to now + 24h."""
        await self._session_repo.upsert(client_id, self._clock() + SESSION_TTL, booking_id)

    # ── Profiles ──────────────────────────────────────────────────

    async def get_profile(
        self,
        client_id: str,
        window: timedelta = PROFILE_HISTORY_WINDOW,
    ) -> ClientProfileView:
        """Load the profile, creating the default one on first contact.

        ``history`` holds the messages inside *window* (two hours by default)
        as a JSON array.
        """
        profile, created = await self._client_repo.get_or_create_profile(client_id)
        if created:
            logger.info("Client profile created: %s", client_id)
        recent = await self.get_history(client_id, window)
        return ClientProfileView(
            client_id=profile.client_id,
            name=profile.name,
            language=profile.language,
            loyalty_level=profile.loyalty_level,
            total_spent=profile.total_spent,
            history=history_blob(recent),
        )


def history_blob(items: List[HistoryItem]) -> str:
    return json.dumps(
        [
            {"timestamp": item.timestamp.isoformat(), "sender": item.sender, "text": item.text}
            for item in items
        ],
        ensure_ascii=False,
    )
