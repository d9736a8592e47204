"""DatabaseStore: the ContextStore / CapacityStore backed by PostgreSQL.

Each call opens its own session from the shared factory and commits before
returning, so concurrent requests only share the connection pool.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, AsyncIterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from pitstop.core.exceptions import PersistenceError
from pitstop.infra.database.repositories.booking import BookingRepository
from pitstop.services.conversation_service import PROFILE_HISTORY_WINDOW, ConversationService
from pitstop.services.interfaces import BookingRecord, ClientProfileView, HistoryItem

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)


class DatabaseStore:
    def __init__(self, session_factory: "async_sessionmaker[AsyncSession]") -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _unit_of_work(self, operation: str) -> AsyncIterator["AsyncSession"]:
        try:
            async with self._session_factory() as session:
                yield session
                await session.commit()
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError(f"{operation} failed", details={"operation": operation}, cause=exc) from exc

    # ── CapacityStore ─────────────────────────────────────────────

    async def get_bookings_at(self, start: datetime) -> List[BookingRecord]:
        async with self._unit_of_work("get_bookings_at") as session:
            rows = await BookingRepository(session).get_at(start)
            return [
                BookingRecord(
                    booking_id=b.booking_id,
                    client_id=b.client_id,
                    start=b.booking_start,
                    seats=b.seats,
                    hours=b.hours,
                    amount=b.amount,
                )
                for b in rows
            ]

    async def save_booking(self, booking: BookingRecord) -> None:
        async with self._unit_of_work("save_booking") as session:
            await BookingRepository(session).add(
                booking.booking_id,
                booking.client_id,
                booking.start,
                booking.seats,
                booking.hours,
                booking.amount,
            )
        logger.info(
            "Booking saved: %s start=%s seats=%d hours=%d amount=%s",
            booking.booking_id, booking.start, booking.seats, booking.hours, booking.amount,
            extra={"client_id": booking.client_id},
        )

    # ── ContextStore ──────────────────────────────────────────────

    async def save_message(self, client_id: str, sender: str, text: str) -> None:
        async with self._unit_of_work("save_message") as session:
            await ConversationService(session).record_message(client_id, sender, text)

    async def get_chat_history(
        self, client_id: str, window: timedelta = timedelta(hours=24),
    ) -> List[HistoryItem]:
        async with self._unit_of_work("get_chat_history") as session:
            return await ConversationService(session).get_history(client_id, window)

    async def create_or_update_session(self, client_id: str, booking_id: Optional[str] = None) -> None:
        async with self._unit_of_work("create_or_update_session") as session:
            await ConversationService(session).touch_session(client_id, booking_id)

    async def get_profile(
        self, client_id: str, window: timedelta = PROFILE_HISTORY_WINDOW,
    ) -> ClientProfileView:
        async with self._unit_of_work("get_profile") as session:
            return await ConversationService(session).get_profile(client_id, window)
