"""Repository for bookings and the sales aggregates built on them."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Optional

from sqlalchemy import extract, func, select

from pitstop.infra.database.models.booking import Booking
from pitstop.infra.database.repositories.base import BaseRepository


class BookingRepository(BaseRepository[Booking]):
    model: ClassVar[type] = Booking

    async def add(
        self,
        booking_id: str,
        client_id: str,
        start: datetime,
        seats: int,
        hours: int,
        amount: Decimal,
    ) -> Booking:
        return await self.create({
            "booking_id": booking_id,
            "client_id": client_id,
            "booking_start": start,
            "seats": seats,
            "hours": hours,
            "amount": amount,
        })

    async def get_at(self, start: datetime) -> List[Booking]:
        """Bookings whose start equals *start* exactly."""
        return await self.list_where(Booking.booking_start == start, order_by=Booking.booking_id, limit=1000)

    async def totals_between(self, start: datetime, end: datetime) -> Dict[str, Any]:
        """Count and revenue for bookings starting in [start, end)."""
        stmt = select(
            func.count(Booking.booking_id),
            func.coalesce(func.sum(Booking.amount), 0),
            func.coalesce(func.sum(Booking.seats), 0),
        ).where(Booking.booking_start >= start, Booking.booking_start < end)
        count, revenue, seats = (await self.session.execute(stmt)).one()
        return {
            "total_bookings": int(count or 0),
            "total_revenue": Decimal(revenue or 0),
            "total_seats": int(seats or 0),
        }

    async def popular_hour_between(self, start: datetime, end: datetime) -> Optional[int]:
        hour = extract("hour", Booking.booking_start)
        stmt = (
            select(hour, func.count())
            .where(Booking.booking_start >= start, Booking.booking_start < end)
            .group_by(hour)
            .order_by(func.count().desc(), hour)
            .limit(1)
        )
        row = (await self.session.execute(stmt)).first()
        return int(row[0]) if row is not None else None

    async def count_with_seats_between(self, seats: int, start: datetime, end: datetime) -> int:
        stmt = select(func.count()).where(
            Booking.seats == seats,
            Booking.booking_start >= start,
            Booking.booking_start < end,
        )
        return int((await self.session.execute(stmt)).scalar_one() or 0)
