"""AnalyticsService: sales aggregates for the admin tools and the dialog log sink."""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict

from sqlalchemy.exc import SQLAlchemyError

from pitstop.core.exceptions import PersistenceError, ValidationError
from pitstop.infra.database.repositories.booking import BookingRepository
from pitstop.infra.database.repositories.dialog_log import DialogLogRepository
from pitstop.services.interfaces import DialogLog, SalesReport

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = logging.getLogger(__name__)

FILTER_TODAY = "today"
DEFAULT_WINDOW_DAYS = 30
_DATE_FORMAT = "%Y-%m-%d"


def _parse_day(value: str, field_name: str) -> date:
    try:
        return datetime.strptime((value or "").strip(), _DATE_FORMAT).date()
    except ValueError as exc:
        raise ValidationError(
            f"{field_name} must be YYYY-MM-DD", details={field_name: value}, cause=exc,
        ) from exc


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _ratio(total: Decimal, count: int) -> Decimal:
    if not count:
        return Decimal("0")
    return (Decimal(total) / count).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


class AnalyticsService:
    """Read-side aggregates over bookings; booking times are local business time."""

    def __init__(
        self,
        session_factory: "async_sessionmaker[AsyncSession]",
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._session_factory = session_factory
        self._today = today

    async def get_sales_report(self, start_date: str, end_date: str) -> SalesReport:
        """Totals for bookings starting between the two dates, both inclusive."""
        first = _parse_day(start_date, "start_date")
        last = _parse_day(end_date, "end_date")
        if last < first:
            raise ValidationError(
                "end_date is before start_date",
                details={"start_date": start_date, "end_date": end_date},
            )
        totals = await self._totals(_day_start(first), _day_start(last + timedelta(days=1)))
        return SalesReport(
            total_revenue=totals["total_revenue"],
            total_bookings=totals["total_bookings"],
            average_check=_ratio(totals["total_revenue"], totals["total_bookings"]),
        )

    async def get_sales_detail(self, filter_expr: str) -> Dict[str, Any]:
        """``"today"`` -> today's breakdown; anything else -> last 30 days."""
        today = self._today()
        if (filter_expr or "").strip().lower() == FILTER_TODAY:
            start, end = _day_start(today), _day_start(today + timedelta(days=1))
            try:
                async with self._session_factory() as session:
                    repo = BookingRepository(session)
                    totals = await repo.totals_between(start, end)
                    popular = await repo.popular_hour_between(start, end)
                    four_seat = await repo.count_with_seats_between(4, start, end)
            except SQLAlchemyError as exc:
                raise PersistenceError("sales detail query failed", cause=exc) from exc
            return {
                "total_bookings": totals["total_bookings"],
                "popular_hour": f"{popular:02d}:00" if popular is not None else "-",
                "four_seat_bookings": four_seat,
                "avg_price_per_seat": _ratio(totals["total_revenue"], totals["total_seats"]),
            }

        start = _day_start(today - timedelta(days=DEFAULT_WINDOW_DAYS))
        totals = await self._totals(start, _day_start(today + timedelta(days=1)))
        return {
            "total_bookings": totals["total_bookings"],
            "total_revenue": totals["total_revenue"],
            "avg_check": _ratio(totals["total_revenue"], totals["total_bookings"]),
        }

    async def save_log(self, entry: DialogLog) -> None:
        try:
            async with self._session_factory() as session:
                await DialogLogRepository(session).append(
                    client_id=entry.client_id,
                    timestamp=entry.timestamp,
                    message_text=entry.message_text,
                    intent=entry.intent,
                    lead_source=entry.lead_source,
                    sentiment=entry.sentiment,
                )
                await session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError("dialog log write failed", cause=exc) from exc

    async def _totals(self, start: datetime, end: datetime) -> Dict[str, Any]:
        try:
            async with self._session_factory() as session:
                return await BookingRepository(session).totals_between(start, end)
        except SQLAlchemyError as exc:
            raise PersistenceError("sales totals query failed", cause=exc) from exc
