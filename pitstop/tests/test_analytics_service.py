"""Unit tests for AnalyticsService with a fake session factory and mocked repositories."""
from __future__ import annotations

import asyncio
import unittest
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

from sqlalchemy.exc import OperationalError

from pitstop.core.exceptions import PersistenceError, ValidationError
from pitstop.services.analytics_service import AnalyticsService, _ratio
from pitstop.services.interfaces import DialogLog

TODAY = date(2026, 3, 14)


def _run(coro):
    return asyncio.run(coro)


class _FakeSessionCtx:
    def __init__(self, session):
        self._session = session

    async def __aenter__(self):
        return self._session

    async def __aexit__(self, *_):
        return False


def _totals(bookings=0, revenue="0", seats=0):
    return {"total_bookings": bookings, "total_revenue": Decimal(revenue), "total_seats": seats}


def _service(session=None):
    session = session or MagicMock(commit=AsyncMock())
    return AnalyticsService(lambda: _FakeSessionCtx(session), today=lambda: TODAY), session


def _booking_repo(totals=None, popular=None, four_seat=0, error=None):
    repo = MagicMock()
    repo.totals_between = AsyncMock(return_value=totals or _totals(), side_effect=error)
    repo.popular_hour_between = AsyncMock(return_value=popular)
    repo.count_with_seats_between = AsyncMock(return_value=four_seat)
    return repo


_REPO = "pitstop.services.analytics_service.BookingRepository"


# ─── sales report ────────────────────────────────────────────────────────────

class TestSalesReport(unittest.TestCase):
    def test_end_day_is_inclusive(self):
        repo = _booking_repo(_totals(3, "16500", 7))
        svc, _ = _service()
        with patch(_REPO, return_value=repo):
            report = _run(svc.get_sales_report("2026-03-01", "2026-03-13"))

        repo.totals_between.assert_awaited_once_with(datetime(2026, 3, 1), datetime(2026, 3, 14))
        self.assertEqual(report.total_revenue, Decimal("16500"))
        self.assertEqual(report.total_bookings, 3)
        self.assertEqual(report.average_check, Decimal("5500"))

    def test_single_day(self):
        repo = _booking_repo()
        svc, _ = _service()
        with patch(_REPO, return_value=repo):
            report = _run(svc.get_sales_report("2026-03-13", "2026-03-13"))

        repo.totals_between.assert_awaited_once_with(datetime(2026, 3, 13), datetime(2026, 3, 14))
        self.assertEqual(report.average_check, Decimal("0"))

    def test_malformed_dates_rejected(self):
        svc, _ = _service()
        for start, end in (("13.03.2026", "2026-03-14"), ("2026-03-13", ""), ("2026-02-30", "2026-03-01")):
            with self.subTest(start=start, end=end):
                with self.assertRaises(ValidationError):
                    _run(svc.get_sales_report(start, end))

    def test_reversed_range_rejected(self):
        svc, _ = _service()
        with self.assertRaises(ValidationError) as ctx:
            _run(svc.get_sales_report("2026-03-14", "2026-03-01"))
        self.assertEqual(ctx.exception.details["end_date"], "2026-03-01")

    def test_database_error_is_persistence_error(self):
        repo = _booking_repo(error=OperationalError("SELECT", {}, Exception("down")))
        svc, _ = _service()
        with patch(_REPO, return_value=repo):
            with self.assertRaises(PersistenceError):
                _run(svc.get_sales_report("2026-03-01", "2026-03-02"))


# ─── sales detail ────────────────────────────────────────────────────────────

class TestSalesDetail(unittest.TestCase):
    def test_today_breakdown(self):
        repo = _booking_repo(_totals(4, "19000", 8), popular=19, four_seat=1)
        svc, _ = _service()
        with patch(_REPO, return_value=repo):
            detail = _run(svc.get_sales_detail(" Today "))

        window = (datetime(2026, 3, 14), datetime(2026, 3, 15))
        repo.totals_between.assert_awaited_once_with(*window)
        repo.popular_hour_between.assert_awaited_once_with(*window)
        repo.count_with_seats_between.assert_awaited_once_with(4, *window)
        self.assertEqual(detail, {
            "total_bookings": 4,
            "popular_hour": "19:00",
            "four_seat_bookings": 1,
            "avg_price_per_seat": Decimal("2375"),
        })

    def test_today_without_bookings(self):
        svc, _ = _service()
        with patch(_REPO, return_value=_booking_repo()):
            detail = _run(svc.get_sales_detail("today"))

        self.assertEqual(detail["popular_hour"], "-")
        self.assertEqual(detail["avg_price_per_seat"], Decimal("0"))
        self.assertEqual(detail["total_bookings"], 0)

    def test_early_hour_is_zero_padded(self):
        svc, _ = _service()
        with patch(_REPO, return_value=_booking_repo(_totals(1, "2000", 1), popular=9)):
            self.assertEqual(_run(svc.get_sales_detail("today"))["popular_hour"], "09:00")

    def test_other_filters_cover_thirty_days(self):
        repo = _booking_repo(_totals(10, "45000", 20))
        svc, _ = _service()
        with patch(_REPO, return_value=repo):
            detail = _run(svc.get_sales_detail("month"))

        repo.totals_between.assert_awaited_once_with(datetime(2026, 2, 12), datetime(2026, 3, 15))
        repo.popular_hour_between.assert_not_awaited()
        self.assertEqual(detail, {
            "total_bookings": 10,
            "total_revenue": Decimal("45000"),
            "avg_check": Decimal("4500"),
        })

    def test_today_database_error_is_persistence_error(self):
        repo = _booking_repo(error=OperationalError("SELECT", {}, Exception("down")))
        svc, _ = _service()
        with patch(_REPO, return_value=repo):
            with self.assertRaises(PersistenceError):
                _run(svc.get_sales_detail("today"))


class TestRatio(unittest.TestCase):
    def test_zero_count(self):
        self.assertEqual(_ratio(Decimal("5000"), 0), Decimal("0"))

    def test_rounds_half_up(self):
        self.assertEqual(_ratio(Decimal("5"), 2), Decimal("3"))
        self.assertEqual(_ratio(Decimal("2500"), 3), Decimal("833"))


# ─── dialog log ──────────────────────────────────────────────────────────────

class TestSaveLog(unittest.TestCase):
    def _entry(self) -> DialogLog:
        return DialogLog(
            client_id="TG-42",
            timestamp=datetime(2026, 3, 14, 18, 0),
            message_text="есть места на завтра?",
            intent="booking",
            lead_source="telegram",
        )

    def test_entry_written_and_committed(self):
        repo = MagicMock()
        repo.append = AsyncMock()
        svc, session = _service()
        with patch("pitstop.services.analytics_service.DialogLogRepository", return_value=repo):
            _run(svc.save_log(self._entry()))

        repo.append.assert_awaited_once_with(
            client_id="TG-42",
            timestamp=datetime(2026, 3, 14, 18, 0),
            message_text="есть места на завтра?",
            intent="booking",
            lead_source="telegram",
            sentiment="neutral",
        )
        session.commit.assert_awaited_once()

    def test_database_error_is_persistence_error(self):
        repo = MagicMock()
        repo.append = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("down")))
        svc, session = _service()
        with patch("pitstop.services.analytics_service.DialogLogRepository", return_value=repo):
            with self.assertRaises(PersistenceError):
                _run(svc.save_log(self._entry()))
        session.commit.assert_not_awaited()


if __name__ == "__main__":
    unittest.main()
