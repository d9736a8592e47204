"""BookingService: capacity checks, pricing, booking creation and payment links.

Rules
─────
  seats   1..6   per request, and at most 6 in total per start instant
  hours   1..12
  price   2000 x seats x hours, x1.25 when the start hour is 22:00 or later

Capacity is summed over bookings whose start is exactly equal to the requested
instant; overlapping intervals are not considered. create_booking does not
re-check capacity before saving. Both behaviours are known gaps, see DESIGN.md.
"""
from __future__ import annotations

import logging
import threading
import time
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from pitstop.core.exceptions import PersistenceError, ValidationError
from pitstop.services.interfaces import BookingRecord

if TYPE_CHECKING:
    from pitstop.services.interfaces import CapacityStore

logger = logging.getLogger(__name__)

MAX_CAPACITY = 6
MIN_SEATS, MAX_SEATS = 1, 6
MIN_HOURS, MAX_HOURS = 1, 12
BASE_RATE = Decimal("2000")
NIGHT_MULTIPLIER = Decimal("1.25")
NIGHT_FROM_HOUR = 22

AVAILABLE = "available"
INSUFFICIENT = "insufficient"

DATETIME_FORMAT = "%Y-%m-%d %H:%M"
TIME_FORMAT = "%H:%M"


class _BookingIdSource:
    """``bk_<nanoseconds>``, strictly increasing within the process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last = 0

    def next(self) -> str:
        with self._lock:
            self._last = max(time.time_ns(), self._last + 1)
            return f"bk_{self._last}"


_booking_ids = _BookingIdSource()


def validate_seats(seats: int) -> None:
    if not MIN_SEATS <= seats <= MAX_SEATS:
        raise ValidationError(
            f"seats must be between {MIN_SEATS} and {MAX_SEATS}", details={"seats": seats},
        )


def validate_hours(hours: int) -> None:
    if not MIN_HOURS <= hours <= MAX_HOURS:
        raise ValidationError(
            f"hours must be between {MIN_HOURS} and {MAX_HOURS}", details={"hours": hours},
        )


def parse_start(date: str, time_str: str) -> datetime:
    """``YYYY-MM-DD`` + ``HH:MM`` -> naive local datetime."""
    raw = f"{(date or '').strip()} {(time_str or '').strip()}"
    try:
        return datetime.strptime(raw, DATETIME_FORMAT)
    except ValueError as exc:
        raise ValidationError(
            "date/time must look like YYYY-MM-DD and HH:MM",
            details={"date": date, "time": time_str},
            cause=exc,
        ) from exc


class BookingService:
    def __init__(
        self,
        store: "CapacityStore",
        *,
        payment_base_url: str = "https://pay.example.com/",
    ) -> None:
        self._store = store
        self._payment_base_url = payment_base_url

    async def check_availability(self, date: str, time_str: str, seats: int) -> str:
        """Return AVAILABLE or INSUFFICIENT for *seats* more at the exact start."""
        validate_seats(seats)
        start = parse_start(date, time_str)
        existing = await self._store.get_bookings_at(start)
        used = sum(b.seats for b in existing)
        verdict = INSUFFICIENT if used + seats > MAX_CAPACITY else AVAILABLE
        logger.debug(
            "BookingService: %s used=%d requested=%d -> %s", start, used, seats, verdict,
        )
        return verdict

    def get_price(self, seats: int, hours: int, time_str: str = "") -> str:
        """Whole-number price string. A malformed *time_str* only skips the night rate."""
        validate_seats(seats)
        validate_hours(hours)
        price = BASE_RATE * seats * hours
        try:
            hour = datetime.strptime((time_str or "").strip(), TIME_FORMAT).hour
        except ValueError:
            hour = None
        if hour is not None and hour >= NIGHT_FROM_HOUR:
            price *= NIGHT_MULTIPLIER
        return str(price.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    async def create_booking(
        self,
        client_id: str,
        date: str,
        time_str: str,
        seats: int,
        hours: int,
    ) -> str:
        """Persist a booking and return its id. Raises ValidationError or PersistenceError."""
        validate_seats(seats)
        validate_hours(hours)
        start = parse_start(date, time_str)
        amount = Decimal(self.get_price(seats, hours, time_str))
        booking = BookingRecord(
            booking_id=_booking_ids.next(),
            client_id=client_id,
            start=start,
            seats=seats,
            hours=hours,
            amount=amount,
        )
        try:
            await self._store.save_booking(booking)
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(
                "could not save booking", details={"booking_id": booking.booking_id}, cause=exc,
            ) from exc
        return booking.booking_id

    def generate_payment_link(self, amount: float, booking_id: str) -> str:
        if amount is None or amount <= 0:
            raise ValidationError("amount must be greater than zero", details={"amount": amount})
        whole = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        if whole <= 0:
            raise ValidationError("amount rounds to zero", details={"amount": amount})
        query = urlencode({"booking": booking_id, "amount": str(whole)})
        return f"{self._payment_base_url}?{query}"
