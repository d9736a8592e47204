"""Collaborator contracts for the conversational core, plus the value types they exchange.

Every method is declared up front on one typed protocol per collaborator, so
callers never probe a store for optional capabilities at call time.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class BookingRecord:
    booking_id: str
    client_id: str
    start: datetime
    seats: int
    hours: int
    amount: Decimal


@dataclass(frozen=True)
class HistoryItem:
    timestamp: datetime
    sender: str
    text: str


@dataclass
class ClientProfileView:
    client_id: str
    name: str = "Client"
    language: str = "ru"
    loyalty_level: str = "Standard"
    total_spent: Decimal = Decimal("0")
    history: str = "[]"
    """Recent messages as a JSON array of {timestamp, sender, text}."""


@dataclass(frozen=True)
class SalesReport:
    total_revenue: Decimal
    total_bookings: int
    average_check: Decimal


@dataclass(frozen=True)
class WeatherReport:
    temp: float
    condition: str
    wind_speed: float
    precip_prob: float


@dataclass
class DialogLog:
    client_id: str
    timestamp: datetime
    message_text: str
    intent: str = "unknown"
    lead_source: str = "whatsapp"
    sentiment: str = "neutral"
    extra: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class CapacityStore(Protocol):
    async def get_bookings_at(self, start: datetime) -> List[BookingRecord]:
        ...

    async def save_booking(self, booking: BookingRecord) -> None:
        ...


@runtime_checkable
class ContextStore(CapacityStore, Protocol):
    async def save_message(self, client_id: str, sender: str, text: str) -> None:
        ...

    async def get_chat_history(
        self, client_id: str, window: timedelta = timedelta(hours=24),
    ) -> List[HistoryItem]:
        ...

    async def create_or_update_session(self, client_id: str, booking_id: Optional[str] = None) -> None:
        ...

    async def get_profile(
        self, client_id: str, window: timedelta = timedelta(hours=2),
    ) -> ClientProfileView:
        ...


@runtime_checkable
class AnalyticsRepository(Protocol):
    async def get_sales_report(self, start_date: str, end_date: str) -> SalesReport:
        ...

    async def get_sales_detail(self, filter_expr: str) -> Dict[str, Any]:
        ...

    async def save_log(self, entry: DialogLog) -> None:
        ...


@runtime_checkable
class WeatherProvider(Protocol):
    async def get_current_weather(self) -> WeatherReport:
        ...

    async def get_forecast(self, date: str) -> WeatherReport:
        ...


@runtime_checkable
class Notifier(Protocol):
    async def notify_admin(self, message: str) -> None:
        ...
