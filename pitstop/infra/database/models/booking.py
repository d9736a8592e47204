"""Booking ORM model."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from pitstop.infra.database.models.base import Base


class Booking(Base):
    """A seat reservation. Written once, never updated or deleted."""

    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_start", "booking_start"),
        Index("ix_bookings_client_id", "client_id"),
        CheckConstraint("seats BETWEEN 1 AND 6", name="ck_bookings_seats"),
        CheckConstraint("hours BETWEEN 1 AND 12", name="ck_bookings_hours"),
        CheckConstraint("amount >= 0", name="ck_bookings_amount"),
    )

    booking_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    client_id: Mapped[str] = mapped_column(String(128), nullable=False)
    booking_start: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    """Local business time, no timezone."""

    seats: Mapped[int] = mapped_column(Integer, nullable=False)
    hours: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )

    def __repr__(self) -> str:
        return (
            f"Booking(id={self.booking_id!r}, start={self.booking_start!r}, "
            f"seats={self.seats}, hours={self.hours}, amount={self.amount})"
        )
