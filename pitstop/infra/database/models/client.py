"""ClientProfile ORM model."""
from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from pitstop.infra.database.models.base import Base, TimestampMixin


class ClientProfile(Base, TimestampMixin):
    """A chat participant, created lazily on first profile lookup. Never deleted."""

    __tablename__ = "clients"

    client_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    """Channel-prefixed id: ``WA-<chat id>`` or ``TG-<chat id>``."""

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="Client", server_default="Client")
    language: Mapped[str] = mapped_column(String(8), nullable=False, default="ru", server_default="ru")
    loyalty_level: Mapped[str] = mapped_column(
        String(32), nullable=False, default="Standard", server_default="Standard",
    )
    total_spent: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0"), server_default="0",
    )

    def __repr__(self) -> str:
        return f"ClientProfile(client_id={self.client_id!r}, loyalty={self.loyalty_level!r})"
