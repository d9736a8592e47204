"""DialogLogEntry ORM model: one analytics row per answered message."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pitstop.infra.database.models.base import Base


class DialogLogEntry(Base):
    __tablename__ = "dialog_logs"
    __table_args__ = (
        Index("ix_dialog_logs_client_ts", "client_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[str] = mapped_column(String(128), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    message_text: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    intent: Mapped[str] = mapped_column(String(32), nullable=False, server_default="unknown")
    lead_source: Mapped[str] = mapped_column(String(32), nullable=False, server_default="whatsapp")
    sentiment: Mapped[str] = mapped_column(String(16), nullable=False, server_default="neutral")

    def __repr__(self) -> str:
        return f"DialogLogEntry(client_id={self.client_id!r}, intent={self.intent!r})"
