"""Message log and chat session ORM models."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from pitstop.infra.database.models.base import Base

SENDER_CLIENT = "client"
SENDER_BOT = "bot"


class Message(Base):
    """One immutable chat line, either from the client or from the bot."""

    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_client_created", "client_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[str] = mapped_column(String(128), nullable=False)
    sender: Mapped[str] = mapped_column(String(16), nullable=False)
    """client | bot."""

    text: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )

    def __repr__(self) -> str:
        preview = (self.text or "")[:40]
        return f"Message(client_id={self.client_id!r}, sender={self.sender!r}, text={preview!r})"


class ChatSession(Base):
    """Per-client session marker, upserted on every inbound message."""

    __tablename__ = "chat_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    client_id: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    booking_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"ChatSession(client_id={self.client_id!r}, expires_at={self.expires_at!r})"
