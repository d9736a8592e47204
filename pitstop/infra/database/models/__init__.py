"""
pitstop.infra.database.models – SQLAlchemy 2.0 ORM models.

Exports Base, mixins, and all model classes.
"""
from pitstop.infra.database.models.base import Base, TimestampMixin
from pitstop.infra.database.models.booking import Booking
from pitstop.infra.database.models.client import ClientProfile
from pitstop.infra.database.models.conversation import (
    SENDER_BOT,
    SENDER_CLIENT,
    ChatSession,
    Message,
)
from pitstop.infra.database.models.dialog_log import DialogLogEntry

__all__ = [
    "Base",
    "TimestampMixin",
    "Booking",
    "ClientProfile",
    "ChatSession",
    "Message",
    "DialogLogEntry",
    "SENDER_BOT",
    "SENDER_CLIENT",
]
