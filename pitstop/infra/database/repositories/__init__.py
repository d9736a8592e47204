"""Repositories for the pitstop database."""
from pitstop.infra.database.repositories.base import BaseRepository
from pitstop.infra.database.repositories.booking import BookingRepository
from pitstop.infra.database.repositories.client import ClientRepository
from pitstop.infra.database.repositories.conversation import (
    ChatSessionRepository,
    MessageRepository,
)
from pitstop.infra.database.repositories.dialog_log import DialogLogRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "ClientRepository",
    "ChatSessionRepository",
    "MessageRepository",
    "DialogLogRepository",
]
