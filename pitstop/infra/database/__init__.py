"""
pitstop.infra.database – PostgreSQL async engine, session factory, models and repositories.

Public API
──────────
  build_engine, build_session_factory, init_db, close_engine, ensure_database_exists
  Base, ClientProfile, Message, ChatSession, Booking, DialogLogEntry (models)
  BookingRepository, ClientRepository, MessageRepository, ChatSessionRepository,
  DialogLogRepository
"""
from pitstop.infra.database.engine import (
    build_engine,
    build_session_factory,
    close_engine,
    ensure_database_exists,
    init_db,
)
from pitstop.infra.database.models import (
    Base,
    Booking,
    ChatSession,
    ClientProfile,
    DialogLogEntry,
    Message,
)
from pitstop.infra.database.repositories import (
    BaseRepository,
    BookingRepository,
    ChatSessionRepository,
    ClientRepository,
    DialogLogRepository,
    MessageRepository,
)

__all__ = [
    "build_engine",
    "build_session_factory",
    "init_db",
    "close_engine",
    "ensure_database_exists",
    "Base",
    "Booking",
    "ChatSession",
    "ClientProfile",
    "DialogLogEntry",
    "Message",
    "BaseRepository",
    "BookingRepository",
    "ChatSessionRepository",
    "ClientRepository",
    "DialogLogRepository",
    "MessageRepository",
]
