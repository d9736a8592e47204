"""Service layer: booking domain, conversation context, analytics, and the database-backed store."""
from pitstop.services.analytics_service import AnalyticsService
from pitstop.services.booking_service import BookingService
from pitstop.services.conversation_service import ConversationService
from pitstop.services.store import DatabaseStore

__all__ = [
    "AnalyticsService",
    "BookingService",
    "ConversationService",
    "DatabaseStore",
]
