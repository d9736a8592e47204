"""Build the per-role ToolRegistry for one request."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pitstop.orchestrator.handlers.tool_handler import ToolRegistry
from pitstop.tools.builtin.booking_tools import build_booking_tools

if TYPE_CHECKING:
    from pitstop.services.booking_service import BookingService
    from pitstop.tools.builtin.analytics_tools import AnalyticsTools

logger = logging.getLogger(__name__)


def build_client_registry(booking_service: "BookingService", client_id: str) -> ToolRegistry:
    """CheckAvailability, GetPrice, CreateBooking, GeneratePaymentLink for *client_id*."""
    registry = ToolRegistry()
    for tool in build_booking_tools(booking_service, client_id):
        registry.register(tool)
    return registry


def build_admin_registry(analytics_tools: "AnalyticsTools") -> ToolRegistry:
    """The five analytics tools."""
    registry = ToolRegistry()
    for tool in analytics_tools.definitions():
        registry.register(tool)
    logger.debug("registry_builder: admin registry %s", registry.names)
    return registry


class RegistryFactory:
    """Per-role registry source handed to the orchestrator.

    Admin tools are stateless, so their registry is built once; client tools
    bind the client id and are built per request.
    """

    def __init__(
        self,
        booking_service: "BookingService",
        analytics_tools: "AnalyticsTools",
    ) -> None:
        self._booking_service = booking_service
        self._admin_registry = build_admin_registry(analytics_tools)

    def for_client(self, client_id: str) -> ToolRegistry:
        return build_client_registry(self._booking_service, client_id)

    def for_admin(self) -> ToolRegistry:
        return self._admin_registry
