"""
Built-in exception types. Add new ones here or via exception_factory().
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from pitstop.core.exceptions.base import ProjectError, exception_factory


class ConfigurationError(ProjectError):
    """Invalid or missing configuration."""

    default_code = "CONFIGURATION_ERROR"
    default_http_status = 500


class ValidationError(ProjectError):
    """Booking input out of range or unparsable (seats, hours, date/time, amount)."""

    default_code = "VALIDATION_ERROR"
    default_http_status = 400


class ExternalServiceError(ProjectError):
    """External service (model backend, messaging API, weather API) failed."""

    default_code = "EXTERNAL_SERVICE_ERROR"
    default_http_status = 502


class BackendUnavailableError(ExternalServiceError):
    """Neither the primary nor the fallback model backend produced text."""

    default_code = "BACKEND_UNAVAILABLE"
    default_http_status = 503

    def __init__(
        self,
        message: str,
        *,
        primary_error: Optional[BaseException] = None,
        fallback_error: Optional[BaseException] = None,
        **kwargs: Any,
    ) -> None:
        details: Dict[str, Any] = dict(kwargs.pop("details", None) or {})
        if primary_error is not None:
            details.setdefault("primary", f"{type(primary_error).__name__}: {primary_error}")
        if fallback_error is not None:
            details.setdefault("fallback", f"{type(fallback_error).__name__}: {fallback_error}")
        super().__init__(
            message,
            details=details,
            cause=kwargs.pop("cause", None) or fallback_error or primary_error,
            **kwargs,
        )
        self.primary_error = primary_error
        self.fallback_error = fallback_error


class PersistenceError(ProjectError):
    """A storage write or read failed."""

    default_code = "PERSISTENCE_ERROR"
    default_http_status = 500


ProtocolError = exception_factory(
    "ProtocolError",
    code="PROTOCOL_ERROR",
    http_status=422,
    doc="Malformed tool-call arguments coming back from a model backend.",
)
