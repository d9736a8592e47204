"""
Project exception system.

Usage:
    from pitstop.core.exceptions import ProjectError, ValidationError, exception_factory

    # Built-in types
    raise ValidationError("seats must be between 1 and 6", details={"seats": 9})

    # Add new type on demand
    TranscriptionError = exception_factory("TranscriptionError", code="TRANSCRIPTION", http_status=422)
    raise TranscriptionError("voice note could not be decoded", cause=original_error)
"""
from pitstop.core.exceptions.base import ProjectError, exception_factory
from pitstop.core.exceptions.errors import (
    BackendUnavailableError,
    ConfigurationError,
    ExternalServiceError,
    PersistenceError,
    ProtocolError,
    ValidationError,
)

__all__ = [
    "ProjectError",
    "exception_factory",
    "ConfigurationError",
    "ValidationError",
    "ExternalServiceError",
    "BackendUnavailableError",
    "PersistenceError",
    "ProtocolError",
]
