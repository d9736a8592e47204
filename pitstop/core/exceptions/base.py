"""
Base exception types for pitstop.

Every failure that crosses a layer boundary is a ProjectError subclass so the
orchestrator can decide how to degrade (rejection text, soft apology, silent
drop) from the type alone. New types can be added with exception_factory().
"""
from __future__ import annotations

import traceback
from typing import Any, Optional, Type


class ProjectError(Exception):
    """
    Base exception for all pitstop errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable slug (defaults to the class default_code).
        http_status: Suggested HTTP status for the webhook layer.
        details: Extra context (offending field, backend name, ...).
        cause: Optional chained exception.
    """

    default_code: str = "ERROR"
    default_http_status: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        http_status: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.http_status = http_status or self.default_http_status
        self.details: dict[str, Any] = dict(details or {})
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def __str__(self) -> str:
        return self.message

    def to_dict(self, *, with_traceback: bool = False) -> dict[str, Any]:
        """Serialize for structured logs or an error response body."""
        out: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            out["details"] = self.details
        if self.cause is not None:
            out["cause"] = f"{type(self.cause).__name__}: {self.cause}"
            if with_traceback:
                out["cause_traceback"] = traceback.format_exception(
                    type(self.cause), self.cause, self.cause.__traceback__
                )
        return out


def exception_factory(
    name: str,
    *,
    code: Optional[str] = None,
    http_status: int = 500,
    base: Type[ProjectError] = ProjectError,
    doc: Optional[str] = None,
) -> Type[ProjectError]:
    """
    Create a new exception class on demand.

    Example:
        QuotaError = exception_factory("QuotaError", code="QUOTA", http_status=429)
        raise QuotaError("monthly quota exhausted", details={"backend": "openai"})
    """
    attrs: dict[str, Any] = {
        "default_code": code or name.upper(),
        "default_http_status": http_status,
    }
    if doc:
        attrs["__doc__"] = doc
    return type(name, (base,), attrs)
