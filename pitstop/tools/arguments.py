"""Typed argument models for every tool the model can call.

Models send arguments as loosely typed JSON: numbers as strings, floats where
integers are expected, missing keys. Each tool gets its own model and every
field is coerced leniently at the dispatcher boundary:

  str    non-strings -> ``str(value)``, None -> ``""``
  int    int, float (truncated) or numeric string, otherwise ``0``
  float  int, float or numeric string, otherwise ``0.0``

Malformed values never fail the turn; they become the field's safe default
and the domain service rejects them with a readable message if needed.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError

from pitstop.core.exceptions import ProtocolError

logger = logging.getLogger(__name__)

A = TypeVar("A", bound="ToolArguments")


# ── Coercion helpers ─────────────────────────────────────────────────────────

def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ProtocolError("boolean is not a number", details={"value": value})
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError as exc:
            raise ProtocolError("not a numeric string", details={"value": value}, cause=exc) from exc
    else:
        raise ProtocolError("unsupported numeric type", details={"type": type(value).__name__})
    if not math.isfinite(number):
        raise ProtocolError("number is not finite", details={"value": value})
    return number


def coerce_float(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        return _to_float(value)
    except ProtocolError as exc:
        logger.debug("coerce_float: %s -> 0.0 (%s)", value, exc)
        return 0.0


def coerce_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(_to_float(value))
    except ProtocolError as exc:
        logger.debug("coerce_int: %s -> 0 (%s)", value, exc)
        return 0


def coerce_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


_COERCERS = {int: coerce_int, float: coerce_float, str: coerce_str}


# ── Base model ───────────────────────────────────────────────────────────────

class ToolArguments(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    @field_validator("*", mode="before")
    @classmethod
    def _lenient(cls, value: Any, info: ValidationInfo) -> Any:
        annotation = cls.model_fields[info.field_name].annotation
        coercer = _COERCERS.get(annotation)
        return coercer(value) if coercer is not None else value

    @classmethod
    def from_raw(cls: Type[A], raw: Optional[Any]) -> A:
        """Build from the model's argument bag; anything unusable yields defaults."""
        if not isinstance(raw, dict):
            if raw not in (None, ""):
                logger.warning("%s: argument bag is %s, using defaults", cls.__name__, type(raw).__name__)
            return cls()
        try:
            return cls.model_validate(raw)
        except PydanticValidationError as exc:
            logger.warning("%s: arguments rejected, using defaults: %s", cls.__name__, exc)
            return cls()

    def as_log_dict(self) -> Dict[str, Any]:
        return self.model_dump()


# ── Client tools ─────────────────────────────────────────────────────────────

class CheckAvailabilityArgs(ToolArguments):
    date: str = ""
    time: str = ""
    seats: int = 0


class GetPriceArgs(ToolArguments):
    seats: int = 0
    hours: int = 0
    time: str = ""


class CreateBookingArgs(ToolArguments):
    date: str = ""
    time: str = ""
    seats: int = 0
    hours: int = 0


class GeneratePaymentLinkArgs(ToolArguments):
    amount: float = 0.0
    booking_id: str = Field(
        default="", validation_alias=AliasChoices("booking_id", "bookingID", "bookingId"),
    )


# ── Admin tools ──────────────────────────────────────────────────────────────

class SalesDetailArgs(ToolArguments):
    filters: str = ""


class WeatherArgs(ToolArguments):
    date: str = ""


class RevenueRangeArgs(ToolArguments):
    start_date: str = ""
    end_date: str = ""


class RecommendationArgs(ToolArguments):
    reason: str = ""


class NoArgs(ToolArguments):
    pass
