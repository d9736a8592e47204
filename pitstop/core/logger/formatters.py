"""
Formatters: JSON Lines for the rotating file, plain text for the console.
"""
from __future__ import annotations

import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Optional, Tuple

# Attributes passed through ``extra=`` that are lifted into the JSON record.
CONTEXT_FIELDS: Tuple[str, ...] = (
    "client_id",
    "channel",
    "role",
    "state",
    "tool",
    "backend",
    "task",
)


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line.

    Known request-context attributes (client_id, channel, tool, ...) are
    copied to a "context" object when a call site passes them via ``extra=``.
    """

    def __init__(self, *, context_fields: Tuple[str, ...] = CONTEXT_FIELDS) -> None:
        super().__init__()
        self.context_fields = context_fields

    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "lineno": record.lineno,
        }
        context = {
            name: getattr(record, name)
            for name in self.context_fields
            if getattr(record, name, None) is not None
        }
        if context:
            out["context"] = context
        if record.exc_info:
            out["exception"] = "".join(traceback.format_exception(*record.exc_info)).strip()
        return json.dumps(out, default=str, ensure_ascii=False)


class PlainConsoleFormatter(logging.Formatter):
    """Human-readable format for console."""

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None) -> None:
        super().__init__(
            fmt=fmt or "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt=datefmt or "%Y-%m-%d %H:%M:%S",
        )
