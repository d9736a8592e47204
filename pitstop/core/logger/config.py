"""
Logger configuration, built in code or from the environment.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

_TRUTHY = ("1", "true", "yes", "on")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in _TRUTHY


@dataclass(frozen=True)
class LoggerConfig:
    """
    Configuration for the pitstop logger.

    Console output is human-readable; the optional rotating file is JSON Lines
    so webhook traffic can be grepped by client_id or channel afterwards.
    """

    # DEBUG, INFO, WARNING, ERROR, CRITICAL
    level: str = "INFO"
    # Directory for the rotating file; None disables the file handler
    log_dir: Optional[str] = None
    # "pitstop" -> pitstop.log
    log_file_basename: str = "pitstop"
    max_bytes: int = 5 * 1024 * 1024
    backup_count: int = 5
    # Handlers are attached here; every module logger lives under it
    root_name: str = "pitstop"
    console: bool = True
    file_rotating: bool = True
    # Third-party loggers that are chatty at INFO (httpx logs every request)
    quiet_loggers: tuple = ("httpx", "httpcore", "openai", "google_genai")

    @classmethod
    def from_env(cls) -> "LoggerConfig":
        """Build config from LOG_* environment variables."""
        return cls(
            level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            log_dir=os.environ.get("LOG_DIR") or None,
            log_file_basename=os.environ.get("LOG_FILE_BASENAME", "pitstop"),
            max_bytes=int(os.environ.get("LOG_MAX_BYTES", str(5 * 1024 * 1024))),
            backup_count=int(os.environ.get("LOG_BACKUP_COUNT", "5")),
            root_name=os.environ.get("LOG_ROOT_NAME", "pitstop"),
            console=_env_bool("LOG_CONSOLE", True),
            file_rotating=_env_bool("LOG_FILE_ROTATING", True),
        )
