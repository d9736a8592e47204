"""
Project logger: console + rotating JSON file.

Usage:
    from pitstop.core.logger import configure, get_logger, LoggerConfig

    configure()  # once at startup, reads LOG_LEVEL, LOG_DIR, LOG_FILE_BASENAME, ...
    configure(LoggerConfig(level="DEBUG", log_dir="/var/log/pitstop"))

    logger = get_logger(__name__)
    logger.info("Booking saved", extra={"client_id": "WA-7701", "tool": "CreateBooking"})
"""
from pitstop.core.logger.config import LoggerConfig
from pitstop.core.logger.formatters import CONTEXT_FIELDS, JsonFormatter, PlainConsoleFormatter
from pitstop.core.logger.setup import configure, get_logger

__all__ = [
    "LoggerConfig",
    "CONTEXT_FIELDS",
    "JsonFormatter",
    "PlainConsoleFormatter",
    "configure",
    "get_logger",
]
