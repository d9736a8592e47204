"""
Logger setup: attach console and rotating JSON file handlers from config.
"""
from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from pitstop.core.logger.config import LoggerConfig
from pitstop.core.logger.formatters import JsonFormatter, PlainConsoleFormatter

_active_config: Optional[LoggerConfig] = None


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def configure(config: Optional[LoggerConfig] = None) -> LoggerConfig:
    """
    Configure the ``pitstop`` logger tree. Uses LoggerConfig.from_env() when
    no config is given. Safe to call again (handlers are replaced, not stacked).
    """
    global _active_config
    config = config or LoggerConfig.from_env()
    _active_config = config

    root = logging.getLogger(config.root_name or "pitstop")
    root.setLevel(_level(config.level))
    root.handlers.clear()

    if config.console:
        console = logging.StreamHandler()
        console.setFormatter(PlainConsoleFormatter())
        root.addHandler(console)

    if config.file_rotating and config.log_dir:
        try:
            os.makedirs(config.log_dir, exist_ok=True)
        except OSError:
            root.warning("Could not create log dir %s, file logging disabled", config.log_dir)
        else:
            file_handler = RotatingFileHandler(
                os.path.join(config.log_dir, f"{config.log_file_basename}.log"),
                maxBytes=config.max_bytes,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
            file_handler.setFormatter(JsonFormatter())
            root.addHandler(file_handler)

    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.propagate = False
    return config


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger, configuring the tree from env on first use.
    Call with ``__name__`` from pitstop modules so records reach the handlers.
    """
    if _active_config is None:
        configure()
    return logging.getLogger(name)
