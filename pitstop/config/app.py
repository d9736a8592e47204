"""
pitstop.config.app – application settings (model backends, channels, weather).

Env vars:
    OPENAI_API_KEY, OPENAI_MODEL, OPENAI_BASE_URL   primary backend
    GEMINI_API_KEY / GOOGLE_API_KEY, GEMINI_MODEL   fallback backend
    LLM_TEMPERATURE, LLM_TIMEOUT_SECONDS, MAX_TOOL_STEPS
    TELEGRAM_BOT_TOKEN, WAZZUP_API_KEY
    ADMIN_TELEGRAM_ID, ADMIN_NOTIFY_CHAT_ID
    OPENWEATHER_API_KEY, WEATHER_LAT, WEATHER_LON
    PAYMENT_BASE_URL

WEBHOOK_RATE_LIMIT is read by the webhook router at import time.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from pitstop.clients.llm.config import LLMConfig, is_real_key
from pitstop.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_PRIMARY_MODEL = "gpt-4o-mini"
DEFAULT_FALLBACK_MODEL = "gemini-2.5-flash"
DEFAULT_PAYMENT_BASE_URL = "https://pay.example.com/"

# Astana
DEFAULT_LAT = 51.1694
DEFAULT_LON = 71.4491


def _secret(env: Mapping[str, str], *names: str) -> Optional[str]:
    for name in names:
        value = (env.get(name) or "").strip()
        if is_real_key(value):
            return value
    return None


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", cause=exc) from exc


def _int(env: Mapping[str, str], name: str, default: Optional[int]) -> Optional[int]:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}", cause=exc) from exc


@dataclass(frozen=True)
class AppConfig:
    """Process-wide settings, read once at startup."""

    primary_llm: Optional[LLMConfig]
    fallback_llm: Optional[LLMConfig]

    telegram_bot_token: Optional[str] = None
    wazzup_api_key: Optional[str] = None
    openweather_api_key: Optional[str] = None
    weather_lat: float = DEFAULT_LAT
    weather_lon: float = DEFAULT_LON

    admin_telegram_id: Optional[int] = None
    """Telegram user id whose messages are handled with the admin profile."""

    admin_notify_chat_id: Optional[int] = None
    """Chat that receives failure alerts; defaults to the admin's own chat."""

    payment_base_url: str = DEFAULT_PAYMENT_BASE_URL
    llm_timeout_seconds: float = 60.0
    max_tool_steps: int = 3

    def __post_init__(self) -> None:
        if self.max_tool_steps < 1:
            raise ConfigurationError("MAX_TOOL_STEPS must be >= 1")
        if self.llm_timeout_seconds <= 0:
            raise ConfigurationError("LLM_TIMEOUT_SECONDS must be > 0")

    @property
    def notify_chat_id(self) -> Optional[int]:
        return self.admin_notify_chat_id or self.admin_telegram_id

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Build config from environment variables.

        Raises ConfigurationError when no model backend has a usable key.
        Missing channel or weather credentials only disable that integration.
        """
        env = os.environ if env is None else env
        temperature = _float(env, "LLM_TEMPERATURE", 0.7)
        timeout = _float(env, "LLM_TIMEOUT_SECONDS", 60.0)

        primary: Optional[LLMConfig] = None
        openai_key = _secret(env, "OPENAI_API_KEY")
        if openai_key:
            primary = LLMConfig(
                provider="openai",
                model=env.get("OPENAI_MODEL") or DEFAULT_PRIMARY_MODEL,
                api_key=openai_key,
                base_url=env.get("OPENAI_BASE_URL") or None,
                temperature=temperature,
                timeout=timeout,
            )

        fallback: Optional[LLMConfig] = None
        gemini_key = _secret(env, "GEMINI_API_KEY", "GOOGLE_API_KEY")
        if gemini_key:
            fallback = LLMConfig(
                provider="gemini",
                model=env.get("GEMINI_MODEL") or DEFAULT_FALLBACK_MODEL,
                api_key=gemini_key,
                temperature=temperature,
                timeout=timeout,
            )

        if primary is None and fallback is None:
            raise ConfigurationError(
                "No model backend configured: set OPENAI_API_KEY and/or GEMINI_API_KEY"
            )
        if primary is None:
            logger.warning("AppConfig: OPENAI_API_KEY not set, tool calling is disabled")

        config = cls(
            primary_llm=primary,
            fallback_llm=fallback,
            telegram_bot_token=_secret(env, "TELEGRAM_BOT_TOKEN"),
            wazzup_api_key=_secret(env, "WAZZUP_API_KEY"),
            openweather_api_key=_secret(env, "OPENWEATHER_API_KEY"),
            weather_lat=_float(env, "WEATHER_LAT", DEFAULT_LAT),
            weather_lon=_float(env, "WEATHER_LON", DEFAULT_LON),
            admin_telegram_id=_int(env, "ADMIN_TELEGRAM_ID", None),
            admin_notify_chat_id=_int(env, "ADMIN_NOTIFY_CHAT_ID", None),
            payment_base_url=env.get("PAYMENT_BASE_URL") or DEFAULT_PAYMENT_BASE_URL,
            llm_timeout_seconds=timeout,
            max_tool_steps=_int(env, "MAX_TOOL_STEPS", 3) or 3,
        )
        for name, value in (
            ("TELEGRAM_BOT_TOKEN", config.telegram_bot_token),
            ("WAZZUP_API_KEY", config.wazzup_api_key),
            ("OPENWEATHER_API_KEY", config.openweather_api_key),
        ):
            if value is None:
                logger.warning("AppConfig: %s not set, integration disabled", name)
        return config


def load_app_config() -> AppConfig:
    return AppConfig.from_env()
