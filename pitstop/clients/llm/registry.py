"""
LLM provider registry: map provider name -> builder(config dict) -> client.

Startup builds the primary and fallback clients once through this registry;
the clients are then shared by every request.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from pitstop.clients.llm.base import BaseLLMClient
from pitstop.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from pitstop.clients.llm.config import LLMConfig

Builder = Callable[[Dict[str, Any]], BaseLLMClient]


class LLMRegistry:
    """Maps provider id to a builder that takes a config dict."""

    def __init__(self) -> None:
        self._builders: Dict[str, Builder] = {}

    def register(self, provider: str, builder: Builder) -> None:
        self._builders[provider] = builder

    def get(self, provider: str) -> Optional[Builder]:
        return self._builders.get(provider)

    @property
    def providers(self) -> List[str]:
        return sorted(self._builders)

    def build(self, provider: str, config: Dict[str, Any]) -> BaseLLMClient:
        """Build a client. Raises ConfigurationError for an unknown provider."""
        builder = self._builders.get(provider)
        if builder is None:
            raise ConfigurationError(
                f"Unknown LLM provider: {provider!r}",
                details={"registered": self.providers},
            )
        return builder(config)

    def build_from_config(self, config: Optional["LLMConfig"]) -> Optional[BaseLLMClient]:
        """Build from an LLMConfig; None when the config is absent or keyless."""
        if config is None or not config.is_configured:
            return None
        return self.build(config.provider or "", config.to_dict())


default_registry = LLMRegistry()

from pitstop.clients.llm.providers.gemini import gemini_builder  # noqa: E402
from pitstop.clients.llm.providers.openai import openai_builder  # noqa: E402

default_registry.register("openai", openai_builder)
default_registry.register("gemini", gemini_builder)
