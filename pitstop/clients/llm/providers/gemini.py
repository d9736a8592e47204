"""Google Gemini provider: text-only fallback backend + registry builder."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from google import genai
from google.genai import types as genai_types

from pitstop.clients.llm.base import BaseLLMClient

logger = logging.getLogger(__name__)


class GeminiLLMClient(BaseLLMClient):
    """Gemini client used when the primary backend fails.

    Receives no tool declarations; the caller folds the system prompt into the
    prompt text.
    """

    def __init__(
        self,
        model: str = "gemini-2.5-flash",
        *,
        api_key: Optional[str] = None,
        temperature: float = 0.7,
    ) -> None:
        self._model = model
        self._temperature = temperature
        resolved_key = api_key or os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")
        self._client = genai.Client(api_key=resolved_key)

    @property
    def provider(self) -> str:
        return "gemini"

    @property
    def model(self) -> str:
        return self._model

    async def complete(self, prompt: str, *, system_prompt: Optional[str] = None) -> str:
        cfg_kwargs: Dict[str, Any] = {"temperature": self._temperature}
        if system_prompt:
            cfg_kwargs["system_instruction"] = system_prompt
        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=prompt,
            config=genai_types.GenerateContentConfig(**cfg_kwargs),
        )
        return response.text or ""

    async def test_connection(self) -> bool:
        try:
            await self.complete("Say OK")
            return True
        except Exception as exc:
            logger.warning("GeminiLLMClient: connection test failed: %s", exc)
            return False


def gemini_builder(config: Dict[str, Any]) -> GeminiLLMClient:
    return GeminiLLMClient(
        model=config.get("model", "gemini-2.5-flash"),
        api_key=config.get("api_key"),
        temperature=float(config.get("temperature", 0.7)),
    )
