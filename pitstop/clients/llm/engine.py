"""HybridLLMEngine: primary backend with tools, text-only fallback on any failure.

Contract:
    generate(system, user, tools) -> GenerationResult(text, used_primary, tool_calls)

  1. Primary configured -> call it with the translated toolset.
  2. Primary error -> classify (quota / rate_limit / unavailable / other),
     log, and fall through. The class never blocks the fallback.
  3. Primary success -> returned verbatim; fallback is not touched.
  4. Fallback gets ``system + "\\n" + user`` as one text prompt.
  5. Fallback missing, failing or blank -> BackendUnavailableError.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, List, Optional, TypeVar

from pitstop.clients.llm.base import (
    LLMMessage,
    ModelTurn,
    ToolCall,
    ToolSpec,
    tool_result_message,
)
from pitstop.core.exceptions import BackendUnavailableError

if TYPE_CHECKING:
    from pitstop.clients.llm.base import BaseLLMClient, ToolCapableLLMClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNAVAILABLE_MARKERS = ("unavailable", "try again", "timeout", "timed out", "connection", "overloaded")


class PrimaryFailure(str, Enum):
    QUOTA = "quota"
    RATE_LIMIT = "rate_limit"
    UNAVAILABLE = "unavailable"
    OTHER = "other"


def classify_primary_error(exc: BaseException) -> PrimaryFailure:
    """Bucket a primary-backend exception by status code and message text."""
    if isinstance(exc, asyncio.TimeoutError):
        return PrimaryFailure.UNAVAILABLE
    status = getattr(exc, "status_code", None)
    text = f"{type(exc).__name__} {exc}".lower()
    if "quota" in text:
        return PrimaryFailure.QUOTA
    if status == 429 or "429" in text or "rate limit" in text or "ratelimit" in text:
        return PrimaryFailure.RATE_LIMIT
    if status in (500, 502, 503, 504) or any(m in text for m in _UNAVAILABLE_MARKERS):
        return PrimaryFailure.UNAVAILABLE
    return PrimaryFailure.OTHER


@dataclass
class GenerationResult:
    text: str
    used_primary: bool
    tool_calls: List[ToolCall] = field(default_factory=list)

    @property
    def has_tool_directive(self) -> bool:
        return bool(self.tool_calls)


class ToolSession:
    """Multi-turn exchange with the primary backend for the tool loop.

    Holds the growing message list; each ``send()`` appends the model's turn,
    each ``add_tool_result()`` appends the matching tool-response turn.
    """

    def __init__(
        self,
        client: "ToolCapableLLMClient",
        messages: List[LLMMessage],
        tools: Optional[List[ToolSpec]],
        *,
        timeout_seconds: Optional[float] = None,
    ) -> None:
        self._client = client
        self._messages = messages
        self._tools = tools
        self._timeout = timeout_seconds
        self.turns = 0

    @property
    def messages(self) -> List[LLMMessage]:
        return list(self._messages)

    async def send(self) -> ModelTurn:
        turn = await _with_timeout(
            self._client.chat_with_tools(self._messages, self._tools), self._timeout,
        )
        self.turns += 1
        self._messages.append(turn.as_message())
        return turn

    def add_tool_result(self, call: ToolCall, observation: str) -> None:
        self._messages.append(tool_result_message(call, observation))


async def _with_timeout(coro: Awaitable[T], timeout: Optional[float]) -> T:
    if timeout is not None and timeout > 0:
        return await asyncio.wait_for(coro, timeout=timeout)
    return await coro


class HybridLLMEngine:
    """Primary/fallback adapter. Clients are built once and shared by all requests."""

    def __init__(
        self,
        primary: Optional["ToolCapableLLMClient"] = None,
        fallback: Optional["BaseLLMClient"] = None,
        *,
        timeout_seconds: Optional[float] = 60.0,
    ) -> None:
        self._primary = primary
        self._fallback = fallback
        self._timeout = timeout_seconds

    @property
    def primary_available(self) -> bool:
        return self._primary is not None

    def describe(self) -> dict[str, Any]:
        return {
            "primary": getattr(self._primary, "provider", None),
            "fallback": getattr(self._fallback, "provider", None),
            "timeout_seconds": self._timeout,
        }

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        tools: Optional[List[ToolSpec]] = None,
    ) -> GenerationResult:
        primary_error: Optional[BaseException] = None

        if self._primary is not None:
            messages: List[LLMMessage] = [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ]
            try:
                turn = await _with_timeout(
                    self._primary.chat_with_tools(messages, tools or None), self._timeout,
                )
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                primary_error = exc
                failure = classify_primary_error(exc)
                if failure is PrimaryFailure.OTHER:
                    logger.warning("HybridLLMEngine: primary unexpected error, falling back: %s", exc)
                else:
                    logger.warning(
                        "HybridLLMEngine: primary %s, falling back: %s", failure.value, exc,
                        extra={"backend": self._primary.provider},
                    )
            else:
                return GenerationResult(text=turn.text, used_primary=True, tool_calls=turn.tool_calls)

        if self._fallback is None:
            raise BackendUnavailableError(
                "Primary backend failed and no fallback backend is configured"
                if primary_error is not None
                else "No model backend configured",
                primary_error=primary_error,
            )

        try:
            text = await _with_timeout(
                self._fallback.complete(system_prompt + "\n" + user_prompt), self._timeout,
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("HybridLLMEngine: fallback failed too: %s", exc)
            raise BackendUnavailableError(
                "Neither primary nor fallback backend could answer",
                primary_error=primary_error,
                fallback_error=exc,
            ) from exc

        if not (text or "").strip():
            raise BackendUnavailableError(
                "Fallback backend returned an empty reply",
                primary_error=primary_error,
                details={"fallback": "empty reply"},
            )
        logger.info("HybridLLMEngine: answered by fallback (%s)", self._fallback.provider)
        return GenerationResult(text=text, used_primary=False)

    def open_tool_session(
        self,
        system_prompt: str,
        history: List[LLMMessage],
        user_prompt: str,
        tools: Optional[List[ToolSpec]] = None,
    ) -> ToolSession:
        """Start a primary-backend session seeded with system, history and user turns."""
        if self._primary is None:
            raise BackendUnavailableError("Tool loop requires the primary backend")
        messages: List[LLMMessage] = [{"role": "system", "content": system_prompt}]
        messages.extend(history)
        messages.append({"role": "user", "content": user_prompt})
        return ToolSession(self._primary, messages, tools, timeout_seconds=self._timeout)
