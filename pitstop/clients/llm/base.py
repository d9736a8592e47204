from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, TypedDict


class LLMMessage(TypedDict, total=False):
    """One chat turn in the primary backend's multi-turn protocol."""

    role: Literal["system", "user", "assistant", "tool"]
    content: Optional[str]
    tool_calls: List[Dict[str, Any]]
    tool_call_id: str


@dataclass(frozen=True)
class ToolSpec:
    """Backend-neutral tool declaration.

    ``parameters`` is an object schema: ``{"type": "object", "properties":
    {name: {"type": "string" | "integer" | "number", ...}}, "required": [...]}``.
    """

    name: str
    description: str
    parameters: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolCall:
    """A tool directive emitted by the model."""

    id: str
    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    raw_arguments: str = ""


@dataclass
class ModelTurn:
    """One model reply: plain text, tool directives, or both."""

    text: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def first_tool_call(self) -> Optional[ToolCall]:
        return self.tool_calls[0] if self.tool_calls else None

    def as_message(self) -> LLMMessage:
        """Assistant turn to append to the session history."""
        msg: LLMMessage = {"role": "assistant", "content": self.text or None}
        if self.tool_calls:
            msg["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.name,
                        "arguments": call.raw_arguments
                        or json.dumps(call.arguments, ensure_ascii=False),
                    },
                }
                for call in self.tool_calls
            ]
        return msg


def tool_result_message(call: ToolCall, observation: str) -> LLMMessage:
    """Tool-response turn answering *call*."""
    return {"role": "tool", "tool_call_id": call.id, "content": observation}


class BaseLLMClient(ABC):
    """Text-only backend."""

    @property
    @abstractmethod
    def provider(self) -> str:
        ...

    @abstractmethod
    async def complete(self, prompt: str, *, system_prompt: Optional[str] = None) -> str:
        ...

    @abstractmethod
    async def test_connection(self) -> bool:
        ...


class ToolCapableLLMClient(BaseLLMClient):
    """Backend with native tool declarations and tool-response turns."""

    @abstractmethod
    async def chat_with_tools(
        self,
        messages: List[LLMMessage],
        tools: Optional[List[ToolSpec]] = None,
    ) -> ModelTurn:
        ...

    async def complete(self, prompt: str, *, system_prompt: Optional[str] = None) -> str:
        messages: List[LLMMessage] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        turn = await self.chat_with_tools(messages)
        return turn.text
