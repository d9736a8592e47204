"""OpenAI provider: primary backend with native tool calling + registry builder."""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from pitstop.clients.llm.base import LLMMessage, ModelTurn, ToolCall, ToolCapableLLMClient, ToolSpec

logger = logging.getLogger(__name__)

_SCALAR_TYPES = ("string", "integer", "number", "boolean")
EMPTY_OBJECT_SCHEMA: Dict[str, Any] = {"type": "object", "properties": {}}


def normalize_parameters(schema: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Coerce a canonical parameter schema into a valid JSON-schema object.

    Property names, descriptions, types and the required set are preserved.
    Anything that is not an object schema with a properties mapping becomes
    the empty-object schema; untyped properties default to string.
    """
    if not isinstance(schema, dict):
        return dict(EMPTY_OBJECT_SCHEMA)
    props = schema.get("properties")
    if not isinstance(props, dict) or not props:
        return {"type": "object", "properties": {}}

    out_props: Dict[str, Any] = {}
    for name, prop in props.items():
        prop = prop if isinstance(prop, dict) else {}
        ptype = prop.get("type")
        entry: Dict[str, Any] = {"type": ptype if ptype in _SCALAR_TYPES else "string"}
        if prop.get("description"):
            entry["description"] = str(prop["description"])
        if isinstance(prop.get("enum"), list):
            entry["enum"] = list(prop["enum"])
        out_props[str(name)] = entry

    result: Dict[str, Any] = {"type": "object", "properties": out_props}
    required = [r for r in (schema.get("required") or []) if r in out_props]
    if required:
        result["required"] = required
    return result


def to_openai_tools(specs: Optional[List[ToolSpec]]) -> List[Dict[str, Any]]:
    """Translate tool specs into the chat-completions ``tools`` parameter."""
    return [
        {
            "type": "function",
            "function": {
                "name": spec.name,
                "description": spec.description,
                "parameters": normalize_parameters(spec.parameters),
            },
        }
        for spec in specs or []
    ]


def _parse_tool_call(raw_call: Any) -> ToolCall:
    raw_args = raw_call.function.arguments or ""
    try:
        parsed = json.loads(raw_args) if raw_args.strip() else {}
    except json.JSONDecodeError:
        logger.warning(
            "OpenAILLMClient: malformed arguments for tool '%s': %r",
            raw_call.function.name, raw_args,
        )
        parsed = {}
    if not isinstance(parsed, dict):
        parsed = {}
    return ToolCall(
        id=raw_call.id,
        name=raw_call.function.name,
        arguments=parsed,
        raw_arguments=raw_args,
    )


class OpenAILLMClient(ToolCapableLLMClient):
    """OpenAI chat-completions client (gpt-4o-mini by default)."""

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        timeout: float = 60.0,
        max_retries: int = 2,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client = AsyncOpenAI(
            api_key=api_key or os.environ.get("OPENAI_API_KEY"),
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

    @property
    def provider(self) -> str:
        return "openai"

    @property
    def model(self) -> str:
        return self._model

    async def chat_with_tools(
        self,
        messages: List[LLMMessage],
        tools: Optional[List[ToolSpec]] = None,
    ) -> ModelTurn:
        kwargs: Dict[str, Any] = {
            "model": self._model,
            "messages": messages,
            "temperature": self._temperature,
        }
        if tools:
            kwargs["tools"] = to_openai_tools(tools)
            kwargs["tool_choice"] = "auto"
        if self._max_tokens is not None:
            kwargs["max_tokens"] = self._max_tokens

        response = await self._client.chat.completions.create(**kwargs)
        if not response.choices:
            raise RuntimeError("OpenAI returned no choices")

        msg = response.choices[0].message
        calls = [_parse_tool_call(tc) for tc in (msg.tool_calls or [])]
        return ModelTurn(text=msg.content or "", tool_calls=calls)

    async def test_connection(self) -> bool:
        try:
            await self._client.models.list()
            return True
        except Exception as exc:
            logger.warning("OpenAILLMClient: connection test failed: %s", exc)
            return False


def openai_builder(config: Dict[str, Any]) -> OpenAILLMClient:
    return OpenAILLMClient(
        model=config.get("model", "gpt-4o-mini"),
        api_key=config.get("api_key"),
        base_url=config.get("base_url"),
        temperature=float(config.get("temperature", 0.7)),
        max_tokens=config.get("max_tokens"),
        timeout=float(config.get("timeout", 60.0)),
        max_retries=int(config.get("max_retries", 2)),
    )
