"""Tests for the hybrid primary/fallback engine and the OpenAI tool translation."""
from __future__ import annotations

import asyncio
import unittest
from types import SimpleNamespace
from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

from pitstop.clients.llm.base import (
    BaseLLMClient,
    LLMMessage,
    ModelTurn,
    ToolCall,
    ToolCapableLLMClient,
    ToolSpec,
)
from pitstop.clients.llm.engine import (
    HybridLLMEngine,
    PrimaryFailure,
    classify_primary_error,
)
from pitstop.clients.llm.providers.openai import (
    EMPTY_OBJECT_SCHEMA,
    OpenAILLMClient,
    _parse_tool_call,
    normalize_parameters,
    to_openai_tools,
)
from pitstop.core.exceptions import BackendUnavailableError


def _run(coro):
    return asyncio.run(coro)


class ScriptedPrimary(ToolCapableLLMClient):
    """Returns queued turns (or raises queued exceptions) in order."""

    def __init__(self, *script) -> None:
        self._script = list(script)
        self.calls: List[List[LLMMessage]] = []
        self.tools_seen: List[Optional[List[ToolSpec]]] = []

    @property
    def provider(self) -> str:
        return "scripted"

    async def chat_with_tools(self, messages, tools=None) -> ModelTurn:
        self.calls.append(list(messages))
        self.tools_seen.append(tools)
        item = self._script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def test_connection(self) -> bool:
        return True


class StubFallback(BaseLLMClient):
    def __init__(self, reply: str = "fallback reply", error: Optional[BaseException] = None) -> None:
        self._reply = reply
        self._error = error
        self.prompts: List[str] = []

    @property
    def provider(self) -> str:
        return "stub"

    async def complete(self, prompt: str, *, system_prompt: Optional[str] = None) -> str:
        self.prompts.append(prompt)
        if self._error is not None:
            raise self._error
        return self._reply

    async def test_connection(self) -> bool:
        return True


_SPEC = ToolSpec(
    name="GetPrice",
    description="price",
    parameters={
        "type": "object",
        "properties": {"seats": {"type": "integer"}, "hours": {"type": "integer"}},
        "required": ["seats", "hours"],
    },
)


class TestHybridGenerate(unittest.TestCase):
    def test_primary_success_skips_fallback(self):
        primary = ScriptedPrimary(ModelTurn(text="hi"))
        fallback = StubFallback()
        engine = HybridLLMEngine(primary, fallback)

        result = _run(engine.generate("sys", "user", [_SPEC]))

        self.assertEqual(result.text, "hi")
        self.assertTrue(result.used_primary)
        self.assertEqual(fallback.prompts, [])
        self.assertEqual(primary.calls[0][0], {"role": "system", "content": "sys"})
        self.assertEqual(primary.tools_seen[0], [_SPEC])

    def test_primary_tool_directive_returned(self):
        call = ToolCall(id="c1", name="GetPrice", arguments={"seats": 2})
        engine = HybridLLMEngine(ScriptedPrimary(ModelTurn(tool_calls=[call])), StubFallback())

        result = _run(engine.generate("sys", "user", [_SPEC]))

        self.assertTrue(result.has_tool_directive)
        self.assertEqual(result.tool_calls[0].name, "GetPrice")

    def test_primary_failure_uses_fallback_with_concatenated_prompt(self):
        fallback = StubFallback("from fallback")
        engine = HybridLLMEngine(ScriptedPrimary(RuntimeError("boom")), fallback)

        result = _run(engine.generate("SYSTEM", "USER", [_SPEC]))

        self.assertEqual(result.text, "from fallback")
        self.assertFalse(result.used_primary)
        self.assertEqual(fallback.prompts, ["SYSTEM\nUSER"])

    def test_no_primary_uses_fallback(self):
        engine = HybridLLMEngine(None, StubFallback("ok"))
        result = _run(engine.generate("s", "u"))
        self.assertFalse(result.used_primary)
        self.assertFalse(engine.primary_available)

    def test_both_fail_raises_backend_error(self):
        engine = HybridLLMEngine(
            ScriptedPrimary(RuntimeError("primary down")),
            StubFallback(error=RuntimeError("fallback down")),
        )
        with self.assertRaises(BackendUnavailableError):
            _run(engine.generate("s", "u"))

    def test_primary_fails_without_fallback(self):
        engine = HybridLLMEngine(ScriptedPrimary(RuntimeError("down")), None)
        with self.assertRaises(BackendUnavailableError):
            _run(engine.generate("s", "u"))

    def test_blank_fallback_reply_is_failure(self):
        engine = HybridLLMEngine(None, StubFallback("   "))
        with self.assertRaises(BackendUnavailableError):
            _run(engine.generate("s", "u"))

    def test_no_backends_at_all(self):
        with self.assertRaises(BackendUnavailableError):
            _run(HybridLLMEngine(None, None).generate("s", "u"))

    def test_primary_timeout_falls_back(self):
        class SlowPrimary(ScriptedPrimary):
            async def chat_with_tools(self, messages, tools=None):
                await asyncio.sleep(5)

        engine = HybridLLMEngine(SlowPrimary(), StubFallback("late"), timeout_seconds=0.01)
        result = _run(engine.generate("s", "u"))
        self.assertFalse(result.used_primary)


class TestClassifyPrimaryError(unittest.TestCase):
    def test_buckets(self):
        self.assertEqual(classify_primary_error(Exception("insufficient_quota")), PrimaryFailure.QUOTA)
        self.assertEqual(classify_primary_error(Exception("429 Too Many Requests")), PrimaryFailure.RATE_LIMIT)
        self.assertEqual(classify_primary_error(asyncio.TimeoutError()), PrimaryFailure.UNAVAILABLE)
        self.assertEqual(classify_primary_error(Exception("service unavailable")), PrimaryFailure.UNAVAILABLE)
        self.assertEqual(classify_primary_error(ValueError("odd")), PrimaryFailure.OTHER)

    def test_status_code_attribute(self):
        exc = Exception("server error")
        exc.status_code = 503
        self.assertEqual(classify_primary_error(exc), PrimaryFailure.UNAVAILABLE)


class TestToolSession(unittest.TestCase):
    def test_session_seeds_history_and_grows(self):
        call = ToolCall(id="c1", name="GetPrice", arguments={"seats": 2, "hours": 2})
        primary = ScriptedPrimary(ModelTurn(tool_calls=[call]), ModelTurn(text="8000"))
        engine = HybridLLMEngine(primary, None)
        history: List[LLMMessage] = [{"role": "user", "content": "earlier"}]

        session = engine.open_tool_session("sys", history, "now", [_SPEC])
        first = _run(session.send())
        session.add_tool_result(first.first_tool_call(), "Price: 8000")
        second = _run(session.send())

        self.assertEqual(second.text, "8000")
        self.assertEqual(session.turns, 2)
        roles = [m["role"] for m in session.messages]
        self.assertEqual(roles, ["system", "user", "user", "assistant", "tool", "assistant"])
        tool_msg = session.messages[4]
        self.assertEqual(tool_msg["tool_call_id"], "c1")
        self.assertEqual(session.messages[3]["tool_calls"][0]["function"]["name"], "GetPrice")

    def test_session_requires_primary(self):
        engine = HybridLLMEngine(None, StubFallback())
        with self.assertRaises(BackendUnavailableError):
            engine.open_tool_session("sys", [], "hi")


class TestOpenAITranslation(unittest.TestCase):
    def test_preserves_name_description_types_and_required(self):
        tools = to_openai_tools([_SPEC])
        fn = tools[0]["function"]
        self.assertEqual(tools[0]["type"], "function")
        self.assertEqual(fn["name"], "GetPrice")
        self.assertEqual(fn["description"], "price")
        self.assertEqual(fn["parameters"]["properties"]["seats"], {"type": "integer"})
        self.assertEqual(fn["parameters"]["required"], ["seats", "hours"])

    def test_empty_or_invalid_schema_degrades(self):
        for schema in (None, {}, {"type": "object"}, "nonsense", {"properties": []}):
            with self.subTest(schema=schema):
                self.assertEqual(normalize_parameters(schema), EMPTY_OBJECT_SCHEMA)

    def test_unknown_types_and_required_filtered(self):
        out = normalize_parameters({
            "properties": {"a": {"type": "weird"}, "b": {}},
            "required": ["a", "missing"],
        })
        self.assertEqual(out["properties"]["a"]["type"], "string")
        self.assertEqual(out["properties"]["b"]["type"], "string")
        self.assertEqual(out["required"], ["a"])

    def test_parse_tool_call_malformed_arguments(self):
        raw = SimpleNamespace(id="c9", function=SimpleNamespace(name="GetPrice", arguments="{not json"))
        call = _parse_tool_call(raw)
        self.assertEqual(call.arguments, {})
        self.assertEqual(call.name, "GetPrice")

    def test_chat_with_tools_parses_response(self):
        client = OpenAILLMClient(api_key="sk-test")
        raw_call = SimpleNamespace(
            id="c1", function=SimpleNamespace(name="GetPrice", arguments='{"seats": 2, "hours": 2}'),
        )
        response = SimpleNamespace(choices=[
            SimpleNamespace(message=SimpleNamespace(content=None, tool_calls=[raw_call])),
        ])
        client._client = MagicMock()
        client._client.chat.completions.create = AsyncMock(return_value=response)

        turn = _run(client.chat_with_tools([{"role": "user", "content": "price?"}], [_SPEC]))

        self.assertEqual(turn.text, "")
        self.assertEqual(turn.tool_calls[0].arguments, {"seats": 2, "hours": 2})
        kwargs = client._client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["tool_choice"], "auto")
        self.assertEqual(kwargs["tools"][0]["function"]["name"], "GetPrice")

    def test_chat_without_choices_raises(self):
        client = OpenAILLMClient(api_key="sk-test")
        client._client = MagicMock()
        client._client.chat.completions.create = AsyncMock(return_value=SimpleNamespace(choices=[]))
        with self.assertRaises(RuntimeError):
            _run(client.chat_with_tools([{"role": "user", "content": "x"}]))


if __name__ == "__main__":
    unittest.main()
