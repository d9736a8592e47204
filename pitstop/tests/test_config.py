"""Tests for env configuration, the background worker and core helpers."""
from __future__ import annotations

import asyncio
import json
import logging
import unittest
from unittest.mock import MagicMock

from pitstop.api.main import build_orchestrator
from pitstop.config.app import DEFAULT_FALLBACK_MODEL, DEFAULT_PRIMARY_MODEL, AppConfig
from pitstop.config.postgres import PostgresConfig
from pitstop.core.background import BackgroundWorker
from pitstop.core.exceptions import ConfigurationError, ProtocolError, ValidationError
from pitstop.core.logger import JsonFormatter
from pitstop.orchestrator.types import OrchestratorConfig


def _run(coro):
    return asyncio.run(coro)


# ─── AppConfig ───────────────────────────────────────────────────────────────

class TestAppConfig(unittest.TestCase):
    def test_no_backend_is_configuration_error(self):
        with self.assertRaises(ConfigurationError):
            AppConfig.from_env({})

    def test_placeholder_keys_do_not_count(self):
        with self.assertRaises(ConfigurationError):
            AppConfig.from_env({"OPENAI_API_KEY": "your-key-here", "GEMINI_API_KEY": "changeme"})

    def test_both_backends(self):
        config = AppConfig.from_env({"OPENAI_API_KEY": "sk-real", "GEMINI_API_KEY": "g-real"})
        self.assertEqual(config.primary_llm.provider, "openai")
        self.assertEqual(config.primary_llm.model, DEFAULT_PRIMARY_MODEL)
        self.assertEqual(config.fallback_llm.provider, "gemini")
        self.assertEqual(config.fallback_llm.model, DEFAULT_FALLBACK_MODEL)
        self.assertIsNone(config.telegram_bot_token)
        self.assertEqual(config.max_tool_steps, 3)

    def test_fallback_only_and_google_key_alias(self):
        config = AppConfig.from_env({"GOOGLE_API_KEY": "g-real"})
        self.assertIsNone(config.primary_llm)
        self.assertEqual(config.fallback_llm.api_key, "g-real")

    def test_channels_and_admin(self):
        config = AppConfig.from_env({
            "OPENAI_API_KEY": "sk-real",
            "TELEGRAM_BOT_TOKEN": "123:abc",
            "WAZZUP_API_KEY": "wz",
            "ADMIN_TELEGRAM_ID": "1001",
            "MAX_TOOL_STEPS": "5",
        })
        self.assertEqual(config.telegram_bot_token, "123:abc")
        self.assertEqual(config.admin_telegram_id, 1001)
        self.assertEqual(config.notify_chat_id, 1001)
        self.assertEqual(config.max_tool_steps, 5)

    def test_separate_notify_chat(self):
        config = AppConfig.from_env({
            "OPENAI_API_KEY": "sk-real", "ADMIN_TELEGRAM_ID": "1", "ADMIN_NOTIFY_CHAT_ID": "-100",
        })
        self.assertEqual(config.notify_chat_id, -100)

    def test_malformed_numbers_rejected(self):
        for key, value in (("ADMIN_TELEGRAM_ID", "admin"), ("LLM_TIMEOUT_SECONDS", "soon")):
            with self.subTest(key=key):
                with self.assertRaises(ConfigurationError):
                    AppConfig.from_env({"OPENAI_API_KEY": "sk-real", key: value})

    def test_non_positive_limits_rejected(self):
        with self.assertRaises(ConfigurationError):
            AppConfig.from_env({"OPENAI_API_KEY": "sk-real", "LLM_TIMEOUT_SECONDS": "0"})


class TestPostgresConfig(unittest.TestCase):
    def test_defaults(self):
        config = PostgresConfig.from_env({})
        self.assertEqual(config.url, "postgresql://localhost/pitstop")
        self.assertEqual(config.pool_size, 10)
        self.assertFalse(config.echo)

    def test_env_and_overrides(self):
        config = PostgresConfig.from_env(
            {"DATABASE_URL": "postgres://db/club", "DB_ECHO": "yes", "DB_POOL_SIZE": "4"},
            pool_size=8,
        )
        self.assertEqual(config.url, "postgres://db/club")
        self.assertTrue(config.echo)
        self.assertEqual(config.pool_size, 8)

    def test_invalid_url(self):
        with self.assertRaises(ValueError):
            PostgresConfig.from_env({"DATABASE_URL": "mysql://db/club"})


class TestOrchestratorWiring(unittest.TestCase):
    def test_defaults(self):
        config = OrchestratorConfig()
        self.assertEqual(config.max_tool_steps, 3)
        self.assertEqual(config.history_window_hours, 24)
        self.assertEqual(config.profile_window_hours, 2)

    def test_timeout_and_step_limit_reach_the_engine(self):
        app_config = AppConfig.from_env({
            "OPENAI_API_KEY": "sk-real", "LLM_TIMEOUT_SECONDS": "7", "MAX_TOOL_STEPS": "4",
        })

        orchestrator = build_orchestrator(app_config, MagicMock(), BackgroundWorker("test"))

        self.assertEqual(orchestrator.config.llm_timeout_seconds, 7.0)
        self.assertEqual(orchestrator.config.max_tool_steps, 4)
        self.assertEqual(orchestrator.engine.describe(), {
            "primary": "openai", "fallback": None, "timeout_seconds": 7.0,
        })


# ─── BackgroundWorker ────────────────────────────────────────────────────────

class TestBackgroundWorker(unittest.TestCase):
    def test_submitted_work_runs_and_drains(self):
        done = []

        async def job(n):
            await asyncio.sleep(0)
            done.append(n)

        async def scenario():
            worker = BackgroundWorker("test")
            for n in range(3):
                worker.submit(job(n), name=f"job:{n}")
            self.assertEqual(worker.pending, 3)
            await worker.drain()
            return worker

        worker = _run(scenario())
        self.assertEqual(sorted(done), [0, 1, 2])
        self.assertEqual(worker.pending, 0)

    def test_failures_are_counted_not_raised(self):
        async def boom():
            raise RuntimeError("fire and forget")

        async def scenario():
            worker = BackgroundWorker("test")
            worker.submit(boom(), name="boom")
            await worker.drain()
            return worker

        with self.assertLogs("pitstop.core.background", level="ERROR"):
            worker = _run(scenario())
        self.assertEqual(worker.failed_count, 1)

    def test_closed_worker_drops_work(self):
        async def job():
            return None

        async def scenario():
            worker = BackgroundWorker("test")
            await worker.drain()
            return worker.submit(job(), name="late")

        self.assertIsNone(_run(scenario()))

    def test_drain_cancels_stragglers(self):
        async def forever():
            await asyncio.sleep(3600)

        async def scenario():
            worker = BackgroundWorker("test")
            task = worker.submit(forever(), name="forever")
            await worker.drain(timeout=0.01)
            return task

        self.assertTrue(_run(scenario()).cancelled())


# ─── exceptions and logging ──────────────────────────────────────────────────

class TestCoreHelpers(unittest.TestCase):
    def test_error_to_dict(self):
        err = ValidationError("seats must be between 1 and 6", details={"seats": 9})
        out = err.to_dict()
        self.assertEqual(out["code"], "VALIDATION_ERROR")
        self.assertEqual(out["details"], {"seats": 9})

    def test_factory_type(self):
        self.assertEqual(ProtocolError("bad").http_status, 422)

    def test_json_formatter_lifts_context(self):
        record = logging.LogRecord("pitstop.test", logging.INFO, __file__, 1, "saved %s", ("bk_1",), None)
        record.client_id = "WA-1"
        record.tool = "CreateBooking"
        out = json.loads(JsonFormatter().format(record))
        self.assertEqual(out["message"], "saved bk_1")
        self.assertEqual(out["context"], {"client_id": "WA-1", "tool": "CreateBooking"})


if __name__ == "__main__":
    unittest.main()
