"""Tests for the Wazzup (WhatsApp) and Telegram webhooks.

Covers:
- Payload parsing (aliases, direction and voice detection)
- Wazzup router: inline processing and outbound send
- Telegram router: acknowledgement, admin detection, background answer
"""
from __future__ import annotations

import asyncio
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
from fastapi import FastAPI
from fastapi.testclient import TestClient

from pitstop.api.routers import webhooks
from pitstop.api.schemas.webhooks import TelegramUpdate, WazzupWebhook
from pitstop.orchestrator.types import Role


# ─── helpers ─────────────────────────────────────────────────────────────────

def _run(coro):
    return asyncio.run(coro)


class KeepingWorker:
    """Keeps submitted coroutines so a test can run them explicitly."""

    def __init__(self) -> None:
        self.jobs = []

    def submit(self, coro, *, name=None):
        self.jobs.append((name, coro))
        return None

    def run_all(self) -> None:
        for _, coro in self.jobs:
            _run(coro)


def _orchestrator(answer: str = "Ответ") -> MagicMock:
    orch = MagicMock()
    orch.process = AsyncMock(return_value=SimpleNamespace(answer=answer))
    return orch


def _app(*, orchestrator=None, worker=None, telegram=None, wazzup=None, config=None) -> FastAPI:
    app = FastAPI()
    app.state.limiter = webhooks.limiter
    app.include_router(webhooks.router)
    app.state.orchestrator = orchestrator if orchestrator is not None else _orchestrator()
    app.state.worker = worker if worker is not None else KeepingWorker()
    app.state.telegram = telegram
    app.state.wazzup = wazzup
    app.state.config = config
    return app


def _client(app: FastAPI) -> TestClient:
    return TestClient(app, raise_server_exceptions=False)


def _wazzup_payload(*messages, channel_id: str = "chan-1") -> dict:
    return {"channelId": channel_id, "messages": list(messages)}


def _telegram_update(text="привет", *, chat_id=42, user_id=42, voice=False) -> dict:
    message = {"message_id": 1, "chat": {"id": chat_id}, "from": {"id": user_id}}
    if text is not None:
        message["text"] = text
    if voice:
        message["voice"] = {"file_id": "AwACAg"}
    return {"update_id": 10, "message": message}


# ─── schemas ─────────────────────────────────────────────────────────────────

class TestWebhookSchemas(unittest.TestCase):
    def test_wazzup_aliases(self):
        payload = WazzupWebhook.model_validate(_wazzup_payload(
            {"chatId": "77011234567", "text": "hi", "direction": "inbound"},
            {"chatID": "77019876543", "text": "yo", "direction": "outbound"},
        ))
        self.assertEqual(payload.channel_id, "chan-1")
        self.assertEqual([m.chat_id for m in payload.messages], ["77011234567", "77019876543"])
        self.assertEqual([m.is_inbound for m in payload.messages], [True, False])

    def test_wazzup_voice_detection(self):
        payload = WazzupWebhook.model_validate(_wazzup_payload(
            {"chatId": "1", "type": "audio", "direction": "inbound"},
            {"chatId": "2", "audioUrl": "https://x/a.ogg", "direction": "inbound"},
            {"chatId": "3", "text": "text", "direction": "inbound"},
        ))
        self.assertEqual([m.is_voice for m in payload.messages], [True, True, False])

    def test_wazzup_null_fields_become_empty(self):
        payload = WazzupWebhook.model_validate({
            "channelId": None,
            "messages": [{"chatId": 77011234567, "text": None, "type": "image", "direction": "inbound"}],
        })
        self.assertEqual(payload.channel_id, "")
        self.assertEqual(payload.messages[0].text, "")
        self.assertEqual(payload.messages[0].chat_id, "77011234567")
        self.assertFalse(payload.messages[0].is_voice)

    def test_telegram_from_alias(self):
        update = TelegramUpdate.model_validate(_telegram_update(user_id=7))
        self.assertEqual(update.message.from_user.id, 7)
        self.assertEqual(update.message.chat.id, 42)


# ─── Wazzup router ───────────────────────────────────────────────────────────

class TestWazzupWebhook(unittest.TestCase):
    def test_inbound_message_processed_and_sent(self):
        orch = _orchestrator("Есть свободные места")
        wazzup = MagicMock()
        wazzup.send_message = AsyncMock(return_value=True)
        client = _client(_app(orchestrator=orch, wazzup=wazzup))

        resp = client.post("/webhooks/wazzup", json=_wazzup_payload(
            {"chatId": "77011234567", "text": "есть места?", "direction": "inbound"},
        ))

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok", "processed": 1})
        orch.process.assert_awaited_once_with(
            "WA-77011234567", "есть места?", role=Role.CLIENT, lead_source="whatsapp",
        )
        wazzup.send_message.assert_awaited_once_with("chan-1", "77011234567", "Есть свободные места")

    def test_outbound_and_empty_messages_skipped(self):
        orch = _orchestrator()
        client = _client(_app(orchestrator=orch))

        resp = client.post("/webhooks/wazzup", json=_wazzup_payload(
            {"chatId": "1", "text": "our own reply", "direction": "outbound"},
            {"chatId": "2", "text": "   ", "direction": "inbound"},
            {"text": "no chat id", "direction": "inbound"},
        ))

        self.assertEqual(resp.json()["processed"], 0)
        orch.process.assert_not_awaited()

    def test_media_message_with_null_text_does_not_drop_batch(self):
        orch = _orchestrator()
        client = _client(_app(orchestrator=orch))

        resp = client.post("/webhooks/wazzup", json=_wazzup_payload(
            {"chatId": "1", "text": None, "type": "image", "direction": "inbound"},
            {"chatId": "2", "text": "привет", "direction": "inbound"},
        ))

        self.assertEqual(resp.json(), {"status": "ok", "processed": 1})
        orch.process.assert_awaited_once_with("WA-2", "привет", role=Role.CLIENT, lead_source="whatsapp")

    def test_voice_gets_fixed_reply(self):
        orch = _orchestrator()
        wazzup = MagicMock()
        wazzup.send_message = AsyncMock(return_value=True)
        client = _client(_app(orchestrator=orch, wazzup=wazzup))

        client.post("/webhooks/wazzup", json=_wazzup_payload(
            {"chatId": "5", "type": "audio", "direction": "inbound"},
        ))

        orch.process.assert_not_awaited()
        wazzup.send_message.assert_awaited_once_with("chan-1", "5", webhooks.VOICE_REPLY)

    def test_empty_answer_replaced_with_server_error(self):
        wazzup = MagicMock()
        wazzup.send_message = AsyncMock(return_value=True)
        client = _client(_app(orchestrator=_orchestrator(""), wazzup=wazzup))

        client.post("/webhooks/wazzup", json=_wazzup_payload(
            {"chatId": "5", "text": "hi", "direction": "inbound"},
        ))

        self.assertEqual(wazzup.send_message.await_args.args[2], webhooks.SERVER_ERROR_REPLY)

    def test_send_failure_still_acknowledged(self):
        wazzup = MagicMock()
        wazzup.send_message = AsyncMock(side_effect=httpx.ConnectError("refused"))
        client = _client(_app(wazzup=wazzup))

        resp = client.post("/webhooks/wazzup", json=_wazzup_payload(
            {"chatId": "5", "text": "hi", "direction": "inbound"},
        ))

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["processed"], 1)

    def test_without_wazzup_client_reply_is_dropped(self):
        orch = _orchestrator()
        client = _client(_app(orchestrator=orch))

        resp = client.post("/webhooks/wazzup", json=_wazzup_payload(
            {"chatId": "5", "text": "hi", "direction": "inbound"},
        ))

        self.assertEqual(resp.status_code, 200)
        orch.process.assert_awaited_once()

    def test_malformed_payload_ignored(self):
        client = _client(_app())
        resp = client.post("/webhooks/wazzup", json={"messages": "not a list"})
        self.assertEqual(resp.json()["status"], "ignored")

    def test_non_json_body_is_empty_batch(self):
        client = _client(_app())
        resp = client.post("/webhooks/wazzup", content=b"not json", headers={"content-type": "text/plain"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["processed"], 0)

    def test_missing_orchestrator_is_503(self):
        app = _app()
        app.state.orchestrator = None
        resp = _client(app).post("/webhooks/wazzup", json=_wazzup_payload())
        self.assertEqual(resp.status_code, 503)


# ─── Telegram router ─────────────────────────────────────────────────────────

class TestTelegramWebhook(unittest.TestCase):
    def _telegram(self) -> MagicMock:
        telegram = MagicMock()
        telegram.send_message = AsyncMock(return_value=True)
        telegram.send_typing = AsyncMock(return_value=True)
        return telegram

    def test_not_configured_is_503(self):
        resp = _client(_app()).post("/webhooks/telegram", json=_telegram_update())
        self.assertEqual(resp.status_code, 503)

    def test_update_acknowledged_and_answered_in_background(self):
        orch = _orchestrator("Здравствуйте!")
        worker = KeepingWorker()
        telegram = self._telegram()
        client = _client(_app(orchestrator=orch, worker=worker, telegram=telegram))

        resp = client.post("/webhooks/telegram", json=_telegram_update("привет", chat_id=42))

        self.assertEqual(resp.json(), {"status": "ok", "processed": 1})
        self.assertEqual([name for name, _ in worker.jobs], ["telegram:42"])
        orch.process.assert_not_awaited()

        worker.run_all()

        telegram.send_typing.assert_awaited_once_with(42)
        orch.process.assert_awaited_once_with("TG-42", "привет", role=Role.CLIENT, lead_source="telegram")
        telegram.send_message.assert_awaited_once_with(42, "Здравствуйте!")

    def test_admin_detected_by_user_id(self):
        orch = _orchestrator()
        worker = KeepingWorker()
        client = _client(_app(
            orchestrator=orch, worker=worker, telegram=self._telegram(),
            config=SimpleNamespace(admin_telegram_id=1001),
        ))

        client.post("/webhooks/telegram", json=_telegram_update("продажи", chat_id=5, user_id=1001))
        client.post("/webhooks/telegram", json=_telegram_update("бронь", chat_id=6, user_id=2002))
        worker.run_all()

        roles = [c.kwargs["role"] for c in orch.process.await_args_list]
        self.assertEqual(roles, [Role.ADMIN, Role.CLIENT])

    def test_voice_gets_fixed_reply(self):
        orch = _orchestrator()
        worker = KeepingWorker()
        telegram = self._telegram()
        client = _client(_app(orchestrator=orch, worker=worker, telegram=telegram))

        client.post("/webhooks/telegram", json=_telegram_update(None, voice=True))
        worker.run_all()

        orch.process.assert_not_awaited()
        telegram.send_message.assert_awaited_once_with(42, webhooks.VOICE_REPLY)

    def test_updates_without_message_or_text_ignored(self):
        worker = KeepingWorker()
        client = _client(_app(worker=worker, telegram=self._telegram()))

        for body in ({"update_id": 1}, _telegram_update("   "), _telegram_update(None)):
            with self.subTest(body=body):
                resp = client.post("/webhooks/telegram", json=body)
                self.assertEqual(resp.json()["status"], "ignored")
        self.assertEqual(worker.jobs, [])

    def test_typing_failure_does_not_block_answer(self):
        orch = _orchestrator("ok")
        telegram = self._telegram()
        telegram.send_typing = AsyncMock(side_effect=httpx.ReadTimeout("slow"))

        _run(webhooks._answer_telegram(orch, telegram, 42, "hi", False))

        telegram.send_message.assert_awaited_once_with(42, "ok")


if __name__ == "__main__":
    unittest.main()
