"""Orchestrator: turns one inbound chat message into one reply.

    RECEIVED ──quick answer──────────────────────────► QUICK_ANSWERED ─► DONE
        │
        └─tool directive / empty text─► TOOL_LOOP (≤ max_tool_steps) ─► DONE

The quick path is a single engine call with the role's toolset attached. When
the model asks for a tool instead of answering, a primary-backend session is
opened with the recent history and the loop dispatches one tool per step,
feeding each observation back. Backend failures end in a canned reply plus an
admin alert; storage failures are logged and skipped. Nothing is raised to
the caller.
"""
from __future__ import annotations

import asyncio
import logging
import time
from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable, List, Optional

from pitstop.clients.llm.base import LLMMessage
from pitstop.core.exceptions import BackendUnavailableError, PersistenceError
from pitstop.infra.database.models.conversation import SENDER_BOT, SENDER_CLIENT
from pitstop.orchestrator.handlers.tool_handler import ToolDispatcher
from pitstop.orchestrator.profiles import Profile, admin_system_prompt, client_system_prompt
from pitstop.orchestrator.types import (
    OrchestratorConfig,
    OrchestratorMetrics,
    OrchestratorResult,
    ProcessingState,
    Role,
)
from pitstop.services.interfaces import DialogLog

if TYPE_CHECKING:
    from pitstop.clients.llm.base import ModelTurn
    from pitstop.clients.llm.engine import HybridLLMEngine, ToolSession
    from pitstop.core.background import BackgroundWorker
    from pitstop.services.interfaces import (
        AnalyticsRepository,
        ClientProfileView,
        ContextStore,
        Notifier,
    )
    from pitstop.tools.registry_builder import RegistryFactory

logger = logging.getLogger(__name__)

# Canned replies. Clients mostly write in Russian or Kazakh.
NO_TOOLS_REPLY = (
    "Сейчас не получается обработать запрос полностью. "
    "Напишите, пожалуйста: на когда нужна бронь, сколько мест и на сколько часов?"
)
OVERLOAD_REPLY = "Извините, сейчас высокая нагрузка. Попробуйте, пожалуйста, через минуту."
GLITCH_REPLY = (
    "Произошёл технический сбой. Давайте начнём с простого: "
    "на когда нужна бронь и на сколько мест?"
)
CONTINUE_REPLY = "Давайте продолжим. На какое время, сколько мест и на сколько часов?"

SKIPPED_CALL_OBSERVATION = "Skipped: one tool runs per step. Call it again if it is still needed."


class Orchestrator:
    """Central entry point for inbound messages.

    All collaborators are injected and shared between requests; the
    orchestrator keeps no per-conversation state of its own.
    """

    def __init__(
        self,
        engine: "HybridLLMEngine",
        store: "ContextStore",
        registries: "RegistryFactory",
        *,
        analytics: Optional["AnalyticsRepository"] = None,
        notifier: Optional["Notifier"] = None,
        worker: Optional["BackgroundWorker"] = None,
        config: Optional[OrchestratorConfig] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._engine = engine
        self._store = store
        self._registries = registries
        self._analytics = analytics
        self._notifier = notifier
        self._worker = worker
        self._config = config or OrchestratorConfig()
        self._today = today

    @property
    def config(self) -> OrchestratorConfig:
        return self._config

    @property
    def engine(self) -> "HybridLLMEngine":
        return self._engine

    async def process_message(self, client_id: str, text: str, is_admin: bool = False) -> str:
        """Reply text for one inbound message. Never raises except on cancellation."""
        role = Role.ADMIN if is_admin else Role.CLIENT
        result = await self.process(client_id, text, role=role)
        return result.answer

    async def process(
        self,
        client_id: str,
        text: str,
        *,
        role: Role = Role.CLIENT,
        lead_source: Optional[str] = None,
    ) -> OrchestratorResult:
        t_start = time.monotonic()
        metrics = OrchestratorMetrics()
        try:
            result = await self._process(client_id, text, role, lead_source, metrics)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception(
                "Orchestrator: unexpected failure for %s", client_id,
                extra={"client_id": client_id, "role": role.value},
            )
            self._notify(f"Unexpected orchestrator failure for {client_id}: {exc}")
            result = OrchestratorResult(
                client_id=client_id, role=role, answer=GLITCH_REPLY, degraded=True,
            )
        metrics.total_ms = (time.monotonic() - t_start) * 1000
        result.metrics = metrics
        logger.info(
            "Orchestrator: %s done state=%s primary=%s tools=%s %.0fms",
            client_id, result.state.value, result.used_primary, result.tools_called, metrics.total_ms,
            extra={"client_id": client_id, "role": role.value, "state": result.state.value},
        )
        return result

    async def _process(
        self,
        client_id: str,
        text: str,
        role: Role,
        lead_source: Optional[str],
        metrics: OrchestratorMetrics,
    ) -> OrchestratorResult:
        # ── RECEIVED ──
        await self._best_effort(self._store.save_message(client_id, SENDER_CLIENT, text), "save_message", client_id)
        await self._best_effort(self._store.create_or_update_session(client_id), "create_or_update_session", client_id)

        profile = await self._select_profile(client_id, role)
        tools = profile.registry.get_specs()

        # ── QUICK path ──
        try:
            quick = await self._engine.generate(profile.system_prompt, text, tools)
        except BackendUnavailableError as exc:
            logger.error("Orchestrator: no backend answered for %s: %s", client_id, exc, extra={"client_id": client_id})
            self._notify(f"Model backends unavailable for {client_id}: {exc}")
            return OrchestratorResult(client_id=client_id, role=role, answer=OVERLOAD_REPLY, degraded=True)
        metrics.llm_calls_count += 1
        metrics.fallback_used = not quick.used_primary

        if quick.text.strip() and not quick.has_tool_directive:
            return await self._finish(
                client_id, role, text, quick.text, ProcessingState.QUICK_ANSWERED,
                used_primary=quick.used_primary, tools_called=[], lead_source=lead_source,
            )

        if not self._engine.primary_available:
            logger.warning("Orchestrator: tool loop needed but primary backend is not configured")
            return await self._finish(
                client_id, role, text, NO_TOOLS_REPLY, ProcessingState.DONE,
                used_primary=False, tools_called=[], lead_source=lead_source,
            )

        # ── TOOL_LOOP ──
        logger.debug("Orchestrator: %s entering tool loop", client_id, extra={"client_id": client_id, "state": "tool_loop"})
        history = await self._load_history(client_id, text)
        session = self._engine.open_tool_session(profile.system_prompt, history, text, tools)
        dispatcher = ToolDispatcher(profile.registry)

        try:
            turn = await session.send()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("Orchestrator: tool session start failed for %s: %s", client_id, exc, extra={"client_id": client_id})
            self._notify(f"Primary backend error (initial) for {client_id}: {exc}")
            return OrchestratorResult(
                client_id=client_id, role=role, answer=OVERLOAD_REPLY,
                state=ProcessingState.TOOL_LOOP, used_primary=True, degraded=True,
            )
        metrics.llm_calls_count += 1

        try:
            answer = await self._run_tool_loop(session, turn, dispatcher, metrics)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("Orchestrator: tool loop failed for %s: %s", client_id, exc, extra={"client_id": client_id})
            self._notify(f"Tool loop error for {client_id}: {exc}")
            return OrchestratorResult(
                client_id=client_id, role=role, answer=GLITCH_REPLY,
                state=ProcessingState.TOOL_LOOP, used_primary=True,
                tools_called=list(dispatcher.calls), degraded=True,
            )

        return await self._finish(
            client_id, role, text, answer, ProcessingState.DONE,
            used_primary=True, tools_called=list(dispatcher.calls), lead_source=lead_source,
        )

    async def _run_tool_loop(
        self,
        session: "ToolSession",
        turn: "ModelTurn",
        dispatcher: ToolDispatcher,
        metrics: OrchestratorMetrics,
    ) -> str:
        """Dispatch at most ``max_tool_steps`` tools; return the final text or the continuation prompt."""
        for _ in range(self._config.max_tool_steps):
            call = turn.first_tool_call()
            if call is None:
                break
            observation = await dispatcher.dispatch(call.name, call.arguments)
            session.add_tool_result(call, observation)
            # Every call id in the assistant turn needs a response turn.
            for extra in turn.tool_calls[1:]:
                session.add_tool_result(extra, SKIPPED_CALL_OBSERVATION)
            metrics.tool_steps += 1
            turn = await session.send()
            metrics.llm_calls_count += 1

        final = "" if turn.has_tool_calls else turn.text.strip()
        if not final:
            logger.info("Orchestrator: tool loop ended without text after %d step(s)", metrics.tool_steps)
            return CONTINUE_REPLY
        return final

    # ── Helpers ───────────────────────────────────────────────────

    async def _select_profile(self, client_id: str, role: Role) -> Profile:
        today = self._today()
        if role is Role.ADMIN:
            return Profile(role, admin_system_prompt(today), self._registries.for_admin())
        client_profile: Optional["ClientProfileView"] = None
        try:
            client_profile = await self._store.get_profile(
                client_id, timedelta(hours=self._config.profile_window_hours),
            )
        except PersistenceError as exc:
            logger.warning("Orchestrator: profile lookup failed for %s: %s", client_id, exc, extra={"client_id": client_id})
        return Profile(
            role,
            client_system_prompt(today, client_profile),
            self._registries.for_client(client_id),
        )

    async def _load_history(self, client_id: str, current_text: str) -> List[LLMMessage]:
        """Recent history as chat turns, oldest first, without empty texts or the current message."""
        window = timedelta(hours=self._config.history_window_hours)
        try:
            items = await self._store.get_chat_history(client_id, window)
        except PersistenceError as exc:
            logger.warning("Orchestrator: history unavailable for %s: %s", client_id, exc, extra={"client_id": client_id})
            return []
        if items and items[-1].sender == SENDER_CLIENT and items[-1].text == current_text:
            items = items[:-1]
        messages: List[LLMMessage] = []
        for item in items:
            if not item.text.strip():
                continue
            role = "assistant" if item.sender == SENDER_BOT else "user"
            messages.append({"role": role, "content": item.text})
        return messages

    async def _finish(
        self,
        client_id: str,
        role: Role,
        text: str,
        answer: str,
        state: ProcessingState,
        *,
        used_primary: bool,
        tools_called: List[str],
        lead_source: Optional[str],
    ) -> OrchestratorResult:
        await self._best_effort(self._store.save_message(client_id, SENDER_BOT, answer), "save_message", client_id)
        if self._analytics is not None and self._worker is not None:
            entry = DialogLog(
                client_id=client_id,
                timestamp=datetime.now(timezone.utc),
                message_text=text,
                lead_source=lead_source or self._config.lead_source,
            )
            self._worker.submit(self._analytics.save_log(entry), name=f"dialog_log:{client_id}")
        return OrchestratorResult(
            client_id=client_id,
            role=role,
            answer=answer,
            state=state,
            used_primary=used_primary,
            tools_called=tools_called,
        )

    async def _best_effort(self, coro, operation: str, client_id: str) -> None:
        try:
            await coro
        except PersistenceError as exc:
            logger.warning(
                "Orchestrator: %s failed for %s, continuing: %s", operation, client_id, exc,
                extra={"client_id": client_id},
            )

    def _notify(self, message: str) -> None:
        if self._notifier is None:
            logger.warning("ADMIN NOTIFY (no notifier): %s", message)
            return
        if self._worker is None:
            logger.warning("ADMIN NOTIFY (no worker): %s", message)
            return
        self._worker.submit(self._notifier.notify_admin(message), name="notify_admin")
