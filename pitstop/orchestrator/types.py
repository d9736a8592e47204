"""Core data structures for the Orchestrator layer."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Role(str, Enum):
    """Who is talking to the bot. Decides the prompt and the toolset."""
    CLIENT = "client"
    ADMIN = "admin"


class ProcessingState(str, Enum):
    """Per-message lifecycle: RECEIVED -> QUICK_ANSWERED | TOOL_LOOP -> DONE."""
    RECEIVED = "received"
    QUICK_ANSWERED = "quick_answered"
    TOOL_LOOP = "tool_loop"
    DONE = "done"


@dataclass
class OrchestratorConfig:
    """Tunable orchestrator behaviour.

    The tool loop dispatches at most ``max_tool_steps`` tools per message.
    ``history_window_hours`` bounds the history replayed into the tool loop;
    ``profile_window_hours`` bounds the excerpt shown in the client profile.
    """

    max_tool_steps: int = 3
    history_window_hours: int = 24
    profile_window_hours: int = 2

    llm_timeout_seconds: Optional[float] = 60.0
    """Timeout per model round-trip. None = no timeout."""

    lead_source: str = "whatsapp"
    """Default lead source recorded in the dialog log."""


@dataclass
class OrchestratorMetrics:
    """Timing and call counts for a single orchestrator call."""

    total_ms: float = 0.0
    llm_calls_count: int = 0
    tool_steps: int = 0
    fallback_used: bool = False


@dataclass
class OrchestratorResult:
    """Final output returned by the orchestrator."""

    client_id: str
    role: Role
    answer: str
    state: ProcessingState = ProcessingState.DONE
    used_primary: bool = False
    tools_called: List[str] = field(default_factory=list)
    degraded: bool = False
    """True when the answer is a canned reply after a backend failure."""
    metrics: Optional[OrchestratorMetrics] = None
