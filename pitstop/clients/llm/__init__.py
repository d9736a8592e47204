"""
LLM clients: base types, config, registry and the hybrid primary/fallback engine.

Provider registration: default_registry.register(provider, builder).
"""
from pitstop.clients.llm.base import (
    BaseLLMClient,
    LLMMessage,
    ModelTurn,
    ToolCall,
    ToolCapableLLMClient,
    ToolSpec,
)
from pitstop.clients.llm.config import LLMConfig
from pitstop.clients.llm.registry import LLMRegistry, default_registry
from pitstop.clients.llm.engine import GenerationResult, HybridLLMEngine, ToolSession

__all__ = [
    "BaseLLMClient",
    "ToolCapableLLMClient",
    "LLMMessage",
    "ModelTurn",
    "ToolCall",
    "ToolSpec",
    "LLMConfig",
    "LLMRegistry",
    "default_registry",
    "GenerationResult",
    "HybridLLMEngine",
    "ToolSession",
]
