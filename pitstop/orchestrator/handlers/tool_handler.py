"""Tool registry and dispatcher for the model's function calls."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pitstop.clients.llm.base import ToolSpec
from pitstop.core.exceptions import (
    ExternalServiceError,
    PersistenceError,
    ValidationError,
)
from pitstop.tools.arguments import NoArgs, ToolArguments

logger = logging.getLogger(__name__)

ToolHandlerFn = Callable[[Any], Awaitable[str]]


@dataclass
class ToolDefinition:
    """Schema for a callable tool.

    ``handler`` receives an instance of ``arguments_model`` and returns the
    observation string fed back to the model.
    """

    name: str
    description: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    handler: Optional[ToolHandlerFn] = None
    arguments_model: Type[ToolArguments] = NoArgs

    def spec(self) -> ToolSpec:
        return ToolSpec(name=self.name, description=self.description, parameters=self.parameters)


class ToolRegistry:
    """Registry of available tools."""

    def __init__(self) -> None:
        self._tools: Dict[str, ToolDefinition] = {}

    def register(self, tool: ToolDefinition) -> None:
        self._tools[tool.name] = tool
        logger.debug("ToolRegistry: registered tool '%s'", tool.name)

    def get(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    @property
    def names(self) -> List[str]:
        return list(self._tools.keys())

    def get_specs(self) -> List[ToolSpec]:
        """Declarations in registration order."""
        return [t.spec() for t in self._tools.values()]


class ToolDispatcher:
    """Route a tool directive to its handler and always return a string.

    Failures become text the model can relay: domain validation errors are
    reported as rejections, storage errors as failures, unknown names and
    anything unexpected as generic errors.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry
        self.calls: List[str] = []

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def dispatch(self, name: str, raw_args: Optional[Any] = None) -> str:
        self.calls.append(name)
        tool = self._registry.get(name)
        if tool is None or tool.handler is None:
            logger.warning("ToolDispatcher: unknown tool '%s'", name, extra={"tool": name})
            return f"Error: unknown tool '{name}'."

        args = tool.arguments_model.from_raw(raw_args)
        logger.info(
            "ToolDispatcher: %s args=%s", name, args.as_log_dict(), extra={"tool": name},
        )
        try:
            return await tool.handler(args)
        except asyncio.CancelledError:
            raise
        except ValidationError as exc:
            logger.info("ToolDispatcher: %s rejected: %s", name, exc.message, extra={"tool": name})
            return f"Rejected: {exc.message}."
        except PersistenceError as exc:
            logger.error("ToolDispatcher: %s storage failure: %s", name, exc, extra={"tool": name})
            return "Failed: the operation could not be saved, please try again later."
        except ExternalServiceError as exc:
            logger.warning("ToolDispatcher: %s external failure: %s", name, exc, extra={"tool": name})
            return f"Error: {exc.message}."
        except Exception as exc:
            logger.exception("ToolDispatcher: %s raised", name, extra={"tool": name})
            return f"Error: tool '{name}' failed ({type(exc).__name__})."
