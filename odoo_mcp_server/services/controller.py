# -*- coding: utf-8 -*-
"""Backend session controller: one tool registry, one backend connection."""

import asyncio
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import ToolExecutionFailed, ToolNotFound, UnknownTool
from ..tools.registry import ToolHandler, ToolRegistry, build_tool_registry

_logger = logging.getLogger(__name__)

LOCK_POLL_INTERVAL = 0.01


class BackendSessionController:
    """Executes tool calls against a registry it owns.

    The global controller and every session-scoped controller each hold a
    separate registry, so backend authentication state is never shared.

    Args:
        registry: Registry to own; a fresh default registry when omitted
        serialize_calls: Run at most one tool call at a time on this controller
    """

    def __init__(self, registry: Optional[ToolRegistry] = None, serialize_calls: bool = True):
        self.registry = registry if registry is not None else build_tool_registry()
        # threading lock: Flask runs each async view on its own thread and event loop
        self._call_lock = threading.Lock() if serialize_calls else None
        _logger.info(f"MCP: Initialized tools: {', '.join(self.registry.get_tool_names())}")

    async def _acquire(self) -> None:
        # poll instead of blocking a worker thread the handler may need itself
        while not self._call_lock.acquire(blocking=False):
            await asyncio.sleep(LOCK_POLL_INTERVAL)

    def get_available_tools(self) -> List[Dict[str, Any]]:
        return self.registry.get_tools()

    def register_tool(self, name: str, definition: Dict[str, Any], handler: ToolHandler) -> None:
        self.registry.register(name, definition, handler)

    async def handle_tool_call(self, name: str, args: Dict[str, Any]) -> Dict[str, Any]:
        """Run a tool and return its MCP response.

        Raises:
            UnknownTool: If no tool is registered under ``name``
            ToolExecutionFailed: If the handler raised
        """
        if not self.registry.has_tool(name):
            raise UnknownTool(f"Unknown tool: {name}")

        if self._call_lock is not None:
            await self._acquire()
        try:
            return await self.registry.execute_tool(name, args)
        except ToolNotFound as e:
            raise UnknownTool(f"Unknown tool: {name}") from e
        except Exception as e:
            _logger.error(f"MCP: Tool {name} raised: {e}", exc_info=True)
            raise ToolExecutionFailed(f"Tool execution failed: {e}") from e
        finally:
            if self._call_lock is not None:
                self._call_lock.release()


ControllerFactory = Callable[[], BackendSessionController]
