# -*- coding: utf-8 -*-
"""Tool registry that maps MCP tool names to definitions and async handlers."""

import logging
from typing import Any, Awaitable, Callable, Dict, List

from ..exceptions import ToolNotFound
from .content import text_response

_logger = logging.getLogger(__name__)

ToolHandler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


class ToolRegistry:
    """Name-keyed table of tool definitions and their handlers.

    Registering an existing name replaces the previous entry. Schemas are
    stored as given; nothing validates them.
    """

    def __init__(self):
        self._tools: Dict[str, Dict[str, Any]] = {}

    def register(self, name: str, definition: Dict[str, Any], handler: ToolHandler) -> None:
        self._tools[name] = {'definition': definition, 'handler': handler}

    def get_tools(self) -> List[Dict[str, Any]]:
        return [tool['definition'] for tool in self._tools.values()]

    def get_tool_names(self) -> List[str]:
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    async def execute_tool(self, name: str, args: Dict[str, Any]) -> Dict[str, Any]:
        """Run the handler registered under ``name``.

        Raises:
            ToolNotFound: If no tool is registered under ``name``

        Handler exceptions propagate unchanged.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFound(f"Tool '{name}' not found")
        return await tool['handler'](args)


ECHO_DEFINITION = {
    'name': 'echo',
    'description': 'Echo back the provided message',
    'inputSchema': {
        'type': 'object',
        'properties': {
            'message': {
                'type': 'string',
                'description': 'The message to echo back',
            },
        },
        'required': ['message'],
    },
}


async def echo(args: Dict[str, Any]) -> Dict[str, Any]:
    return text_response(f"Echo: {args.get('message')}")


def build_tool_registry(client_factory=None) -> ToolRegistry:
    """Create a registry holding the Odoo tool set and the ``echo`` diagnostic.

    Every call returns a fresh registry with its own Odoo connection state.

    Args:
        client_factory: Builds the Odoo client from credentials (``OdooClient`` when omitted)
    """
    from .odoo_tools import OdooTools

    odoo_tools = OdooTools(client_factory) if client_factory else OdooTools()
    registry = ToolRegistry()
    for name, tool in odoo_tools.get_tools().items():
        registry.register(name, tool['definition'], tool['handler'])
    registry.register('echo', ECHO_DEFINITION, echo)
    return registry
