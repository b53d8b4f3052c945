# -*- coding: utf-8 -*-
"""Core MCP protocol handler (JSON-RPC 2.0), shared by the HTTP and stdio transports."""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..config import AppConfig, get_config
from ..exceptions import (
    InvalidRequest,
    MCPError,
    MethodNotFound,
    MissingToolName,
    ResponseTooLarge,
    ToolListFailed,
)
from ..security.security import mask_sensitive
from .controller import BackendSessionController, ControllerFactory
from .sessions import Session, SessionStore, _first_text, create_session
from .shaping import ShapingFlags, resolve_shaping, shape_tools

_logger = logging.getLogger(__name__)

CONNECT_TOOL = 'odoo_connect'


def _header(headers: Optional[Mapping[str, Any]], name: str) -> Optional[str]:
    if not headers:
        return None
    value = headers.get(name)
    if value is None:
        value = headers.get(name.lower())
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return value


class MCPServer:
    """Protocol dispatcher plus the state it dispatches against.

    Owns the process-global controller and the session store. Transports
    resolve a session first and pass its controller (if any) to
    ``handle_request``; without one the global controller is used.

    Args:
        config: Application configuration (process-wide config when omitted)
        controller_factory: Builds isolated controllers for sessions
        store: Session store (a fresh one honoring the configured TTL when omitted)
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        controller_factory: Optional[ControllerFactory] = None,
        store: Optional[SessionStore] = None,
    ):
        self.config = config or get_config()
        self._controller_factory = controller_factory or self._default_controller
        self.controller = self._controller_factory()
        self.store = store if store is not None else SessionStore(self.config.server.session_ttl_seconds)

    def _default_controller(self) -> BackendSessionController:
        return BackendSessionController(serialize_calls=self.config.server.serialize_tool_calls)

    # ------------------------------------------------------------------
    # Auto-login and sessions
    # ------------------------------------------------------------------

    @property
    def has_auto_login(self) -> bool:
        return self.config.odoo.is_complete

    async def auto_login(self) -> bool:
        """Connect the global controller with the configured credentials.

        Returns:
            bool: False when no complete credentials are configured or the
            connect call raised
        """
        credentials = self.config.odoo.as_credentials()
        if credentials is None:
            _logger.debug("MCP: Auto-login skipped (no complete ODOO_* credentials)")
            return False

        _logger.info(f"MCP: Auto-login {mask_sensitive(credentials.model_dump())}")
        try:
            result = await self.controller.handle_tool_call(CONNECT_TOOL, credentials.as_connect_args())
        except Exception as e:
            _logger.error(f"MCP: Auto-login failed: {e}")
            return False

        _logger.info(f"MCP: Auto-login finished: {_first_text(result)}")
        return True

    async def create_session(self, headers: Mapping[str, Any]) -> Session:
        return await create_session(self.store, headers, self._controller_factory, CONNECT_TOOL)

    def get_session(self, session_id: Optional[str]) -> Optional[Session]:
        return self.store.get(session_id)

    def terminate_session(self, session_id: Optional[str]) -> bool:
        deleted = self.store.delete(session_id)
        if deleted:
            _logger.info(f"MCP: Session {session_id} terminated")
        return deleted

    # ------------------------------------------------------------------
    # Shaping helpers shared with the REST endpoints
    # ------------------------------------------------------------------

    def shaping_flags(self, user_agent: Optional[str] = None) -> ShapingFlags:
        return resolve_shaping(self.config.shaping, user_agent)

    def initialize_result(self, flags: ShapingFlags) -> Dict[str, Any]:
        server = self.config.server
        return {
            'protocolVersion': server.protocol_version,
            'capabilities': {
                'tools': {
                    'list': True,
                    'call': True,
                    'jsonSchema': True,
                    'batch': True,
                },
                'batch': True,
            },
            'serverInfo': {
                'name': server.name,
                'version': server.version,
            },
            'modes': {
                'minimal': flags.minimal,
                'simplifiedSchema': flags.simplify,
            },
        }

    def list_tools(
        self,
        controller: Optional[BackendSessionController] = None,
        user_agent: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], ShapingFlags]:
        controller = controller or self.controller
        flags = self.shaping_flags(user_agent)
        tools = shape_tools(controller.get_available_tools(), flags, self.config.shaping)
        return tools, flags

    # ------------------------------------------------------------------
    # JSON-RPC dispatch
    # ------------------------------------------------------------------

    async def handle_request(
        self,
        jsonrpc_request: Any,
        controller: Optional[BackendSessionController] = None,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Handle one JSON-RPC MCP request.

        Never raises: every failure comes back as a JSON-RPC error object.

        Args:
            jsonrpc_request: Decoded request object
            controller: Session controller; the global controller when None
            headers: Transport headers, consulted for client detection only

        Returns:
            JSON-RPC response object
        """
        request_id = jsonrpc_request.get('id') if isinstance(jsonrpc_request, dict) else None
        controller = controller or self.controller

        try:
            if not isinstance(jsonrpc_request, dict):
                raise InvalidRequest('Invalid Request', 'Request must be a JSON object')

            method = jsonrpc_request.get('method')
            params = jsonrpc_request.get('params') or {}
            user_agent = _header(headers, 'User-Agent')

            if method == 'initialize':
                result = self.initialize_result(self.shaping_flags(user_agent))
            elif method == 'tools/list':
                result = self._handle_tools_list(controller, user_agent)
            elif method == 'tools/call':
                result = await self._handle_tools_call(controller, params, request_id)
            else:
                raise MethodNotFound(f"Method not found: {method}")

            return {'jsonrpc': '2.0', 'result': result, 'id': request_id}

        except MCPError as e:
            return self._error_response(e.code, e.message, e.data, request_id)
        except Exception as e:
            _logger.error(f"MCP: Request handling error: {e}", exc_info=True)
            return self._error_response(-32000, str(e) or 'Unknown error', None, request_id)

    def _handle_tools_list(self, controller: BackendSessionController, user_agent: Optional[str]) -> Dict[str, Any]:
        try:
            tools, flags = self.list_tools(controller, user_agent)
        except Exception as e:
            _logger.error(f"MCP: tools/list error: {e}", exc_info=True)
            raise ToolListFailed('Failed to list tools') from e

        _logger.debug(
            f"MCP: tools/list served {len(tools)} tools "
            f"(minimal={flags.minimal} simplify={flags.simplify} client={user_agent or 'unknown'})"
        )
        return {'tools': tools}

    async def _handle_tools_call(
        self,
        controller: BackendSessionController,
        params: Dict[str, Any],
        request_id: Any,
    ) -> Dict[str, Any]:
        tool_name = params.get('name')
        if not tool_name:
            raise MissingToolName('Tool name is required')

        result = await controller.handle_tool_call(tool_name, params.get('arguments') or {})

        body = json.dumps({'jsonrpc': '2.0', 'result': result, 'id': request_id},
                          separators=(',', ':'), default=str)
        size_kb = len(body.encode('utf-8')) / 1024

        if size_kb > self.config.server.max_response_kb:
            _logger.warning(f"MCP: Response too large: {size_kb:.1f}KB for tool {tool_name}")
            raise ResponseTooLarge(
                f"Response too large ({size_kb:.1f}KB). "
                f"Try reducing 'limit' parameter or selecting fewer fields."
            )

        _logger.info(f"MCP: Tool call {tool_name} -> {size_kb:.1f}KB response")
        return result

    def error_response(self, error: MCPError, request_id: Optional[Any] = None) -> Dict[str, Any]:
        """JSON-RPC error response for an MCPError raised outside dispatch (transports)."""
        return self._error_response(error.code, error.message, error.data, request_id)

    def _error_response(
        self,
        code: int,
        message: str,
        data: Optional[Any] = None,
        request_id: Optional[Any] = None
    ) -> Dict[str, Any]:
        """Build a JSON-RPC error response."""
        error = {
            'code': code,
            'message': message,
        }
        if data is not None:
            error['data'] = data

        return {
            'jsonrpc': '2.0',
            'error': error,
            'id': request_id,
        }
