# -*- coding: utf-8 -*-
"""HTTP transport: MCP streamable HTTP on /mcp plus REST convenience routes."""

import asyncio
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import MethodNotAllowed, NotFound
from werkzeug.serving import WSGIRequestHandler, run_simple

from ..exceptions import MCPError, ParseError, SessionInvalid
from ..security.security import check_bearer_token
from ..services.mcp_server import MCPServer
from ..services.shaping import mode_header

_logger = logging.getLogger(__name__)

SESSION_HEADER = 'Mcp-Session-Id'
PROTOCOL_HEADER = 'MCP-Protocol-Version'
MODE_HEADER = 'X-MCP-Mode'

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, POST, DELETE, OPTIONS',
    'Access-Control-Allow-Headers': (
        'Content-Type, Authorization, X-MCP-Client, Mcp-Session-Id, MCP-Protocol-Version, Accept'
    ),
    'Access-Control-Expose-Headers': 'Mcp-Session-Id, MCP-Protocol-Version',
}

AVAILABLE_ENDPOINTS = {
    'mcp': [
        'POST /mcp/initialize',
        'GET /mcp/tools',
        'POST /mcp/tools/:toolName',
        'POST /mcp',
        'POST /mcp/batch',
    ],
    'utilities': [
        'GET /health',
        'GET /info',
        'GET /docs',
    ],
}


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def create_app(server: MCPServer) -> Flask:
    """Build the Flask application serving ``server`` over HTTP.

    Args:
        server: Shared MCP server state (global controller, sessions, config)

    Returns:
        Flask: WSGI application
    """
    app = Flask(__name__)
    app.extensions['mcp_server'] = server
    settings = server.config.server

    # ------------------------------------------------------------------
    # Middleware
    # ------------------------------------------------------------------

    @app.before_request
    def log_request():
        client = request.headers.get('X-MCP-Client') or request.headers.get('User-Agent') or 'unknown'
        auth = 'authenticated' if request.headers.get('Authorization') else 'public'
        _logger.info(f"MCP: HTTP {request.method} {request.path} client={client} auth={auth}")

        if request.path.startswith('/mcp'):
            # never blocks
            check_bearer_token(request.headers.get('Authorization'), settings.auth_token)

    @app.after_request
    def add_cors_headers(response):
        for name, value in CORS_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.errorhandler(NotFound)
    @app.errorhandler(MethodNotAllowed)
    def endpoint_not_found(e):
        return jsonify({
            'success': False,
            'error': 'Endpoint not found',
            'available_endpoints': AVAILABLE_ENDPOINTS,
        }), 404

    @app.errorhandler(500)
    def internal_error(e):
        _logger.error(f"MCP: Unhandled error: {e}")
        return jsonify({'success': False, 'error': 'Internal server error'}), 500

    # ------------------------------------------------------------------
    # MCP streamable HTTP
    # ------------------------------------------------------------------

    @app.route('/mcp', methods=['POST'])
    async def mcp_endpoint():
        protocol_version = request.headers.get(PROTOCOL_HEADER) or settings.protocol_version

        raw_data = request.get_data(as_text=True)
        if not raw_data:
            return jsonify(server.error_response(ParseError('Parse error', 'Empty request body'))), 400
        try:
            body = json.loads(raw_data)
        except (json.JSONDecodeError, ValueError) as parse_err:
            return jsonify(server.error_response(ParseError('Parse error', str(parse_err)))), 400

        method = body.get('method') if isinstance(body, dict) else None
        request_id = body.get('id') if isinstance(body, dict) else None

        if method == 'initialize':
            session = await server.create_session(request.headers)
            response = await server.handle_request(body, session.controller, request.headers)
            result = jsonify(response)
            result.headers[SESSION_HEADER] = session.id
            result.headers[PROTOCOL_HEADER] = protocol_version
            flags = server.shaping_flags(request.headers.get('User-Agent'))
            result.headers[MODE_HEADER] = mode_header(flags)
            return result

        session_id = request.headers.get(SESSION_HEADER)
        session = server.get_session(session_id)

        if session is None and not server.has_auto_login:
            _logger.warning(f"MCP: Invalid/missing session ID: {session_id}")
            error = SessionInvalid('Missing or invalid Mcp-Session-Id header (no auto-login configured)')
            return jsonify(server.error_response(error, request_id)), 400

        if session is None:
            _logger.debug(f"MCP: Session-less request allowed (auto-login active): {method}")
        else:
            _logger.debug(f"MCP: Request with session {session_id}: {method}")

        response = await server.handle_request(
            body,
            session.controller if session else None,
            request.headers,
        )

        result = jsonify(response)
        result.headers[PROTOCOL_HEADER] = protocol_version
        if method == 'tools/list':
            flags = server.shaping_flags(request.headers.get('User-Agent'))
            result.headers[MODE_HEADER] = mode_header(flags)
        return result

    @app.route('/mcp', methods=['GET'])
    def mcp_get():
        if 'text/event-stream' in request.headers.get('Accept', ''):
            return _event_stream(request.headers.get(SESSION_HEADER))

        return jsonify({
            'protocol': 'mcp',
            'version': settings.protocol_version,
            'transport': 'http',
            'server': {
                'name': settings.name,
                'version': settings.version,
            },
            'capabilities': {
                'tools': True,
                'batch': True,
                'streaming': False,
            },
            'endpoints': {
                'initialize': 'POST /mcp/initialize',
                'tools': 'GET /mcp/tools',
                'execute': 'POST /mcp/tools/:toolName',
                'batch': 'POST /mcp/batch',
                'jsonrpc': 'POST /mcp',
            },
        })

    def _event_stream(session_id):
        if server.get_session(session_id) is None:
            return Response('Missing or invalid Mcp-Session-Id header', status=400, mimetype='text/plain')

        interval = settings.sse_heartbeat_interval
        _logger.info(f"MCP: SSE stream opened for session {session_id}")

        def heartbeat():
            try:
                # werkzeug sends the status line with the first chunk
                yield ': connected\n\n'
                while True:
                    time.sleep(interval)
                    yield ': heartbeat\n\n'
            finally:
                _logger.info(f"MCP: SSE stream closed for session {session_id}")

        return Response(
            heartbeat(),
            mimetype='text/event-stream',
            headers={
                'Cache-Control': 'no-cache',
                'Connection': 'keep-alive',
            },
        )

    @app.route('/mcp', methods=['DELETE'])
    def mcp_delete():
        if not server.terminate_session(request.headers.get(SESSION_HEADER)):
            return jsonify({'error': 'Session not found'}), 404
        return Response(status=204)

    # ------------------------------------------------------------------
    # REST convenience routes (global controller)
    # ------------------------------------------------------------------

    @app.route('/mcp/initialize', methods=['POST'])
    def rest_initialize():
        flags = server.shaping_flags(request.headers.get('User-Agent'))
        response = jsonify({
            'success': True,
            'result': server.initialize_result(flags),
        })
        response.headers[MODE_HEADER] = mode_header(flags)
        return response

    @app.route('/mcp/tools', methods=['GET'])
    def rest_tools():
        try:
            tools, flags = server.list_tools(user_agent=request.headers.get('User-Agent'))
        except Exception as e:
            _logger.error(f"MCP: REST tools list failed: {e}", exc_info=True)
            return jsonify({'success': False, 'error': str(e) or 'Failed to list tools'}), 500

        _logger.debug(
            f"MCP: REST tools list served {len(tools)} tools "
            f"(minimal={flags.minimal} simplify={flags.simplify})"
        )
        response = jsonify({'success': True, 'tools': tools})
        response.headers[MODE_HEADER] = mode_header(flags)
        return response

    @app.route('/mcp/tools/<tool_name>', methods=['POST'])
    async def rest_execute(tool_name):
        args = request.get_json(silent=True)
        if not isinstance(args, dict):
            args = {}
        try:
            result = await server.controller.handle_tool_call(tool_name, args)
        except MCPError as e:
            return jsonify({'success': False, 'error': e.message}), 400
        return jsonify({'success': True, 'result': result})

    @app.route('/mcp/batch', methods=['POST'])
    async def rest_batch():
        body = request.get_json(silent=True)
        tools = body.get('tools') if isinstance(body, dict) else None
        if not isinstance(tools, list):
            return jsonify({'success': False, 'error': 'Expected array of tools'}), 400

        items = [item if isinstance(item, dict) else {} for item in tools]
        outcomes = await asyncio.gather(
            *(server.controller.handle_tool_call(item.get('name'), item.get('args') or {}) for item in items),
            return_exceptions=True,
        )

        results = []
        for item, outcome in zip(items, outcomes):
            entry: Dict[str, Any] = {'tool': item.get('name')}
            if isinstance(outcome, BaseException):
                entry['success'] = False
                entry['error'] = getattr(outcome, 'message', None) or str(outcome)
            else:
                entry['success'] = True
                entry['result'] = outcome
            results.append(entry)

        return jsonify({'success': True, 'results': results})

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({
            'status': 'healthy',
            'protocol': 'mcp-http',
            'version': settings.protocol_version,
            'timestamp': _utc_timestamp(),
            'server': settings.name,
        })

    @app.route('/info', methods=['GET'])
    def info():
        return jsonify({
            'name': 'Odoo MCP HTTP Server',
            'version': settings.version,
            'protocol': {
                'name': 'MCP',
                'version': settings.protocol_version,
                'transport': 'HTTP',
            },
            'capabilities': {
                'tools': True,
                'batch': True,
                'streaming': False,
            },
            'endpoints': {
                'POST /mcp/initialize': 'Initialize MCP session',
                'GET /mcp/tools': 'List available tools',
                'POST /mcp/tools/:name': 'Execute specific tool',
                'POST /mcp': 'JSON-RPC 2.0 endpoint',
                'POST /mcp/batch': 'Execute multiple tools',
                'GET /health': 'Health check',
                'GET /info': 'Server information',
                'GET /docs': 'API documentation',
            },
        })

    @app.route('/docs', methods=['GET'])
    def docs():
        return jsonify(_api_docs(settings))

    return app


def _api_docs(settings) -> Dict[str, Any]:
    return {
        'title': 'Odoo MCP HTTP Server API Documentation',
        'version': settings.version,
        'protocol': 'MCP over HTTP',
        'baseUrl': f"http://localhost:{settings.port}",
        'endpoints': {
            'initialization': {
                'POST /mcp/initialize': {
                    'description': 'Initialize MCP session',
                    'request': {},
                    'response': {
                        'protocolVersion': settings.protocol_version,
                        'capabilities': {'tools': {}},
                        'serverInfo': {'name': 'string', 'version': 'string'},
                    },
                },
            },
            'tools': {
                'GET /mcp/tools': {
                    'description': 'List all available tools',
                    'response': {
                        'success': True,
                        'tools': [{'name': 'string', 'description': 'string', 'inputSchema': {}}],
                    },
                },
                'POST /mcp/tools/:toolName': {
                    'description': 'Execute a specific tool',
                    'parameters': {'toolName': 'Tool name from tools list'},
                    'request': {},
                    'response': {
                        'success': True,
                        'result': {'content': [{'type': 'text', 'text': 'string'}]},
                    },
                },
            },
            'batch': {
                'POST /mcp/batch': {
                    'description': 'Execute multiple tools in parallel',
                    'request': {
                        'tools': [
                            {'name': 'tool1', 'args': {}},
                            {'name': 'tool2', 'args': {}},
                        ],
                    },
                    'response': {
                        'success': True,
                        'results': [
                            {'tool': 'tool1', 'success': True, 'result': {}},
                            {'tool': 'tool2', 'success': False, 'error': 'string'},
                        ],
                    },
                },
            },
        },
        'examples': {
            'Connect to Odoo': {
                'method': 'POST',
                'url': '/mcp/tools/odoo_connect',
                'headers': {'Content-Type': 'application/json'},
                'body': {
                    'url': 'http://localhost:8069',
                    'database': 'odoo',
                    'username': 'admin',
                    'password': 'admin',
                    'transport': 'jsonrpc',
                },
            },
            'Search Partners': {
                'method': 'POST',
                'url': '/mcp/tools/odoo_search_read',
                'body': {
                    'model': 'res.partner',
                    'domain': [['is_company', '=', True]],
                    'fields': ['name', 'email', 'phone'],
                    'limit': 10,
                },
            },
            'Batch Operations': {
                'method': 'POST',
                'url': '/mcp/batch',
                'body': {
                    'tools': [
                        {'name': 'odoo_search', 'args': {'model': 'res.partner', 'limit': 5}},
                        {'name': 'echo', 'args': {'message': 'Hello World'}},
                    ],
                },
            },
        },
    }


def run_http(server: MCPServer, host: str = None, port: int = None) -> None:
    """Serve ``server`` with the werkzeug development server (threaded).

    Each connection gets a socket timeout of ``request_timeout`` seconds.
    """
    settings = server.config.server
    host = host or settings.host
    port = port if port is not None else settings.port

    handler = type('MCPRequestHandler', (WSGIRequestHandler,), {'timeout': settings.request_timeout})
    app = create_app(server)

    _logger.info(f"MCP: HTTP server listening on http://{host}:{port}")
    _logger.info(f"MCP: JSON-RPC endpoint http://{host}:{port}/mcp")
    _logger.info(f"MCP: Health check http://{host}:{port}/health")
    run_simple(host, port, app, threaded=True, request_handler=handler)
