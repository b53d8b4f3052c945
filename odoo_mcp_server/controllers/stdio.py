# -*- coding: utf-8 -*-
"""Stdio transport: newline-delimited JSON-RPC on stdin/stdout."""

import asyncio
import json
import logging
import sys
from typing import Any, Dict, TextIO

from ..exceptions import ParseError
from ..services.mcp_server import MCPServer

_logger = logging.getLogger(__name__)


def _write(stdout: TextIO, response: Dict[str, Any]) -> None:
    stdout.write(json.dumps(response, default=str) + '\n')
    stdout.flush()


async def serve_stdio(server: MCPServer, stdin: TextIO = None, stdout: TextIO = None) -> None:
    """Serve JSON-RPC requests read line by line until end of input.

    Every request goes to the global controller. Requests are handled one
    at a time, so responses come out in request order. Only protocol
    output is written to ``stdout``; logs go through ``logging``.

    Args:
        server: Shared MCP server state
        stdin: Input stream (``sys.stdin`` when omitted)
        stdout: Output stream (``sys.stdout`` when omitted)
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    _logger.info("MCP: Starting MCP server in stdio mode")

    while True:
        line = await asyncio.to_thread(stdin.readline)
        if not line:
            break

        line = line.strip()
        if not line:
            continue

        try:
            jsonrpc_request = json.loads(line)
        except (json.JSONDecodeError, ValueError) as parse_err:
            _logger.error(f"MCP: stdio parse error: {parse_err}")
            _write(stdout, server.error_response(ParseError('Parse error', str(parse_err))))
            continue

        response = await server.handle_request(jsonrpc_request)
        _write(stdout, response)

    _logger.info("MCP: stdio input stream closed")
