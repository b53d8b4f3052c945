# -*- coding: utf-8 -*-
"""HTTP client for the REST routes of an MCP HTTP server, plus a small CLI."""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

import requests

from .exceptions import ClientError

_logger = logging.getLogger(__name__)

DEFAULT_URL = 'http://localhost:3001'


class HttpMcpClient:
    """Talks to ``/mcp/initialize``, ``/mcp/tools``, ``/mcp/batch`` and the utility routes.

    Args:
        base_url: Server root URL; a trailing slash is ignored
        timeout: Per-request timeout in seconds
        session: Optional requests session to reuse
    """

    def __init__(self, base_url: str = DEFAULT_URL, timeout: int = 30,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.initialized = False
        self.server_info: Dict[str, Any] = {}

    def _request(self, method: str, path: str, action: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ClientError(f"{action} failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ClientError(f"{action} failed: invalid JSON response (HTTP {response.status_code})") from e

        if response.status_code >= 400:
            error = data.get('error') if isinstance(data, dict) else None
            raise ClientError(f"{action} failed: {error or f'HTTP {response.status_code}'}")
        return data

    def _ensure_initialized(self) -> None:
        if not self.initialized:
            raise ClientError('MCP client not initialized. Call initialize() first.')

    def initialize(self) -> Dict[str, Any]:
        data = self._request('POST', '/mcp/initialize', 'Initialize', json={})
        if not data.get('success'):
            raise ClientError('Initialize failed')

        self.initialized = True
        self.server_info = data['result'].get('serverInfo', {})
        _logger.info(f"MCP: Client initialized against {self.server_info}")
        return data['result']

    def list_tools(self) -> List[Dict[str, Any]]:
        self._ensure_initialized()
        data = self._request('GET', '/mcp/tools', 'List tools')
        if not data.get('success'):
            raise ClientError('List tools failed')
        return data['tools']

    def execute_tool(self, name: str, args: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self._ensure_initialized()
        data = self._request('POST', f"/mcp/tools/{name}", 'Tool execution', json=args or {})
        if not data.get('success'):
            raise ClientError(f"Tool execution failed: {data.get('error') or 'unknown error'}")
        return data['result']

    def execute_batch(self, tools: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Run several tools in one request.

        Args:
            tools: Items of the form ``{'name': ..., 'args': {...}}``

        Returns:
            Per-tool outcomes in input order
        """
        self._ensure_initialized()
        data = self._request('POST', '/mcp/batch', 'Batch execution', json={'tools': tools})
        if not data.get('success'):
            raise ClientError('Batch execution failed')
        return data['results']

    def get_server_info(self) -> Dict[str, Any]:
        return self._request('GET', '/info', 'Server info')

    def health_check(self) -> Dict[str, Any]:
        return self._request('GET', '/health', 'Health check')


def main(argv=None) -> int:
    """Entry point for ``odoo-mcp-client``."""
    parser = argparse.ArgumentParser(
        description='HTTP client for an Odoo MCP server'
    )
    parser.add_argument(
        '--url',
        default=DEFAULT_URL,
        help=f'Server URL (default: {DEFAULT_URL})'
    )
    parser.add_argument(
        '--demo',
        action='store_true',
        help='Also run the echo tool, a batch call and print server info'
    )

    args = parser.parse_args(argv)
    client = HttpMcpClient(args.url)

    print(f"Connecting to MCP server at: {args.url}")
    try:
        health = client.health_check()
        print(f"Server is {health.get('status')}")

        result = client.initialize()
        print(f"Protocol version: {result.get('protocolVersion')}")

        print("Available tools:")
        for tool in client.list_tools():
            print(f"  - {tool['name']}: {tool.get('description', '')}")

        if args.demo:
            echo = client.execute_tool('echo', {'message': 'Hello HTTP MCP!'})
            print(f"Echo result: {echo['content'][0]['text']}")

            batch = client.execute_batch([
                {'name': 'echo', 'args': {'message': 'Batch message 1'}},
                {'name': 'echo', 'args': {'message': 'Batch message 2'}},
            ])
            for index, item in enumerate(batch, 1):
                if item['success']:
                    print(f"Batch {index}: {item['result']['content'][0]['text']}")
                else:
                    print(f"Batch {index} failed: {item['error']}")

            info = client.get_server_info()
            protocol = info.get('protocol', {})
            print(f"Server: {info.get('name')} {info.get('version')} "
                  f"({protocol.get('name')} v{protocol.get('version')} over {protocol.get('transport')})")

    except ClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
