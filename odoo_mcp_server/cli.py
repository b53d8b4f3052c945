# -*- coding: utf-8 -*-
"""Command line entry point for ``odoo-mcp-server``."""

import argparse
import asyncio
import logging
import os
import signal
import sys
import threading
from typing import Optional

from dotenv import load_dotenv

from .config import load_config, set_config
from .controllers.mcp_endpoint import run_http
from .controllers.stdio import serve_stdio
from .services.mcp_server import MCPServer

_logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: str = 'info') -> None:
    """Send all logs to stderr so stdout stays reserved for protocol output."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def _install_signal_handlers() -> None:
    def _shutdown(signum, frame):
        _logger.info(f"MCP: Received {signal.Signals(signum).name}, shutting down gracefully")
        sys.stdout.flush()
        logging.shutdown()
        # a worker thread may be blocked reading stdin
        os._exit(0)

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)


def start_background_login(server: MCPServer) -> Optional[threading.Thread]:
    """Run the global auto-login on a daemon thread. Returns None when nothing is configured."""
    if not server.has_auto_login:
        _logger.info("MCP: No ODOO_* credentials configured, auto-login disabled")
        return None

    thread = threading.Thread(
        target=lambda: asyncio.run(server.auto_login()),
        name='mcp-auto-login',
        daemon=True,
    )
    thread.start()
    return thread


async def run_stdio(server: MCPServer, auto_login: bool = True) -> None:
    """Serve stdio while the auto-login runs next to it."""
    login_task = None
    if auto_login and server.has_auto_login:
        login_task = asyncio.create_task(server.auto_login())

    await serve_stdio(server)

    if login_task is not None and not login_task.done():
        login_task.cancel()


def main(argv=None) -> int:
    """Entry point with CLI argument parsing."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description='Model Context Protocol server for Odoo (HTTP or stdio)'
    )
    parser.add_argument(
        '--transport',
        choices=['http', 'stdio'],
        help='Transport to serve (default: MCP_TRANSPORT or http)'
    )
    parser.add_argument(
        '--host',
        help='HTTP bind address (default: MCP_HTTP_HOST or 0.0.0.0)'
    )
    parser.add_argument(
        '--port',
        type=int,
        help='HTTP port (default: MCP_HTTP_PORT or 3001)'
    )
    parser.add_argument(
        '--config',
        help='YAML configuration file (default: MCP_CONFIG)'
    )
    parser.add_argument(
        '--log-level',
        choices=['debug', 'info', 'warning', 'error'],
        help='Log level (default: MCP_LOG_LEVEL or info)'
    )
    parser.add_argument(
        '--no-auto-login',
        action='store_true',
        help='Do not connect the global controller with ODOO_* credentials at startup'
    )

    args = parser.parse_args(argv)

    config = load_config(args.config)
    if args.transport:
        config.server.transport = args.transport
    if args.host:
        config.server.host = args.host
    if args.port is not None:
        config.server.port = args.port
    if args.log_level:
        config.server.log_level = args.log_level

    configure_logging(config.server.log_level)
    set_config(config)

    server = MCPServer(config)
    _install_signal_handlers()

    try:
        if config.server.transport == 'stdio':
            asyncio.run(run_stdio(server, auto_login=not args.no_auto_login))
        else:
            if not args.no_auto_login:
                start_background_login(server)
            run_http(server)
    except Exception as e:
        _logger.error(f"MCP: Failed to start MCP server: {e}", exc_info=True)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
