"""Shared pytest fixtures for the Odoo MCP server tests.

Provides a fake Odoo client so no test talks to a real Odoo server, plus
fixtures that build controllers, an MCPServer and a Flask test client on
top of it.
"""

import pytest

from odoo_mcp_server.config import AppConfig, reset_config
from odoo_mcp_server.controllers.mcp_endpoint import create_app
from odoo_mcp_server.exceptions import ConnectFailed
from odoo_mcp_server.services.controller import BackendSessionController
from odoo_mcp_server.services.mcp_server import MCPServer
from odoo_mcp_server.tools.registry import build_tool_registry

VALID_HEADERS = {
    "X-Odoo-Url": "http://odoo.test:8069",
    "X-Odoo-Db": "demo",
    "X-Odoo-Username": "admin",
    "X-Odoo-Password": "admin",
}


class FakeOdooClient:
    """Stand-in for OdooClient. Password 'wrong' fails authentication."""

    instances = []

    def __init__(self, credentials, timeout=30):
        self.credentials = credentials
        self.uid = None
        FakeOdooClient.instances.append(self)

    def authenticate(self):
        if self.credentials.password == "wrong":
            raise ConnectFailed("Authentication failed: invalid credentials")
        self.uid = 2
        return {"uid": 2, "session_id": "fake-session"}

    def version(self):
        return {"server_version": "17.0", "protocol_version": 1}

    def list_databases(self):
        return ["demo", "prod"]


@pytest.fixture(autouse=True)
def reset_global_config():
    """Keep the process-wide config out of every test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def fake_client_cls():
    FakeOdooClient.instances.clear()
    yield FakeOdooClient
    FakeOdooClient.instances.clear()


@pytest.fixture
def controller_factory(fake_client_cls):
    """Controller factory whose Odoo tools build FakeOdooClient instances."""
    def _factory():
        return BackendSessionController(build_tool_registry(fake_client_cls))
    return _factory


@pytest.fixture
def app_config():
    """Default configuration without Odoo auto-login credentials."""
    return AppConfig()


@pytest.fixture
def mcp_server(app_config, controller_factory):
    return MCPServer(app_config, controller_factory)


@pytest.fixture
def http_app(mcp_server):
    app = create_app(mcp_server)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def http_client(http_app):
    return http_app.test_client()
