"""Tests for the HTTP MCP client against a mocked requests session."""

from unittest.mock import MagicMock, Mock

import pytest
import requests

from odoo_mcp_server.client import HttpMcpClient, main
from odoo_mcp_server.exceptions import ClientError


def _response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


INIT_PAYLOAD = {
    "success": True,
    "result": {
        "protocolVersion": "2024-11-05",
        "serverInfo": {"name": "odoo-mcp-http-server", "version": "1.0.0"},
    },
}


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(session):
    return HttpMcpClient("http://mcp.test:3001/", session=session)


# ---------------------------------------------------------------------------
# HttpMcpClient
# ---------------------------------------------------------------------------

class TestHttpMcpClient:
    """Test client calls against the REST endpoints."""

    def test_base_url_trailing_slash(self, client):
        assert client.base_url == "http://mcp.test:3001"

    def test_requires_initialize(self, client):
        with pytest.raises(ClientError, match="not initialized"):
            client.list_tools()

    def test_initialize(self, client, session):
        session.request.return_value = _response(INIT_PAYLOAD)

        result = client.initialize()

        assert result["protocolVersion"] == "2024-11-05"
        assert client.initialized is True
        assert client.server_info["name"] == "odoo-mcp-http-server"
        session.request.assert_called_once_with(
            "POST", "http://mcp.test:3001/mcp/initialize", timeout=30, json={}
        )

    def test_list_tools(self, client, session):
        client.initialized = True
        session.request.return_value = _response({"success": True, "tools": [{"name": "echo"}]})
        assert client.list_tools() == [{"name": "echo"}]

    def test_execute_tool(self, client, session):
        client.initialized = True
        session.request.return_value = _response({
            "success": True,
            "result": {"content": [{"type": "text", "text": "Echo: hi"}]},
        })

        result = client.execute_tool("echo", {"message": "hi"})

        assert result["content"][0]["text"] == "Echo: hi"
        args, kwargs = session.request.call_args
        assert args == ("POST", "http://mcp.test:3001/mcp/tools/echo")
        assert kwargs["json"] == {"message": "hi"}

    def test_execute_tool_error_body(self, client, session):
        client.initialized = True
        session.request.return_value = _response({"success": False, "error": "Unknown tool: nope"}, 400)

        with pytest.raises(ClientError, match="Unknown tool: nope"):
            client.execute_tool("nope")

    def test_execute_batch(self, client, session):
        client.initialized = True
        results = [{"tool": "echo", "success": True, "result": {}}]
        session.request.return_value = _response({"success": True, "results": results})

        assert client.execute_batch([{"name": "echo", "args": {}}]) == results
        assert session.request.call_args[1]["json"] == {"tools": [{"name": "echo", "args": {}}]}

    def test_network_error(self, client, session):
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ClientError, match="Health check failed: refused"):
            client.health_check()

    def test_invalid_json(self, client, session):
        response = _response(None, 502)
        response.json.side_effect = ValueError("no json")
        session.request.return_value = response

        with pytest.raises(ClientError, match="HTTP 502"):
            client.get_server_info()


# ---------------------------------------------------------------------------
# main
# ---------------------------------------------------------------------------

class TestMain:
    """Test the client command line."""

    def test_lists_tools(self, monkeypatch, capsys):
        session = MagicMock()
        session.request.side_effect = [
            _response({"status": "healthy"}),
            _response(INIT_PAYLOAD),
            _response({"success": True, "tools": [{"name": "echo", "description": "Echo back"}]}),
        ]
        monkeypatch.setattr("odoo_mcp_server.client.requests.Session", lambda: session)

        assert main(["--url", "http://mcp.test:3001"]) == 0
        out = capsys.readouterr().out
        assert "Server is healthy" in out
        assert "  - echo: Echo back" in out

    def test_reports_errors(self, monkeypatch, capsys):
        session = MagicMock()
        session.request.side_effect = requests.ConnectionError("refused")
        monkeypatch.setattr("odoo_mcp_server.client.requests.Session", lambda: session)

        assert main([]) == 1
        assert "Health check failed" in capsys.readouterr().err
