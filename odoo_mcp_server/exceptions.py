# -*- coding: utf-8 -*-
"""Error taxonomy shared by the registry, controllers, dispatcher and transports."""


class MCPError(Exception):
    """Base class for errors that map onto a JSON-RPC error object."""

    code = -32000

    def __init__(self, message: str, data=None):
        super().__init__(message)
        self.message = message
        self.data = data


class ParseError(MCPError):
    code = -32700


class InvalidRequest(MCPError):
    code = -32600


class MethodNotFound(MCPError):
    code = -32601


class ToolListFailed(MCPError):
    code = -32001


class UnknownTool(MCPError):
    pass


class MissingToolName(MCPError):
    pass


class ToolExecutionFailed(MCPError):
    pass


class ResponseTooLarge(MCPError):
    pass


class SessionInvalid(MCPError):
    pass


class ToolNotFound(LookupError):
    """Raised by a tool registry when no handler is registered under a name."""


class ConnectFailed(Exception):
    """Backend authentication failed. Reported as tool output, not as a protocol error."""


class OdooError(Exception):
    """The Odoo server answered an RPC call with an error payload."""


class ClientError(Exception):
    """A remote MCP HTTP server call failed or answered with success=false."""
