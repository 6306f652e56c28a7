"""MCP stdio server."""

from ksef_mcp.server.server import PROTOCOL_VERSION, MCPServer
from ksef_mcp.server.transport import ServerTransport, StdioTransport

__all__ = [
    "PROTOCOL_VERSION",
    "MCPServer",
    "ServerTransport",
    "StdioTransport",
]
