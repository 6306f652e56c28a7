"""MCP protocol — JSON-RPC 2.0 envelopes and MCP tool payloads."""

from ksef_mcp.protocol.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    ProtocolError,
    RequestParseError,
)
from ksef_mcp.protocol.models import (
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    TextContent,
    ToolCallResult,
    ToolDefinition,
)

__all__ = [
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "ProtocolError",
    "RequestParseError",
    "TextContent",
    "ToolCallResult",
    "ToolDefinition",
]
