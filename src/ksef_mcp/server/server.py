"""MCPServer — the read-dispatch-write loop behind ``ksef-mcp serve``.

Routes ``initialize``, ``tools/list`` and ``tools/call``; everything else is
answered with *method not found*. Faults are isolated per line: a malformed
line, a bad request or a failing tool produces an error response (or an
error-flagged tool result) and the loop carries on with the next line.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from ksef_mcp import __version__
from ksef_mcp.protocol.errors import PARSE_ERROR, RequestParseError
from ksef_mcp.protocol.models import JsonRpcRequest, JsonRpcResponse
from ksef_mcp.tools.dispatcher import ToolDispatcher
from ksef_mcp.utils.telemetry import ATTR_RPC_ERROR_CODE, ATTR_RPC_METHOD, get_tracer

if TYPE_CHECKING:
    from ksef_mcp.client.client import KsefClient
    from ksef_mcp.server.transport import ServerTransport

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "ksef-mcp-server"

MethodHandler = Callable[[JsonRpcRequest], Awaitable[JsonRpcResponse]]


class MCPServer:
    """Sequential JSON-RPC server exposing the KSeF tool catalog.

    Usage::

        async with KsefClient() as client:
            await MCPServer(client).run(StdioTransport())
    """

    def __init__(
        self,
        client: KsefClient,
        *,
        dispatcher: ToolDispatcher | None = None,
        server_name: str = SERVER_NAME,
        server_version: str = __version__,
    ) -> None:
        self._dispatcher = dispatcher or ToolDispatcher(client)
        self._server_info = {"name": server_name, "version": server_version}
        self._methods: dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    async def run(self, transport: ServerTransport) -> None:
        """Serve requests until the transport reaches end of input."""
        logger.info("MCP server ready (%d tools)", len(self._dispatcher.definitions()))
        while (line := await transport.read_line()) is not None:
            message = await self.handle_line(line)
            if message is not None:
                await transport.write_message(message)
        logger.info("End of input, shutting down")

    async def handle_line(self, line: str) -> dict[str, Any] | None:
        """Handle one framed line; return the response to write, if any."""
        if not line.strip():
            return None

        try:
            request = JsonRpcRequest.from_line(line)
        except RequestParseError as exc:
            logger.warning("Rejected input line: %s", exc.detail)
            if exc.code == PARSE_ERROR:
                return JsonRpcResponse.parse_error(exc.detail).to_wire()
            return JsonRpcResponse.invalid_request(exc.request_id, exc.detail).to_wire()

        response = await self.handle_request(request)
        return response.to_wire() if response is not None else None

    async def handle_request(self, request: JsonRpcRequest) -> JsonRpcResponse | None:
        """Route a decoded request; notifications yield ``None``."""
        if request.is_notification:
            self._handle_notification(request)
            return None

        logger.debug("Request %r: %s", request.id, request.method)
        with _tracer.start_as_current_span("mcp.request") as span:
            span.set_attribute(ATTR_RPC_METHOD, request.method)
            handler = self._methods.get(request.method)
            if handler is None:
                response = JsonRpcResponse.method_not_found(request.id, request.method)
            else:
                try:
                    response = await handler(request)
                except Exception as exc:
                    logger.exception("Unhandled error while serving %s", request.method)
                    response = JsonRpcResponse.internal_error(request.id, f"Internal error: {exc}")
            if response.error is not None:
                span.set_attribute(ATTR_RPC_ERROR_CODE, response.error.code)
            return response

    @staticmethod
    def _handle_notification(request: JsonRpcRequest) -> None:
        if request.method == "notifications/initialized":
            logger.info("Client initialized")
        else:
            logger.debug("Ignoring notification: %s", request.method)

    # ------------------------------------------------------------------
    # Methods
    # ------------------------------------------------------------------

    async def _initialize(self, request: JsonRpcRequest) -> JsonRpcResponse:
        client_info = (request.params or {}).get("clientInfo")
        if isinstance(client_info, dict):
            logger.info(
                "Initialize from %s %s", client_info.get("name", "?"), client_info.get("version", "")
            )
        return JsonRpcResponse.success(
            request.id,
            {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": dict(self._server_info),
            },
        )

    async def _list_tools(self, request: JsonRpcRequest) -> JsonRpcResponse:
        tools = [definition.to_wire() for definition in self._dispatcher.definitions()]
        return JsonRpcResponse.success(request.id, {"tools": tools})

    async def _call_tool(self, request: JsonRpcRequest) -> JsonRpcResponse:
        params = request.params or {}

        name = params.get("name")
        if not isinstance(name, str) or not name:
            return JsonRpcResponse.invalid_params(
                request.id, "Missing tool name: params.name must be a non-empty string"
            )

        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        elif not isinstance(arguments, dict):
            return JsonRpcResponse.invalid_params(
                request.id, "Invalid tool arguments: params.arguments must be an object"
            )

        result = await self._dispatcher.call(name, arguments)
        return JsonRpcResponse.success(request.id, result.to_wire())
