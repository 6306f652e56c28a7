"""Tests for MCPServer request routing."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

from ksef_mcp import __version__
from ksef_mcp.protocol.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
)
from ksef_mcp.server.server import PROTOCOL_VERSION, MCPServer
from ksef_mcp.tools.dispatcher import ToolDispatcher

if TYPE_CHECKING:
    from ksef_mcp.client.client import KsefClient
    from tests.conftest import StubApi


def _line(**message: object) -> str:
    return json.dumps(message)


class TestFraming:
    async def test_blank_line_yields_nothing(self, client: KsefClient) -> None:
        server = MCPServer(client)
        assert await server.handle_line("") is None
        assert await server.handle_line("   \t") is None

    async def test_malformed_json(self, client: KsefClient) -> None:
        message = await MCPServer(client).handle_line('{"id": 1, "method": ')
        assert message is not None
        assert message["id"] is None
        assert message["error"]["code"] == PARSE_ERROR
        assert "result" not in message

    async def test_invalid_request_echoes_id(self, client: KsefClient) -> None:
        message = await MCPServer(client).handle_line('{"id": 5, "params": {}}')
        assert message is not None
        assert message["id"] == 5
        assert message["error"]["code"] == INVALID_REQUEST

    async def test_non_object_is_invalid_request(self, client: KsefClient) -> None:
        message = await MCPServer(client).handle_line('"tools/list"')
        assert message is not None
        assert message["id"] is None
        assert message["error"]["code"] == INVALID_REQUEST

    async def test_notification_gets_no_response(self, client: KsefClient) -> None:
        server = MCPServer(client)
        assert await server.handle_line(_line(jsonrpc="2.0", method="notifications/initialized")) is None
        assert await server.handle_line(_line(method="tools/list")) is None


class TestMethods:
    async def test_initialize(self, client: KsefClient) -> None:
        message = await MCPServer(client).handle_line(
            _line(
                jsonrpc="2.0",
                id=0,
                method="initialize",
                params={"protocolVersion": PROTOCOL_VERSION, "clientInfo": {"name": "host"}},
            )
        )
        assert message == {
            "jsonrpc": "2.0",
            "id": 0,
            "result": {
                "protocolVersion": "2024-11-05",
                "capabilities": {"tools": {}},
                "serverInfo": {"name": "ksef-mcp-server", "version": __version__},
            },
        }

    async def test_initialize_has_no_side_effects(self, client: KsefClient, stub_api: StubApi) -> None:
        await MCPServer(client).handle_line(_line(id=1, method="initialize"))
        assert stub_api.requests == []

    async def test_tools_list(self, client: KsefClient) -> None:
        message = await MCPServer(client).handle_line(_line(id="a", method="tools/list"))
        assert message is not None
        tools = message["result"]["tools"]
        assert len(tools) == 12
        assert {"name", "description", "inputSchema"} <= set(tools[0])

    async def test_unknown_method(self, client: KsefClient) -> None:
        message = await MCPServer(client).handle_line(_line(id=3, method="resources/list"))
        assert message is not None
        assert message["id"] == 3
        assert message["error"]["code"] == METHOD_NOT_FOUND
        assert "resources/list" in message["error"]["message"]


class TestToolsCall:
    async def test_missing_params(self, client: KsefClient) -> None:
        message = await MCPServer(client).handle_line(_line(id=1, method="tools/call"))
        assert message is not None
        assert message["error"]["code"] == INVALID_PARAMS

    async def test_missing_name(self, client: KsefClient, stub_api: StubApi) -> None:
        message = await MCPServer(client).handle_line(
            _line(id=1, method="tools/call", params={"arguments": {}})
        )
        assert message is not None
        assert message["error"]["code"] == INVALID_PARAMS
        assert stub_api.requests == []

    async def test_non_string_name(self, client: KsefClient) -> None:
        message = await MCPServer(client).handle_line(
            _line(id=1, method="tools/call", params={"name": 7, "arguments": {}})
        )
        assert message is not None
        assert message["error"]["code"] == INVALID_PARAMS

    async def test_non_object_arguments(self, client: KsefClient) -> None:
        message = await MCPServer(client).handle_line(
            _line(id=1, method="tools/call", params={"name": "get_rate_limits", "arguments": [1]})
        )
        assert message is not None
        assert message["error"]["code"] == INVALID_PARAMS

    async def test_missing_arguments_defaults_to_empty(
        self, client: KsefClient, stub_api: StubApi
    ) -> None:
        message = await MCPServer(client).handle_line(
            _line(id=1, method="tools/call", params={"name": "get_rate_limits"})
        )
        assert message is not None
        assert message["result"]["isError"] is False
        assert len(stub_api.requests) == 1

    async def test_unknown_tool_is_tool_error(self, client: KsefClient, stub_api: StubApi) -> None:
        message = await MCPServer(client).handle_line(
            _line(id=2, method="tools/call", params={"name": "no_such_tool", "arguments": {}})
        )
        assert message is not None
        assert "error" not in message
        assert message["result"]["isError"] is True
        assert "no_such_tool" in message["result"]["content"][0]["text"]
        assert stub_api.requests == []

    async def test_missing_required_argument_makes_no_call(
        self, client: KsefClient, stub_api: StubApi
    ) -> None:
        message = await MCPServer(client).handle_line(
            _line(id=2, method="tools/call", params={"name": "get_export_status", "arguments": {}})
        )
        assert message is not None
        assert message["result"]["isError"] is True
        assert "referenceNumber" in message["result"]["content"][0]["text"]
        assert stub_api.requests == []

    async def test_unexpected_exception_is_internal_error(self, client: KsefClient) -> None:
        dispatcher = ToolDispatcher(client)
        server = MCPServer(client, dispatcher=dispatcher)
        with patch.object(dispatcher, "call", AsyncMock(side_effect=RuntimeError("kaboom"))):
            message = await server.handle_line(
                _line(id=9, method="tools/call", params={"name": "get_rate_limits"})
            )
            follow_up = await server.handle_line(_line(id=10, method="tools/list"))
        assert message is not None
        assert message["id"] == 9
        assert message["error"]["code"] == INTERNAL_ERROR
        assert "kaboom" in message["error"]["message"]
        assert follow_up is not None
        assert "result" in follow_up


class TestEndToEnd:
    async def test_rate_limits_round_trip(self, client: KsefClient, stub_api: StubApi) -> None:
        stub_api.body = '{"limit":1000,"remaining":750}'
        message = await MCPServer(client).handle_line(
            '{"id":1,"method":"tools/call","params":{"name":"get_rate_limits","arguments":{}}}'
        )
        assert message == {
            "jsonrpc": "2.0",
            "id": 1,
            "result": {
                "content": [{"type": "text", "text": '{"limit":1000,"remaining":750}'}],
                "isError": False,
            },
        }
        assert stub_api.last.method == "GET"
        assert stub_api.last.url.path.endswith("/rate-limits")

    async def test_unauthorized_is_tool_error(self, client: KsefClient, stub_api: StubApi) -> None:
        stub_api.status_code = 401
        stub_api.body = "Unauthorized"
        message = await MCPServer(client).handle_line(
            _line(id=2, method="tools/call", params={"name": "get_current_session", "arguments": {}})
        )
        assert message is not None
        assert message["result"]["isError"] is True
        assert "401" in message["result"]["content"][0]["text"]

    async def test_page_size_rejected_before_any_request(
        self, client: KsefClient, stub_api: StubApi
    ) -> None:
        message = await MCPServer(client).handle_line(
            _line(
                id=3,
                method="tools/call",
                params={"name": "get_active_sessions", "arguments": {"pageSize": 500}},
            )
        )
        assert message is not None
        assert message["result"]["isError"] is True
        assert "pageSize" in message["result"]["content"][0]["text"]
        assert stub_api.requests == []

    async def test_non_ascii_continuation_token_is_tool_error(
        self, client: KsefClient, stub_api: StubApi
    ) -> None:
        message = await MCPServer(client).handle_line(
            _line(
                id=1,
                method="tools/call",
                params={"name": "get_active_sessions", "arguments": {"continuationToken": "zażółć"}},
            )
        )
        assert message is not None
        assert "error" not in message
        assert message["result"]["isError"] is True
        assert "continuationToken" in message["result"]["content"][0]["text"]
        assert stub_api.requests == []
