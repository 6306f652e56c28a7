"""ToolDispatcher — routes a ``tools/call`` to the matching KSeF client call."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from ksef_mcp.client.errors import KsefError
from ksef_mcp.protocol.models import ToolCallResult, ToolDefinition
from ksef_mcp.tools.registry import TOOLS, ToolSpec
from ksef_mcp.utils.telemetry import ATTR_TOOL_IS_ERROR, ATTR_TOOL_NAME, get_tracer

if TYPE_CHECKING:
    from ksef_mcp.client.client import KsefClient

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


def describe_validation_error(exc: ValidationError) -> str:
    """Summarise a validation failure, naming every offending field."""
    parts: list[str] = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "arguments"
        if err["type"] == "missing":
            parts.append(f"{field}: Missing required parameter")
        else:
            parts.append(f"{field}: {err['msg']}")
    return "; ".join(parts)


class ToolDispatcher:
    """Maintains a name-to-tool map and executes tool calls.

    Tool-level failures never raise: an unknown name, invalid arguments and
    remote failures all come back as an error-flagged :class:`ToolCallResult`.

    Usage::

        dispatcher = ToolDispatcher(client)
        result = await dispatcher.call("get_invoice", {"ksefNumber": "..."})
    """

    def __init__(self, client: KsefClient, tools: Sequence[ToolSpec] = TOOLS) -> None:
        self._client = client
        self._tools: dict[str, ToolSpec] = {tool.name: tool for tool in tools}

    @property
    def client(self) -> KsefClient:
        return self._client

    def definitions(self) -> list[ToolDefinition]:
        """Return the tool definitions in registration order."""
        return [tool.definition() for tool in self._tools.values()]

    async def call(self, name: str, arguments: dict[str, Any]) -> ToolCallResult:
        """Validate *arguments* for tool *name* and invoke it."""
        with _tracer.start_as_current_span("ksef.tool.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            result = await self._call(name, arguments)
            span.set_attribute(ATTR_TOOL_IS_ERROR, result.is_error)
            return result

    async def _call(self, name: str, arguments: dict[str, Any]) -> ToolCallResult:
        tool = self._tools.get(name)
        if tool is None:
            logger.info("Unknown tool requested: %s", name)
            return ToolCallResult.error(f"Unknown tool: {name}")

        try:
            args = tool.arguments.model_validate(arguments)
        except ValidationError as exc:
            detail = describe_validation_error(exc)
            logger.info("Rejected arguments for %s: %s", name, detail)
            return ToolCallResult.error(f"Invalid arguments for tool '{name}': {detail}")

        try:
            text = await tool.handler(self._client, args)
        except KsefError as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            return ToolCallResult.error(str(exc))

        return ToolCallResult.text(text)
