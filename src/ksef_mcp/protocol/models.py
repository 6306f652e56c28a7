"""MCP models — JSON-RPC 2.0 messages, tool definitions and tool results.

Implements the message shapes used by the Model Context Protocol for the
``initialize``, ``tools/list`` and ``tools/call`` methods. Pure data: nothing
here performs I/O or validates tool arguments.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ksef_mcp.protocol.errors import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    RequestParseError,
)

RequestId = int | str | None

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request or notification.

    A message without an ``id`` member is a notification and must not be
    answered. An explicit ``"id": null`` still counts as a request. The
    ``jsonrpc`` member may be omitted; when present it must be ``"2.0"``.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId = None
    method: str
    params: dict[str, Any] | None = None

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set

    @classmethod
    def from_line(cls, line: str) -> JsonRpcRequest:
        """Decode one framed input line.

        Raises:
            RequestParseError: ``PARSE_ERROR`` when the line is not JSON,
                ``INVALID_REQUEST`` when it is JSON but not a request object.
        """
        try:
            data: Any = json.loads(line)
        except (ValueError, RecursionError) as exc:
            raise RequestParseError(PARSE_ERROR, f"Parse error: {exc}") from exc

        if not isinstance(data, dict):
            raise RequestParseError(INVALID_REQUEST, "Invalid request: expected a JSON object")

        request_id = data.get("id")
        if request_id is not None and (
            isinstance(request_id, bool) or not isinstance(request_id, int | str)
        ):
            raise RequestParseError(
                INVALID_REQUEST, "Invalid request: 'id' must be a string, an integer or null"
            )

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            fields = ", ".join(
                ".".join(str(part) for part in err["loc"]) or "request" for err in exc.errors()
            )
            raise RequestParseError(
                INVALID_REQUEST, f"Invalid request: bad or missing {fields}", request_id
            ) from exc


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message carrying exactly one of result/error."""

    jsonrpc: str = "2.0"
    id: RequestId = None
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _exactly_one_outcome(self) -> JsonRpcResponse:
        if (self.result is None) == (self.error is None):
            msg = "a response carries exactly one of 'result' or 'error'"
            raise ValueError(msg)
        return self

    @classmethod
    def success(cls, request_id: RequestId, result: dict[str, Any]) -> JsonRpcResponse:
        return cls(id=request_id, result=result)

    @classmethod
    def failure(
        cls,
        request_id: RequestId,
        code: int,
        message: str,
        data: Any = None,
    ) -> JsonRpcResponse:
        return cls(id=request_id, error=JsonRpcError(code=code, message=message, data=data))

    @classmethod
    def parse_error(cls, detail: str = "Parse error") -> JsonRpcResponse:
        return cls.failure(None, PARSE_ERROR, detail)

    @classmethod
    def invalid_request(cls, request_id: RequestId, detail: str = "Invalid request") -> JsonRpcResponse:
        return cls.failure(request_id, INVALID_REQUEST, detail)

    @classmethod
    def method_not_found(cls, request_id: RequestId, method: str) -> JsonRpcResponse:
        return cls.failure(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")

    @classmethod
    def invalid_params(cls, request_id: RequestId, detail: str) -> JsonRpcResponse:
        return cls.failure(request_id, INVALID_PARAMS, detail)

    @classmethod
    def internal_error(cls, request_id: RequestId, detail: str = "Internal error") -> JsonRpcResponse:
        return cls.failure(request_id, INTERNAL_ERROR, detail)

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready dict; ``id`` is always present, null if unknown."""
        wire: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            wire["error"] = self.error.model_dump(exclude_none=True)
        else:
            wire["result"] = self.result
        return wire


# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class ToolDefinition(BaseModel):
    """A tool definition as returned by ``tools/list``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict, alias="inputSchema")

    @classmethod
    def create(cls, name: str, description: str, schema: dict[str, Any]) -> ToolDefinition:
        return cls(name=name, description=description, input_schema=schema)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class TextContent(BaseModel):
    """Plain text content item of a tool result."""

    type: Literal["text"] = "text"
    text: str


class ToolCallResult(BaseModel):
    """The outcome of a ``tools/call``.

    ``isError`` marks a tool that ran but failed (bad arguments, remote
    failure); the enclosing JSON-RPC response is still a success.
    """

    model_config = ConfigDict(populate_by_name=True)

    content: list[TextContent] = []
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def text(cls, text: str) -> ToolCallResult:
        """Wrap one string as a successful result."""
        return cls(content=[TextContent(text=text)], is_error=False)

    @classmethod
    def error(cls, message: str) -> ToolCallResult:
        """Wrap one message as an error-flagged result."""
        return cls(content=[TextContent(text=message)], is_error=True)

    @property
    def joined_text(self) -> str:
        """Concatenate the text of all content items, newline-separated."""
        return "\n".join(item.text for item in self.content)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
