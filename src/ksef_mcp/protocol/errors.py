"""JSON-RPC 2.0 error codes and framing errors."""

from __future__ import annotations

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ProtocolError(Exception):
    """Base error for all protocol-layer failures."""


class RequestParseError(ProtocolError):
    """An input line could not be decoded into a request.

    ``code`` is :data:`PARSE_ERROR` for malformed JSON and
    :data:`INVALID_REQUEST` for well-formed JSON that is not a request.
    ``request_id`` is set when the id could still be recovered.
    """

    def __init__(self, code: int, detail: str, request_id: int | str | None = None) -> None:
        self.code = code
        self.detail = detail
        self.request_id = request_id
        super().__init__(detail)
