"""KsefClient — async wrapper around the KSeF v2 REST API.

Each public coroutine maps to one remote endpoint and returns the raw
response body. Bodies are relayed unparsed: the remote schema is not part of
this package's contract.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from ksef_mcp.client.errors import KsefApiError, KsefRequestError, KsefTransportError
from ksef_mcp.utils.telemetry import (
    ATTR_HTTP_METHOD,
    ATTR_HTTP_PATH,
    ATTR_HTTP_STATUS,
    get_tracer,
)

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

DEFAULT_BASE_URL = "https://api-test.ksef.mf.gov.pl/v2"
DEFAULT_TIMEOUT = 30.0
CONTINUATION_TOKEN_HEADER = "x-continuation-token"


def _segment(value: str) -> str:
    return quote(value, safe="")


class KsefClient:
    """Async context manager holding the HTTP connection pool and the session token.

    Usage::

        async with KsefClient(session_token="...") as client:
            body = await client.get_invoice("5265877635-20250626-010080DD2B5E-26")

    The token is read by every authenticated call and only changed through
    :meth:`set_session_token` / :meth:`clear_session_token`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        session_token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session_token: str | None = None
        if session_token:
            self.set_session_token(session_token)
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def with_base_url(cls, base_url: str, **kwargs: Any) -> KsefClient:
        """Create a client targeting *base_url* instead of the test environment."""
        return cls(base_url, **kwargs)

    async def __aenter__(self) -> KsefClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

    def __repr__(self) -> str:
        token = "set" if self._session_token else "unset"
        return f"KsefClient(base_url={self._base_url!r}, session_token={token})"

    # ------------------------------------------------------------------
    # Session token
    # ------------------------------------------------------------------

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def has_session_token(self) -> bool:
        return self._session_token is not None

    def set_session_token(self, token: str) -> None:
        """Install the bearer token sent on subsequent authenticated calls."""
        token = token.strip()
        if not token:
            msg = "session token must be a non-empty string"
            raise ValueError(msg)
        self._session_token = token

    def clear_session_token(self) -> None:
        """Forget the session token. Clearing twice is a no-op."""
        self._session_token = None

    # ------------------------------------------------------------------
    # Authentication sessions
    # ------------------------------------------------------------------

    async def get_active_sessions(
        self, page_size: int = 10, continuation_token: str | None = None
    ) -> str:
        """``GET /auth/sessions`` — list active authentication sessions."""
        headers = {CONTINUATION_TOKEN_HEADER: continuation_token} if continuation_token else None
        return await self._request(
            "GET", "/auth/sessions", params={"pageSize": page_size}, headers=headers
        )

    async def get_current_session(self) -> str:
        """``GET /auth/sessions/current``."""
        return await self._request("GET", "/auth/sessions/current")

    async def terminate_session(self, reference_number: str) -> str:
        """``DELETE /auth/sessions/{referenceNumber}``."""
        return await self._request("DELETE", f"/auth/sessions/{_segment(reference_number)}")

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    async def get_invoice(self, ksef_number: str) -> str:
        """``GET /invoices/ksef/{ksefNumber}`` — returns the invoice XML."""
        return await self._request("GET", f"/invoices/ksef/{_segment(ksef_number)}")

    async def query_invoice_metadata(
        self,
        filters: dict[str, Any],
        page_size: int = 10,
        page_offset: int = 0,
    ) -> str:
        """``POST /invoices/query/metadata`` with the filters as JSON body."""
        return await self._request(
            "POST",
            "/invoices/query/metadata",
            params={"pageOffset": page_offset, "pageSize": page_size},
            json_body=filters,
        )

    async def create_invoice_export(self, export: dict[str, Any]) -> str:
        """``POST /invoices/exports`` — start an asynchronous export."""
        return await self._request("POST", "/invoices/exports", json_body=export)

    async def get_export_status(self, reference_number: str) -> str:
        """``GET /invoices/exports/{referenceNumber}``."""
        return await self._request("GET", f"/invoices/exports/{_segment(reference_number)}")

    # ------------------------------------------------------------------
    # Online sessions
    # ------------------------------------------------------------------

    async def create_online_session(self, session: dict[str, Any] | None = None) -> str:
        """``POST /sessions/online``; the body is omitted when *session* is empty."""
        return await self._request("POST", "/sessions/online", json_body=session or None)

    async def close_online_session(self, reference_number: str) -> str:
        """``POST /sessions/online/{referenceNumber}/close``."""
        return await self._request(
            "POST", f"/sessions/online/{_segment(reference_number)}/close"
        )

    async def submit_invoice(self, session_reference_number: str, invoice: str) -> str:
        """``POST /sessions/online/{referenceNumber}/invoices`` with a raw XML body."""
        return await self._request(
            "POST",
            f"/sessions/online/{_segment(session_reference_number)}/invoices",
            content=invoice.encode("utf-8"),
            headers={"Content-Type": "application/xml"},
        )

    # ------------------------------------------------------------------
    # Public endpoints
    # ------------------------------------------------------------------

    async def get_public_key_certificates(self) -> str:
        """``GET /security/public-key-certificates``; never sends the token."""
        return await self._request(
            "GET", "/security/public-key-certificates", authenticated=False
        )

    async def get_rate_limits(self) -> str:
        """``GET /rate-limits``; the token is sent when one is set."""
        return await self._request("GET", "/rate-limits")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _headers(self, extra: dict[str, str] | None, *, authenticated: bool) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if extra:
            headers.update(extra)
        if authenticated and self._session_token is not None:
            headers["Authorization"] = f"Bearer {self._session_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
        authenticated: bool = True,
    ) -> str:
        """Issue one HTTP call and return the body text of a 2xx response.

        Raises:
            KsefApiError: On any non-2xx status.
            KsefRequestError: When a value cannot be encoded into the request.
            KsefTransportError: When no response could be obtained.
        """
        url = f"{self._base_url}{path}"
        with _tracer.start_as_current_span("ksef.http.request") as span:
            span.set_attribute(ATTR_HTTP_METHOD, method)
            span.set_attribute(ATTR_HTTP_PATH, path)
            logger.debug("KSeF request: %s %s", method, path)
            try:
                request = self._http.build_request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    content=content,
                    headers=self._headers(headers, authenticated=authenticated),
                )
            except UnicodeEncodeError as exc:
                logger.warning("KSeF request %s %s not sent: %s", method, path, exc)
                raise KsefRequestError(f"header values must be ASCII ({exc.reason})") from exc
            try:
                response = await self._http.send(request)
            except httpx.HTTPError as exc:
                logger.warning("KSeF request %s %s failed: %r", method, path, exc)
                raise KsefTransportError(f"{type(exc).__name__}: {exc}") from exc
            span.set_attribute(ATTR_HTTP_STATUS, response.status_code)

        if not response.is_success:
            logger.warning("KSeF request %s %s returned %d", method, path, response.status_code)
            raise KsefApiError(response.status_code, response.text)
        return response.text
