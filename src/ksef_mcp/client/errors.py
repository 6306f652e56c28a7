"""Error types for the KSeF API client."""


class KsefError(Exception):
    """Base error for all KSeF API client failures."""


class KsefApiError(KsefError):
    """The KSeF API answered with a non-2xx status.

    The message keeps both the numeric status and the body verbatim so the
    caller can diagnose the failure without re-issuing the call.
    """

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"KSeF API error {status_code}: {body}")


class KsefTransportError(KsefError):
    """The HTTP exchange failed before a response arrived (DNS, connect, timeout, reset)."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("KSeF transport error" + (f": {detail}" if detail else ""))


class KsefRequestError(KsefError):
    """The request could not be built from the given values; nothing was sent."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Invalid KSeF request: {detail}")
