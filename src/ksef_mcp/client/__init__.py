"""KSeF API client."""

from ksef_mcp.client.client import DEFAULT_BASE_URL, KsefClient
from ksef_mcp.client.errors import KsefApiError, KsefError, KsefRequestError, KsefTransportError

__all__ = [
    "DEFAULT_BASE_URL",
    "KsefApiError",
    "KsefClient",
    "KsefError",
    "KsefRequestError",
    "KsefTransportError",
]
