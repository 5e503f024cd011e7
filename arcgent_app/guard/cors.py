"""CORS header reflection for allow-listed origins."""

from typing import Iterable, Optional

ALLOWED_METHODS = "GET,POST,OPTIONS"
ALLOWED_HEADERS = "Content-Type, Authorization, X-Proxy-Auth"
MAX_AGE_SECONDS = 86400


def cors_headers(origin: Optional[str], allowed_origins: Iterable[str]) -> dict[str, str]:
    """
    Headers to add for a request origin.

    Origins outside the allow-list get no CORS headers; the request itself
    is still served.
    """
    if not origin or origin not in allowed_origins:
        return {}

    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Access-Control-Max-Age": str(MAX_AGE_SECONDS),
        "Vary": "Origin",
    }
