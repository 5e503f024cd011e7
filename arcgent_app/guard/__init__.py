"""Request boundary guard: auth, CORS, body limits and rate limiting."""
from .auth import extract_bearer_token, is_authorized
from .body import read_limited_body
from .cors import cors_headers
from .rate_limit import (
    RateLimitDecision,
    RateLimitEntry,
    RateLimiter,
    client_identity,
    rate_limit_key,
)

__all__ = [
    "extract_bearer_token",
    "is_authorized",
    "read_limited_body",
    "cors_headers",
    "RateLimitDecision",
    "RateLimitEntry",
    "RateLimiter",
    "client_identity",
    "rate_limit_key",
]
