"""Shared-secret authorization for proxied requests."""

import hmac
import re
from typing import Any, Mapping, Optional

from ..logging.config import get_guard_logger
from .headers import header_value

logger = get_guard_logger(__name__)

_BEARER_PATTERN = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    match = _BEARER_PATTERN.match(authorization)
    if not match:
        return None
    return match.group(1).strip() or None


def _matches(candidate: Optional[str], secret: str) -> bool:
    if not candidate:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), secret.encode("utf-8"))


def is_authorized(headers: Mapping[str, Any], secret: Optional[str]) -> bool:
    """
    Check the shared secret from X-Proxy-Auth or a Bearer Authorization header.

    An unset secret authorizes every request.
    """
    if not secret:
        return True

    proxy_auth = (header_value(headers, "X-Proxy-Auth") or "").strip()
    if _matches(proxy_auth, secret):
        return True

    if _matches(extract_bearer_token(header_value(headers, "Authorization")), secret):
        return True

    logger.warning("Request rejected by shared-secret check")
    return False
