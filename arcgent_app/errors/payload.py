"""
Payload error classifications for inbound requests.

These exceptions are never retried; each maps directly to a 4xx response.
"""

from typing import Optional, Dict, Any


class PayloadError(Exception):
    """Base class for client payload problems."""

    status_code = 400

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class MalformedPayloadError(PayloadError):
    """Request body is not valid JSON."""

    def __init__(self, message: str = "Invalid JSON body.",
                 raw_body: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_body = raw_body


class InvalidPayloadShapeError(PayloadError):
    """Request body is JSON but does not have the expected shape."""

    def __init__(self, message: str = "Invalid payload. Expected { messages: [] }.",
                 field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field


class BodyTooLargeError(PayloadError):
    """Request body exceeds the configured byte cap."""

    status_code = 413

    def __init__(self, max_bytes: int, received_bytes: Optional[int] = None, **kwargs):
        super().__init__(f"Request body exceeds {max_bytes} bytes limit.", **kwargs)
        self.max_bytes = max_bytes
        self.received_bytes = received_bytes
