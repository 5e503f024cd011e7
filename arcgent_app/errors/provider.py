"""
Provider failure classifications for upstream completion calls.

Transient errors are eligible for bounded retry; fatal errors are surfaced
immediately.
"""

from typing import Optional, Dict, Any

DEFAULT_ERROR_MESSAGE = "Request failed while generating content."


class ProviderError(Exception):
    """Base class for completion provider failures."""

    transient = False

    def __init__(self, message: str, status_code: Optional[int] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.context = context or {}


class ProviderTransientError(ProviderError):
    """Timeouts, 5xx/408/425/429 and network-pattern failures."""

    transient = True

    def __init__(self, message: str, status_code: Optional[int] = None,
                 attempt: Optional[int] = None, **kwargs):
        super().__init__(message, status_code=status_code, **kwargs)
        self.attempt = attempt
        self.recoverable = True


class ProviderFatalError(ProviderError):
    """Other 4xx responses and unrecoverable stream failures."""

    def __init__(self, message: str, status_code: Optional[int] = None, **kwargs):
        super().__init__(message, status_code=status_code, **kwargs)
        self.recoverable = False


class CompletionCancelledError(Exception):
    """The caller cancelled an in-flight completion."""

    def __init__(self, message: str = "Completion request was cancelled."):
        super().__init__(message)
        self.recoverable = False


class ConfigurationError(Exception):
    """Configuration is missing or invalid."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


def to_error_message(error: BaseException) -> str:
    """User-visible message for an exception."""
    message = str(error).strip()
    return message or DEFAULT_ERROR_MESSAGE
