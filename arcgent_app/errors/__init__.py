"""
Error classification system for the prompt artifact pipeline.

This module provides the structured exception hierarchy for inbound payload
problems, provider failures, and contract recovery paths.
"""

from .payload import (
    PayloadError,
    MalformedPayloadError,
    InvalidPayloadShapeError,
    BodyTooLargeError,
)
from .provider import (
    ProviderError,
    ProviderTransientError,
    ProviderFatalError,
    CompletionCancelledError,
    ConfigurationError,
    to_error_message,
)
from .recovery import (
    GracefulDegradationError,
    ValidationFailure,
    RepairInvocationFailure,
)

__all__ = [
    # Payload Errors
    "PayloadError",
    "MalformedPayloadError",
    "InvalidPayloadShapeError",
    "BodyTooLargeError",
    # Provider Errors
    "ProviderError",
    "ProviderTransientError",
    "ProviderFatalError",
    "CompletionCancelledError",
    "ConfigurationError",
    "to_error_message",
    # Recovery Categories
    "GracefulDegradationError",
    "ValidationFailure",
    "RepairInvocationFailure",
]
