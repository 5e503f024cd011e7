"""
Recovery strategy classifications for contract enforcement.

These errors describe why the pipeline fell back to a degraded path; only
a fallback that itself fails validation escapes to the caller.
"""

from typing import Optional, Any


class GracefulDegradationError(Exception):
    """Mixin for errors that allow continued operation with reduced functionality."""

    def __init__(self, message: str, degraded_functionality: Optional[str] = None,
                 fallback_strategy: Optional[str] = None, **kwargs):
        super().__init__(message)
        self.degraded_functionality = degraded_functionality
        self.fallback_strategy = fallback_strategy
        self.allows_degradation = True


class ValidationFailure(GracefulDegradationError):
    """Generated output does not satisfy the contract schema."""

    def __init__(self, message: str, validation: Any = None, **kwargs):
        kwargs.setdefault("degraded_functionality", "model_output")
        kwargs.setdefault("fallback_strategy", "auto_repair")
        super().__init__(message, **kwargs)
        self.validation = validation


class RepairInvocationFailure(GracefulDegradationError):
    """The secondary formatting call failed; the canonical fallback takes over."""

    def __init__(self, message: str, cause: Optional[BaseException] = None, **kwargs):
        kwargs.setdefault("degraded_functionality", "auto_repair")
        kwargs.setdefault("fallback_strategy", "canonical_fallback")
        super().__init__(message, **kwargs)
        self.cause = cause
