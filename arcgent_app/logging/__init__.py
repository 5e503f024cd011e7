"""
Logging configuration and utilities for the Arcgent service.
"""
from .config import (
    configure_logging,
    get_guard_logger,
    get_logger,
    get_provider_logger,
    log_repair_outcome,
    log_retry_decision,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "get_provider_logger",
    "get_guard_logger",
    "log_retry_decision",
    "log_repair_outcome",
]
