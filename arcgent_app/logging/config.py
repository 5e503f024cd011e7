"""
Centralized logging configuration for the Arcgent service.

This module provides standardized logging configuration using structlog
for all components. Provider calls, retry decisions, repair outcomes and
boundary guard decisions all log through this configuration so request
handling can be audited from a single structured stream.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_provider_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound to the upstream provider subsystem.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for provider calls
    """
    return get_logger(name).bind(subsystem="provider")


def get_guard_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound to the request boundary guard subsystem.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for admission decisions
    """
    return get_logger(name).bind(subsystem="guard", audit_trail=True)


def log_retry_decision(
    logger: FilteringBoundLogger,
    attempt: int,
    max_attempts: int,
    transient: bool,
    error: str,
    delay_seconds: Optional[float] = None,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log whether a failed provider attempt will be retried.

    Args:
        logger: Structlog logger instance
        attempt: 1-based attempt number that failed
        max_attempts: Total attempts allowed
        transient: Whether the failure was classified transient
        error: Failure message
        delay_seconds: Backoff before the next attempt, if retrying
        context: Additional context data
    """
    will_retry = delay_seconds is not None
    bound_logger = logger.bind(
        attempt=attempt,
        max_attempts=max_attempts,
        transient=transient,
        error=error,
        retry="SCHEDULED" if will_retry else "EXHAUSTED",
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if will_retry:
        bound_logger.warning("Provider attempt failed, retrying", delay_seconds=delay_seconds)
    else:
        bound_logger.error("Provider attempt failed, giving up")


def log_repair_outcome(
    logger: FilteringBoundLogger,
    stage: str,
    is_valid: bool,
    target_agent: str,
    reason: Optional[str] = None,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log the outcome of one contract enforcement stage.

    Args:
        logger: Structlog logger instance
        stage: Stage name (initial, repair, fallback)
        is_valid: Whether the output validated after this stage
        target_agent: Target agent the artifact is built for
        reason: Detailed reason for the outcome
        context: Additional context data
    """
    bound_logger = logger.bind(
        stage=stage,
        contract_result="PASS" if is_valid else "FAIL",
        target_agent=target_agent,
    )

    if reason:
        bound_logger = bound_logger.bind(reason=reason)

    if context:
        bound_logger = bound_logger.bind(context=context)

    if is_valid:
        bound_logger.info("Contract check passed")
    else:
        bound_logger.warning("Contract check failed")
