"""
Centralized logging configuration for the Tomato Clock timer core.

This module provides standardized logging configuration using structlog
for all components. All logging throughout the system should use this
configuration to ensure consistent formatting and structured logging.
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

    # structlog renders the message, stdlib only routes it
    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"
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
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

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


def get_state_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for timer phase transitions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for the phase state machine
    """
    return get_logger(name).bind(
        subsystem="state_machine",
        audit_trail=True
    )


def get_storage_logger(name: str) -> FilteringBoundLogger:
    """Get a logger bound for storage reads and writes."""
    return get_logger(name).bind(subsystem="storage")


def log_state_transition(
    logger: FilteringBoundLogger,
    from_phase: str,
    to_phase: str,
    trigger: str,
    cycle: int,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a phase transition with standardized format.

    Args:
        logger: Structlog logger instance
        from_phase: Phase being completed
        to_phase: Phase being entered
        trigger: What caused the completion (alarm, tick, skip, recovery)
        cycle: Cycle number after the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        from_phase=from_phase,
        to_phase=to_phase,
        trigger=trigger,
        cycle=cycle,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Phase transition")
