"""
Structured logging infrastructure using structlog.

This module provides the library's own diagnostic logging with:
- JSON formatting for production
- Console formatting for development
- Context variables for request tracing
- Log level management

These are the shipper's internal logs, not the application records it
delivers.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

LOGGER_NAMESPACE = "logshipper"

OUTPUTS = ("stdout", "stderr")


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add application context to log entries."""
    event_dict["app"] = LOGGER_NAMESPACE
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_output: str = "stderr",
) -> logging.Logger:
    """
    Configure structured logging for the library.

    Only the ``logshipper`` logger tree is touched. Its records do not
    propagate to the root logger, so a LogShippingHandler installed there
    never sees the shipper's own diagnostics. Calling this again replaces
    the previous handler.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format (json or console)
        log_output: Output destination (stdout or stderr)

    Returns:
        The library's namespace logger
    """
    if log_output not in OUTPUTS:
        raise ValueError(f"Unsupported log output: {log_output}")

    handler = logging.StreamHandler(sys.stdout if log_output == "stdout" else sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))

    library_logger = logging.getLogger(LOGGER_NAMESPACE)
    for existing in list(library_logger.handlers):
        library_logger.removeHandler(existing)
    library_logger.addHandler(handler)
    library_logger.setLevel(getattr(logging, log_level.upper()))
    library_logger.propagate = False

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_app_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=log_output == "stderr" and sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return library_logger


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def is_internal_logger(name: str) -> bool:
    """
    Check whether a stdlib logger name belongs to this library.

    Used by the logging adapter so the shipper never ships its own
    diagnostics back into the stream it is writing to.
    """
    return name == LOGGER_NAMESPACE or name.startswith(LOGGER_NAMESPACE + ".")
