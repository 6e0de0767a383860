"""Structured logging for the pipeline, stores and verifier using structlog."""

import os
import sys
from typing import Any

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import JSONRenderer

IS_TTY = sys.stderr.isatty()
LOG_FORMAT = os.getenv("CI_LOG_FORMAT", "console").lower()
LOG_LEVEL = os.getenv("CI_LOG_LEVEL", "INFO").upper()


def configure_structured_logging() -> None:
    """
    Configure structlog processors and renderer.

    Console renderer on an interactive terminal, JSON everywhere else.
    """
    processors = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if IS_TTY and LOG_FORMAT == "console":
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_structured_logger(name: str, **context: Any) -> structlog.BoundLogger:
    """
    Get a structlog logger bound to a component name plus extra context.

    Example:
        >>> log = get_structured_logger("MonitoringPipeline", run_id="abc")
        >>> log.info("batch_processed", size=10)
    """
    bound = structlog.get_logger(name).bind(component=name)
    if context:
        bound = bound.bind(**context)
    return bound


configure_structured_logging()

__all__ = ["get_structured_logger", "configure_structured_logging"]
