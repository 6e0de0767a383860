"""Loguru setup for collectors, guardrails and the CLI.

Records carry a ``component`` plus optional ``competitor`` and ``collector``
fields, so a failing collection can be traced to the competitor it watches.
Console output on an interactive terminal, JSON lines everywhere else.
"""

import sys
from typing import Any, Optional, TextIO

from loguru import logger

from competitive_intel.config.settings import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan>{extra[scope]} | <level>{message}</level>"
)


def _add_scope(record) -> None:
    extra = record["extra"]
    parts = [extra[key] for key in ("competitor", "collector") if extra.get(key)]
    extra["scope"] = f" [{'/'.join(parts)}]" if parts else ""


def configure_logging(
    level: Optional[str] = None,
    log_format: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    (Re)configure the loguru sink.

    Args:
        level: Overrides CI_LOG_LEVEL
        log_format: "console" or "json"; overrides CI_LOG_FORMAT
        stream: Output stream; stderr for console, stdout for JSON when unset

    Raises:
        ValueError: If ``level`` is not a loguru level name
    """
    level = (level or settings.log_level).upper()
    log_format = (log_format or settings.log_format).lower()
    logger.level(level)

    logger.remove()
    logger.configure(extra={"component": "-"}, patcher=_add_scope)

    if log_format == "console" and (stream or sys.stderr).isatty():
        logger.add(stream or sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)
    else:
        logger.add(
            stream or sys.stdout,
            format="{message}",
            level=level,
            serialize=True,
            diagnose=False,
        )


def get_logger(component: str, **context: Any):
    """
    Get a logger bound to a component and optional monitoring context.

    Empty context values are dropped.

    Example:
        >>> log = get_logger("RSSFeedCollector", competitor="acme", collector="rss-1")
        >>> log.info("Fetched 12 entries")
    """
    bound = {key: value for key, value in context.items() if value}
    return logger.bind(component=component, **bound)


configure_logging()

__all__ = ["logger", "get_logger", "configure_logging"]
