"""Exception hierarchy for the monitoring pipeline.

Collector errors carry a category that drives the orchestrator's response:

- critical: authentication, authorization, configuration or database
  failures. Alert, never restart.
- retryable: network, timeout, rate limit or temporary failures. Restart.
- unknown: everything else. Log only.

Critical patterns are checked first, so "database timeout" is critical.
"""

import re
from enum import Enum
from typing import Optional

RETRYABLE_PATTERN = re.compile(r"network|timeout|rate limit|temporary", re.IGNORECASE)
CRITICAL_PATTERN = re.compile(
    r"authentication|authorization|configuration|database", re.IGNORECASE
)


class ErrorCategory(str, Enum):
    CRITICAL = "critical"
    RETRYABLE = "retryable"
    UNKNOWN = "unknown"


def classify_error_message(message: str) -> ErrorCategory:
    """Classify an error message into a collector error category."""
    if CRITICAL_PATTERN.search(message):
        return ErrorCategory.CRITICAL
    if RETRYABLE_PATTERN.search(message):
        return ErrorCategory.RETRYABLE
    return ErrorCategory.UNKNOWN


class CompetitiveIntelError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(CompetitiveIntelError):
    """Invalid configuration, such as an unparseable cron schedule."""


class CollectorError(CompetitiveIntelError):
    """A failed collection tick, classified by its message."""

    def __init__(
        self,
        message: str,
        collector_id: str = "",
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.collector_id = collector_id
        self.cause = cause
        self.category = classify_error_message(message)

    @property
    def is_retryable(self) -> bool:
        return self.category is ErrorCategory.RETRYABLE

    @property
    def is_critical(self) -> bool:
        return self.category is ErrorCategory.CRITICAL

    @classmethod
    def from_exception(cls, exc: BaseException, collector_id: str = "") -> "CollectorError":
        if isinstance(exc, CollectorError):
            return exc
        message = str(exc) or exc.__class__.__name__
        # Exception class names such as ReadTimeout or ConnectError carry the category
        name = exc.__class__.__name__
        if "Timeout" in name and "timeout" not in message.lower():
            message = f"{message} (timeout)"
        elif ("Connect" in name or "Network" in name) and "network" not in message.lower():
            message = f"{message} (network error)"
        return cls(message, collector_id=collector_id, cause=exc)


class FetchStatusError(CompetitiveIntelError):
    """Non-success HTTP status from a fetch, phrased so it classifies."""

    def __init__(self, url: str, status: int):
        self.url = url
        self.status = status
        super().__init__(f"{describe_status(status)} (HTTP {status}) fetching {url}")


def describe_status(status: int) -> str:
    if status == 401:
        return "authentication failed"
    if status == 403:
        return "authorization denied"
    if status == 429:
        return "rate limit exceeded"
    if status in (408, 504):
        return "gateway timeout"
    if status >= 500:
        return "temporary server error"
    return "unexpected response"


class VerificationError(CompetitiveIntelError):
    """Internal verification failure. Never escapes the verifier."""


class QueueFullError(CompetitiveIntelError):
    """The ingestion queue is at capacity."""
