"""Collaborator interfaces for the monitoring pipeline.

Storage, alert delivery, network fetch and cross-reference checks are
external to the pipeline and injected through these protocols.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional, Protocol, runtime_checkable

from competitive_intel.data_management.schemas import (
    AlertEvent,
    CrossReference,
    DataSource,
    ProcessedSignal,
)


@dataclass
class FetchResponse:
    """Minimal HTTP response used by collectors and robots checks."""

    status: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


@runtime_checkable
class Fetcher(Protocol):
    async def get(
        self,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> FetchResponse:
        ...


@runtime_checkable
class SignalStorage(Protocol):
    """Persistence sink. Window queries are half-open: [start, end)."""

    async def store_signal(self, signal: ProcessedSignal) -> None:
        ...

    async def store_processing_error(
        self,
        data_id: str,
        error: str,
        timestamp: datetime,
        retryable: bool,
    ) -> None:
        ...

    async def get_signal_count(self, start: datetime, end: datetime) -> int:
        ...

    async def get_average_processing_time(self, start: datetime, end: datetime) -> float:
        ...

    async def get_error_rate(self, start: datetime, end: datetime) -> float:
        ...


@runtime_checkable
class AlertingService(Protocol):
    """Fire-and-forget alert sink."""

    async def send_alert(self, event: AlertEvent) -> None:
        ...


@runtime_checkable
class CrossReferenceChecker(Protocol):
    """Checks one independent source for agreement with a signal.

    Returns None when the source has nothing relevant to say.
    """

    async def check(
        self,
        signal: ProcessedSignal,
        source: DataSource,
    ) -> Optional[CrossReference]:
        ...
