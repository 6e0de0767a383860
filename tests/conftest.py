"""Shared fixtures: fake fetcher, fixed clock and record/source builders."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Union

import pytest

from competitive_intel.data_management.schemas import (
    ChannelType,
    DataSource,
    MonitoringRecord,
    RateLimit,
    SignalDraft,
    SourceType,
)
from competitive_intel.interfaces import FetchResponse

FIXED_NOW = datetime(2024, 6, 3, 12, 0, tzinfo=timezone.utc)


class FakeFetcher:
    """Serves canned responses by URL. Unknown URLs return 404."""

    def __init__(self, pages: Optional[Dict[str, Union[str, FetchResponse, Exception]]] = None):
        self.pages: Dict[str, Union[str, FetchResponse, Exception]] = dict(pages or {})
        self.requests: List[str] = []

    async def get(self, url, headers=None) -> FetchResponse:
        self.requests.append(url)
        page = self.pages.get(url)
        if page is None:
            return FetchResponse(status=404, body="")
        if isinstance(page, Exception):
            raise page
        if isinstance(page, FetchResponse):
            return page
        return FetchResponse(status=200, body=page)


class FakeClock:
    """Settable UTC clock."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_source() -> Callable[..., DataSource]:
    def _make(
        source_id: str = "acme-blog",
        type: SourceType = SourceType.RSS,
        url: str = "https://acme.com/blog/feed.xml",
        reliability: float = 0.9,
        **kwargs,
    ) -> DataSource:
        return DataSource(
            id=source_id,
            name=kwargs.pop("name", f"Source {source_id}"),
            type=type,
            url=url,
            rate_limit=kwargs.pop(
                "rate_limit",
                RateLimit(requests_per_hour=100, requests_per_day=1000, burst_limit=10),
            ),
            reliability=reliability,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_record(make_source) -> Callable[..., MonitoringRecord]:
    def _make(
        raw_data: Union[dict, str] = None,
        record_id: str = "rec-1",
        confidence: float = 0.8,
        source: Optional[DataSource] = None,
        channel: ChannelType = ChannelType.PRODUCT_UPDATES,
        timestamp: datetime = FIXED_NOW,
        collected_at: datetime = FIXED_NOW,
        draft: Optional[SignalDraft] = None,
    ) -> MonitoringRecord:
        return MonitoringRecord(
            id=record_id,
            competitor_id="acme",
            channel=channel,
            timestamp=timestamp,
            collected_at=collected_at,
            raw_data=raw_data if raw_data is not None else {
                "title": "Acme ships new dashboard",
                "content": "Acme added a reporting dashboard to the analytics suite.",
            },
            draft=draft or SignalDraft(),
            confidence=confidence,
            source=source or make_source(),
        )

    return _make
