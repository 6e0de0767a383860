"""RSS/Atom feed collector for competitor blogs and news."""

from datetime import datetime, timezone
from typing import Any, Dict, List

import feedparser
from bs4 import BeautifulSoup
from dateutil import parser as dateutil_parser
from yarl import URL

from competitive_intel.agents.collectors.base_collector import BaseCollector, keywords_in
from competitive_intel.data_management.schemas import (
    ChannelType,
    ImpactAssessment,
    MonitoringRecord,
    RawData,
    SignalDraft,
    SignalType,
    StrategicImpact,
    Timeframe,
)
from competitive_intel.exceptions import FetchStatusError

TECH_KEYWORDS = [
    "ai", "machine learning", "api", "cloud", "kubernetes", "docker",
    "microservices", "database", "performance", "security", "scaling",
    "architecture", "framework", "library", "open source",
]

DESCRIPTION_LIMIT = 200


def strip_html(content: str) -> str:
    """Plain text of an HTML fragment with whitespace collapsed."""
    if not content:
        return ""
    text = BeautifulSoup(content, "html.parser").get_text(" ")
    return " ".join(text.split())


class RSSFeedCollector(BaseCollector):
    """
    Collects feed entries and drafts them as technical insights.

    The feed body is fetched through the injected Fetcher and parsed with
    feedparser, which handles RSS 0.9x/1.0/2.0 and Atom. Entry dates are
    normalized to UTC from ``published_parsed`` or, failing that, parsed from
    the raw date string with dateutil.
    """

    channel_type = ChannelType.TECH_BLOGS

    async def collect(self) -> List[RawData]:
        response = await self.fetcher.get(self.source.url, headers=self._request_headers())
        if not response.ok:
            raise FetchStatusError(self.source.url, response.status)

        parsed = feedparser.parse(response.body)
        if parsed.bozo and not parsed.entries:
            raise ValueError(f"Unparseable feed at {self.source.url}: {parsed.get('bozo_exception')}")

        return [self._normalize_entry(entry) for entry in parsed.entries]

    def _normalize_entry(self, entry: Any) -> Dict[str, Any]:
        link = entry.get("link", "")
        content = ""
        if entry.get("content"):
            content = entry["content"][0].get("value", "")
        content = content or entry.get("summary", "") or entry.get("description", "")
        return {
            "id": entry.get("id") or link,
            "title": entry.get("title", ""),
            "content": content,
            "url": link,
            "published_at": self._parse_date(entry).isoformat(),
            "author": entry.get("author", ""),
            "categories": [tag.get("term", "") for tag in entry.get("tags", []) if tag.get("term")],
            "source": self.source.name,
        }

    @staticmethod
    def _parse_date(entry: Any) -> datetime:
        parsed_struct = entry.get("published_parsed") or entry.get("updated_parsed")
        if parsed_struct:
            return datetime(*parsed_struct[:6], tzinfo=timezone.utc)

        raw = entry.get("published") or entry.get("updated")
        if raw:
            try:
                value = dateutil_parser.parse(raw)
                if value.tzinfo is None:
                    value = value.replace(tzinfo=timezone.utc)
                return value.astimezone(timezone.utc)
            except (ValueError, OverflowError):
                pass
        return datetime.now(timezone.utc)

    def validate(self, raw: RawData) -> bool:
        return isinstance(raw, dict) and bool(raw.get("title")) and bool(raw.get("url"))

    def transform(self, raw: RawData) -> MonitoringRecord:
        text = strip_html(raw.get("content", ""))
        description = text[:DESCRIPTION_LIMIT] + ("..." if len(text) > DESCRIPTION_LIMIT else "")
        return MonitoringRecord(
            id=self._new_record_id(),
            competitor_id=self.competitor_id or self._competitor_from_url(raw["url"]),
            channel=self.channel_type,
            timestamp=dateutil_parser.isoparse(raw["published_at"]),
            collected_at=self._clock(),
            raw_data=raw,
            draft=SignalDraft(
                type=SignalType.TECHNICAL_INSIGHT,
                category="blog_post",
                title=raw["title"],
                description=description,
                impact=ImpactAssessment(
                    strategic=StrategicImpact.MEDIUM,
                    timeframe=Timeframe.MEDIUM_TERM,
                    affected_segments=["technical"],
                    response_recommendation="Analyze for technical insights",
                ),
                keywords=keywords_in(text, TECH_KEYWORDS),
                topics=list(raw.get("categories", [])),
            ),
            confidence=0.8,
            source=self.source,
        )

    @staticmethod
    def _competitor_from_url(url: str) -> str:
        host = URL(url).host or ""
        return host.removeprefix("www.").replace(".", "_")
