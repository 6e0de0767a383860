"""Web page collector for competitor product and pricing pages."""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup, Tag

from competitive_intel.agents.collectors.base_collector import BaseCollector, keywords_in
from competitive_intel.config.pipeline_config import ScrapingSelectors
from competitive_intel.data_management.schemas import (
    ChannelType,
    DataSource,
    ImpactAssessment,
    MonitoringRecord,
    RawData,
    SignalDraft,
    SignalType,
    StrategicImpact,
    Timeframe,
)
from competitive_intel.exceptions import FetchStatusError
from competitive_intel.interfaces import Fetcher

PRICE_PATTERN = re.compile(r"\$(\d+(?:,\d{3})*(?:\.\d{2})?)")

PRODUCT_KEYWORDS = [
    "features", "pricing", "plans", "subscription", "free trial",
    "enterprise", "api", "integration", "security", "compliance",
    "support", "analytics", "dashboard", "reporting",
]

DESCRIPTION_LIMIT = 300


def extract_period(text: str) -> str:
    lowered = text.lower()
    if "/month" in lowered or "/mo" in lowered or "monthly" in lowered:
        return "monthly"
    if "/year" in lowered or "/yr" in lowered or "annually" in lowered or "yearly" in lowered:
        return "yearly"
    if "/day" in lowered or "daily" in lowered:
        return "daily"
    return "unknown"


def extract_plan_name(element: Tag) -> str:
    """Heading of the nearest enclosing plan, tier or package block."""
    container = element if _is_plan_block(element) else element.find_parent(_is_plan_block)
    if container is None:
        return "Unknown Plan"
    heading = container.find(["h1", "h2", "h3", "h4"])
    text = heading.get_text(strip=True) if heading else ""
    return text or "Unknown Plan"


def _is_plan_block(tag: Tag) -> bool:
    classes = tag.get("class") or []
    return any(c in ("plan", "tier", "package") for c in classes)


class WebScrapingCollector(BaseCollector):
    """
    Scrapes one page with configured CSS selectors.

    A page with a pricing block becomes a pricing-change draft with high,
    immediate impact; any other page becomes a feature-update draft.
    """

    channel_type = ChannelType.PRODUCT_UPDATES

    def __init__(
        self,
        collector_id: str,
        source: DataSource,
        competitor_id: str,
        schedule: str,
        fetcher: Fetcher,
        selectors: Optional[ScrapingSelectors] = None,
        **kwargs: Any,
    ):
        super().__init__(collector_id, source, competitor_id, schedule, fetcher, **kwargs)
        self.selectors = selectors or ScrapingSelectors()

    async def collect(self) -> List[RawData]:
        response = await self.fetcher.get(self.source.url, headers=self._request_headers())
        if not response.ok:
            raise FetchStatusError(self.source.url, response.status)
        return [self.parse_page(response.body)]

    def parse_page(self, html: str) -> Dict[str, Any]:
        soup = BeautifulSoup(html, "html.parser")
        title_el = soup.select_one(self.selectors.title)
        content_el = soup.select_one(self.selectors.content)

        data: Dict[str, Any] = {
            "url": self.source.url,
            "title": title_el.get_text(" ", strip=True) if title_el else "",
            "content": " ".join(content_el.get_text(" ").split()) if content_el else "",
            "last_modified": datetime.now(timezone.utc).isoformat(),
        }

        if self.selectors.pricing:
            pricing = self._extract_pricing(soup, self.selectors.pricing)
            if pricing:
                data["pricing"] = pricing

        if self.selectors.features:
            data["features"] = [
                el.get_text(" ", strip=True) for el in soup.select(self.selectors.features)
            ]

        return data

    @staticmethod
    def _extract_pricing(soup: BeautifulSoup, selector: str) -> List[Dict[str, Any]]:
        pricing = []
        for element in soup.select(selector):
            text = element.get_text(" ", strip=True)
            match = PRICE_PATTERN.search(text)
            if not match:
                continue
            pricing.append(
                {
                    "amount": float(match.group(1).replace(",", "")),
                    "currency": "USD",
                    "period": extract_period(text),
                    "plan": extract_plan_name(element),
                }
            )
        return pricing

    def validate(self, raw: RawData) -> bool:
        return isinstance(raw, dict) and bool(raw.get("title") or raw.get("content"))

    def transform(self, raw: RawData) -> MonitoringRecord:
        has_pricing = bool(raw.get("pricing"))
        content = raw.get("content", "")

        if has_pricing:
            signal_type, strategic = SignalType.PRICING_CHANGE, StrategicImpact.HIGH
        else:
            signal_type, strategic = SignalType.FEATURE_UPDATE, StrategicImpact.MEDIUM

        return MonitoringRecord(
            id=self._new_record_id(),
            competitor_id=self.competitor_id,
            channel=self.channel_type,
            timestamp=self._clock(),
            collected_at=self._clock(),
            raw_data=raw,
            draft=SignalDraft(
                type=signal_type,
                category="product_page",
                title=raw.get("title") or self.source.name,
                description=content[:DESCRIPTION_LIMIT],
                impact=ImpactAssessment(
                    strategic=strategic,
                    timeframe=Timeframe.IMMEDIATE,
                    affected_segments=["pricing", "product"],
                    response_recommendation="Review competitive positioning",
                ),
                keywords=keywords_in(content, PRODUCT_KEYWORDS),
                topics=["product", "pricing"],
            ),
            confidence=0.9,
            source=self.source,
        )
