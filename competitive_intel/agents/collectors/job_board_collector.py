"""Job board collector for competitor hiring signals."""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from bs4 import BeautifulSoup
from dateutil import parser as dateutil_parser
from yarl import URL

from competitive_intel.agents.collectors.base_collector import BaseCollector, keywords_in
from competitive_intel.config.pipeline_config import JobBoardConfig
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

SKILL_KEYWORDS = [
    "javascript", "typescript", "python", "java", "go", "rust",
    "react", "vue", "angular", "node.js", "express",
    "aws", "gcp", "azure", "kubernetes", "docker",
    "postgresql", "mongodb", "redis", "elasticsearch",
    "machine learning", "ai", "data science", "analytics",
    "product management", "agile", "scrum", "leadership",
]

SEGMENT_KEYWORDS: Dict[str, List[str]] = {
    "product": ["product", "pm", "roadmap", "feature"],
    "engineering": ["engineer", "developer", "software", "backend", "frontend"],
    "data": ["data", "analytics", "scientist", "ml", "ai"],
    "sales": ["sales", "account", "revenue", "customer success"],
    "marketing": ["marketing", "growth", "acquisition", "brand"],
    "operations": ["operations", "ops", "infrastructure", "devops"],
}

# First match wins
DEPARTMENT_RULES = [
    (("engineer", "developer"), ["engineering", "technology"]),
    (("product", "pm"), ["product", "strategy"]),
    (("data", "analyst"), ["data", "analytics"]),
    (("sales", "account"), ["sales", "revenue"]),
    (("marketing", "growth"), ["marketing", "growth"]),
]

LEADERSHIP_TITLES = ("ceo", "cto", "cpo", "vp", "chief")
SENIOR_TITLES = ("director", "head of", "lead")
KEY_AREAS = ("ai", "product", "engineering", "growth")
EMERGING_AREAS = ("machine learning", "ai", "blockchain", "crypto")

RECOMMENDATIONS = {
    StrategicImpact.CRITICAL: "Monitor leadership changes and strategic direction shifts",
    StrategicImpact.HIGH: "Analyze team expansion and capability building in key areas",
    StrategicImpact.MEDIUM: "Track emerging technology investments and skill building",
    StrategicImpact.LOW: "Note hiring trends and organizational growth patterns",
}

DAYS_AGO = re.compile(r"(\d+)\+?\s+days?\s+ago", re.IGNORECASE)

DESCRIPTION_LIMIT = 300


def _has_any(text: str, terms) -> bool:
    return bool(keywords_in(text, list(terms)))


def assess_strategic_impact(title: str, description: str) -> StrategicImpact:
    """Leadership hires are critical; senior hires in key areas are high."""
    if _has_any(title, LEADERSHIP_TITLES):
        return StrategicImpact.CRITICAL
    if _has_any(title, SENIOR_TITLES):
        if _has_any(description, KEY_AREAS):
            return StrategicImpact.HIGH
        return StrategicImpact.MEDIUM
    if _has_any(description, EMERGING_AREAS):
        return StrategicImpact.MEDIUM
    return StrategicImpact.LOW


def identify_affected_segments(title: str, description: str) -> List[str]:
    combined = f"{title} {description}"
    segments = [
        segment
        for segment, keywords in SEGMENT_KEYWORDS.items()
        if _has_any(combined, keywords)
    ]
    return segments or ["general"]


def categorize_department(title: str) -> List[str]:
    for terms, departments in DEPARTMENT_RULES:
        if _has_any(title, terms):
            return list(departments)
    return ["general"]


def normalize_company_name(company: str) -> str:
    return re.sub(r"_+", "_", re.sub(r"[^a-z0-9]", "_", company.lower())).strip("_")


def parse_posted_date(value: str, now: datetime) -> datetime:
    """Parse relative ("3 days ago") and absolute posting dates. Falls back to now."""
    lowered = value.lower().strip()
    if not lowered or "today" in lowered or "just posted" in lowered:
        return now
    if "yesterday" in lowered:
        return now - timedelta(days=1)
    match = DAYS_AGO.search(lowered)
    if match:
        return now - timedelta(days=int(match.group(1)))
    try:
        parsed = dateutil_parser.parse(value)
    except (ValueError, OverflowError):
        return now
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def resolve_url(href: str, base_url: str) -> str:
    if not href:
        return ""
    if href.startswith("http"):
        return href
    return str(URL(base_url.rstrip("/") + "/").join(URL(href.lstrip("/"))))


class JobBoardCollector(BaseCollector):
    """
    Scrapes listings from one or more job boards.

    A board that fails to load is logged and skipped; the tick only fails
    when every configured board fails.
    """

    channel_type = ChannelType.JOB_POSTINGS

    def __init__(
        self,
        collector_id: str,
        source: DataSource,
        competitor_id: str,
        schedule: str,
        fetcher: Fetcher,
        job_boards: List[JobBoardConfig],
        clock: Optional[Callable[[], datetime]] = None,
        **kwargs: Any,
    ):
        super().__init__(collector_id, source, competitor_id, schedule, fetcher, clock=clock, **kwargs)
        self.job_boards = list(job_boards)

    async def collect(self) -> List[RawData]:
        listings: List[RawData] = []
        failures: List[str] = []
        for board in self.job_boards:
            try:
                listings.extend(await self._scrape_board(board))
            except Exception as e:
                failures.append(f"{board.name}: {e}")
                self.logger.error(f"Error scraping {board.name}: {e}")

        if self.job_boards and len(failures) == len(self.job_boards):
            raise RuntimeError("; ".join(failures))
        return listings

    async def _scrape_board(self, board: JobBoardConfig) -> List[Dict[str, Any]]:
        response = await self.fetcher.get(board.search_url, headers=self._request_headers())
        if not response.ok:
            raise FetchStatusError(board.search_url, response.status)

        soup = BeautifulSoup(response.body, "html.parser")
        selectors = board.selectors
        now = self._clock()
        jobs = []

        for item in soup.select(selectors.job_items):
            def text_of(selector: str) -> str:
                el = item.select_one(selector)
                return el.get_text(" ", strip=True) if el else ""

            link_el = item.select_one(selectors.link)
            description = text_of(selectors.description)
            job = {
                "title": text_of(selectors.title),
                "company": text_of(selectors.company),
                "location": text_of(selectors.location),
                "description": description,
                "posted_date": parse_posted_date(text_of(selectors.date), now).isoformat(),
                "url": resolve_url(link_el.get("href", "") if link_el else "", board.base_url),
                "source": board.name,
                "skills": keywords_in(description, SKILL_KEYWORDS),
            }
            if job["title"] and job["company"]:
                jobs.append(job)

        self.logger.debug(f"{board.name}: {len(jobs)} listings")
        return jobs

    def validate(self, raw: RawData) -> bool:
        return isinstance(raw, dict) and bool(raw.get("title")) and bool(raw.get("company"))

    def transform(self, raw: RawData) -> MonitoringRecord:
        title = raw["title"]
        description = raw.get("description", "")
        impact = assess_strategic_impact(title, description)

        return MonitoringRecord(
            id=self._new_record_id(),
            competitor_id=self.competitor_id or normalize_company_name(raw["company"]),
            channel=self.channel_type,
            timestamp=dateutil_parser.isoparse(raw["posted_date"]),
            collected_at=self._clock(),
            raw_data=raw,
            draft=SignalDraft(
                type=SignalType.HIRING_SIGNAL,
                category="job_posting",
                title=f"{raw['company']} hiring {title}",
                description=description[:DESCRIPTION_LIMIT],
                impact=ImpactAssessment(
                    strategic=impact,
                    timeframe=Timeframe.SHORT_TERM,
                    affected_segments=identify_affected_segments(title, description),
                    response_recommendation=RECOMMENDATIONS[impact],
                ),
                sentiment=0.1,
                entities=[raw["company"]],
                keywords=list(raw.get("skills", [])),
                topics=["hiring", "growth", *categorize_department(title)],
            ),
            confidence=0.85,
            source=self.source,
        )
