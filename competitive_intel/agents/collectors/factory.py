"""Factory for building collectors with per-kind default schedules and budgets."""

from typing import List, Optional

from loguru import logger

from competitive_intel.agents.collectors.base_collector import BaseCollector
from competitive_intel.agents.collectors.job_board_collector import JobBoardCollector
from competitive_intel.agents.collectors.rss_collector import RSSFeedCollector
from competitive_intel.agents.collectors.web_scraping_collector import WebScrapingCollector
from competitive_intel.config.pipeline_config import (
    CollectorSpec,
    JobBoardConfig,
    ScrapingSelectors,
)
from competitive_intel.data_management.schemas import (
    CompetitorTarget,
    DataSource,
    RateLimit,
    SourceType,
)
from competitive_intel.exceptions import ConfigurationError
from competitive_intel.interfaces import Fetcher

RSS_DEFAULT_SCHEDULE = "0 */4 * * *"
SCRAPING_DEFAULT_SCHEDULE = "0 */6 * * *"
JOB_BOARD_DEFAULT_SCHEDULE = "0 8 * * *"

RSS_RATE_LIMIT = RateLimit(requests_per_hour=24, requests_per_day=288, burst_limit=5)
SCRAPING_RATE_LIMIT = RateLimit(requests_per_hour=10, requests_per_day=48, burst_limit=2)
JOB_BOARD_RATE_LIMIT = RateLimit(requests_per_hour=5, requests_per_day=24, burst_limit=1)


class CollectorFactory:
    """
    Builds one collector per source kind for a competitor.

    Schedules resolve as: explicit argument, then the factory-wide
    ``default_schedule``, then the per-kind default.

    Usage:
        factory = CollectorFactory(fetcher)
        collector = factory.create_rss_collector(target, "https://acme.com/feed.xml")
    """

    def __init__(self, fetcher: Fetcher, default_schedule: Optional[str] = None):
        self.fetcher = fetcher
        self.default_schedule = default_schedule
        self.logger = logger.bind(component="CollectorFactory")

    def create_rss_collector(
        self,
        target: CompetitorTarget,
        feed_url: str,
        schedule: Optional[str] = None,
        rate_limit: Optional[RateLimit] = None,
        reliability: float = 0.9,
    ) -> RSSFeedCollector:
        source = DataSource(
            id=f"rss_{target.id}",
            name=f"{target.name} RSS Feed",
            type=SourceType.RSS,
            url=feed_url,
            rate_limit=rate_limit or RSS_RATE_LIMIT,
            reliability=reliability,
        )
        return RSSFeedCollector(
            f"rss_collector_{target.id}",
            source,
            target.id,
            self._schedule(schedule, RSS_DEFAULT_SCHEDULE),
            self.fetcher,
        )

    def create_web_scraping_collector(
        self,
        target: CompetitorTarget,
        page_url: str,
        selectors: Optional[ScrapingSelectors] = None,
        schedule: Optional[str] = None,
        rate_limit: Optional[RateLimit] = None,
        reliability: float = 0.8,
    ) -> WebScrapingCollector:
        source = DataSource(
            id=f"scrape_{target.id}",
            name=f"{target.name} Web Scraping",
            type=SourceType.WEB_SCRAPING,
            url=page_url,
            rate_limit=rate_limit or SCRAPING_RATE_LIMIT,
            reliability=reliability,
        )
        return WebScrapingCollector(
            f"scrape_collector_{target.id}",
            source,
            target.id,
            self._schedule(schedule, SCRAPING_DEFAULT_SCHEDULE),
            self.fetcher,
            selectors=selectors,
        )

    def create_job_board_collector(
        self,
        target: CompetitorTarget,
        job_boards: List[JobBoardConfig],
        schedule: Optional[str] = None,
        rate_limit: Optional[RateLimit] = None,
        reliability: float = 0.7,
    ) -> JobBoardCollector:
        if not job_boards:
            raise ConfigurationError(f"Job board collector for {target.id} needs at least one board")
        source = DataSource(
            id=f"jobs_{target.id}",
            name=f"{target.name} Job Monitoring",
            type=SourceType.JOB_BOARD,
            url=job_boards[0].search_url,
            rate_limit=rate_limit or JOB_BOARD_RATE_LIMIT,
            reliability=reliability,
        )
        return JobBoardCollector(
            f"jobs_collector_{target.id}",
            source,
            target.id,
            self._schedule(schedule, JOB_BOARD_DEFAULT_SCHEDULE),
            self.fetcher,
            job_boards=job_boards,
        )

    def _schedule(self, explicit: Optional[str], kind_default: str) -> str:
        return explicit or self.default_schedule or kind_default

    def from_spec(self, spec: CollectorSpec) -> BaseCollector:
        """Build a collector from a configuration entry."""
        target = CompetitorTarget(
            id=spec.competitor_id,
            name=spec.competitor_name or spec.competitor_id,
            domain=spec.url,
        )
        overrides = {}
        if spec.schedule:
            overrides["schedule"] = spec.schedule
        if spec.rate_limit:
            overrides["rate_limit"] = spec.rate_limit
        if spec.reliability is not None:
            overrides["reliability"] = spec.reliability

        if spec.kind == "rss":
            collector = self.create_rss_collector(target, spec.url, **overrides)
        elif spec.kind == "web_scraping":
            collector = self.create_web_scraping_collector(
                target, spec.url, selectors=spec.selectors, **overrides
            )
        else:
            collector = self.create_job_board_collector(target, spec.job_boards, **overrides)

        self.logger.info(f"Built {spec.kind} collector {collector.id}")
        return collector
