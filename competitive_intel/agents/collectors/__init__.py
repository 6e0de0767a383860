"""Source collectors: one class per source kind, built by CollectorFactory."""

from competitive_intel.agents.collectors.base_collector import BaseCollector
from competitive_intel.agents.collectors.factory import CollectorFactory
from competitive_intel.agents.collectors.fetcher import HttpxFetcher
from competitive_intel.agents.collectors.job_board_collector import JobBoardCollector
from competitive_intel.agents.collectors.rss_collector import RSSFeedCollector
from competitive_intel.agents.collectors.schedule import CronSchedule
from competitive_intel.agents.collectors.web_scraping_collector import WebScrapingCollector

__all__ = [
    "BaseCollector",
    "CollectorFactory",
    "CronSchedule",
    "HttpxFetcher",
    "JobBoardCollector",
    "RSSFeedCollector",
    "WebScrapingCollector",
]
