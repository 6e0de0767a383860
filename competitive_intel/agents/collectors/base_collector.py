"""Base class for all source collectors."""

import asyncio
import re
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, List, Optional

from competitive_intel.agents.collectors.schedule import CronSchedule
from competitive_intel.agents.communication.bus import CollectorChannel, Handler
from competitive_intel.config.logging import get_logger
from competitive_intel.data_management.schemas import (
    AuthType,
    ChannelType,
    DataSource,
    MonitoringRecord,
    RawData,
)
from competitive_intel.exceptions import CollectorError
from competitive_intel.interfaces import Fetcher
from competitive_intel.utils.rate_limiter import SourceRateLimiter


def keywords_in(text: str, keywords: List[str]) -> List[str]:
    """Keywords that occur in text as whole words or phrases."""
    lowered = text.lower()
    return [k for k in keywords if re.search(rf"\b{re.escape(k)}\b", lowered)]


class BaseCollector(ABC):
    """
    Abstract base class for collectors that poll one external source.

    A collector runs on its own asyncio task. It collects immediately on
    start and then at every fire time of its cron schedule. Each tick:

    1. Consults the source's token bucket and skips the tick when exhausted
    2. Calls ``collect()`` for raw items
    3. Drops items that fail ``validate()`` (logged, not an error)
    4. Publishes ``transform()``-ed records to data subscribers

    Any failure inside a tick is wrapped in a CollectorError and published to
    error subscribers. Collectors never retry; the orchestrator decides.

    Attributes:
        id: Collector identifier (unique within a pipeline)
        source: Source being polled
        competitor_id: Competitor the collected records belong to
        channel_type: Channel records are published on
        schedule: Parsed cron schedule
        channel: Subscriber channel for records and errors
    """

    channel_type: ChannelType = ChannelType.PRODUCT_UPDATES

    def __init__(
        self,
        collector_id: str,
        source: DataSource,
        competitor_id: str,
        schedule: str,
        fetcher: Fetcher,
        rate_limiter: Optional[SourceRateLimiter] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize collector.

        Args:
            collector_id: Unique collector id
            source: Source to poll
            competitor_id: Competitor id stamped on every record
            schedule: Five-field cron expression
            fetcher: Network fetch collaborator
            rate_limiter: Token bucket limiter, built from the source's rate limit if None
            clock: Returns the current UTC time

        Raises:
            ConfigurationError: If the cron expression cannot be parsed
        """
        self.id = collector_id
        self.source = source
        self.competitor_id = competitor_id
        self.schedule = CronSchedule(schedule)
        self.fetcher = fetcher
        self.rate_limiter = rate_limiter or SourceRateLimiter(source.rate_limit)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.channel = CollectorChannel(collector_id)

        self._task: Optional[asyncio.Task] = None
        self._active = False
        self._restart_count = 0
        self.max_restarts = 5
        self.last_run: Optional[datetime] = None
        self.last_error: Optional[CollectorError] = None

        self.logger = get_logger(
            self.__class__.__name__, competitor=competitor_id, collector=collector_id
        )

    # ── Subclass hooks ───────────────────────────────────────────────────

    @abstractmethod
    async def collect(self) -> List[RawData]:
        """Fetch raw items from the source."""

    @abstractmethod
    def validate(self, raw: RawData) -> bool:
        """Return True if a raw item is worth transforming."""

    @abstractmethod
    def transform(self, raw: RawData) -> MonitoringRecord:
        """Turn a raw item into a MonitoringRecord."""

    # ── Subscriptions ────────────────────────────────────────────────────

    def subscribe_data(self, handler: Handler) -> Callable[[], None]:
        return self.channel.subscribe_data(handler)

    def subscribe_error(self, handler: Handler) -> Callable[[], None]:
        return self.channel.subscribe_error(handler)

    # ── Lifecycle ────────────────────────────────────────────────────────

    def is_active(self) -> bool:
        return self._active

    def can_restart(self) -> bool:
        return self._restart_count < self.max_restarts

    async def start(self) -> None:
        """Start the collection loop. Starting an active collector is a no-op."""
        if self._active:
            return
        self._active = True
        self._task = asyncio.create_task(self._run(), name=f"collector:{self.id}")
        self.logger.info(f"Collector started (schedule '{self.schedule.expression}')")

    async def stop(self) -> None:
        """Stop the collection loop. Stopping an inactive collector is a no-op."""
        if not self._active and self._task is None:
            return
        self._active = False
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.logger.info("Collector stopped")

    async def restart(self) -> None:
        self._restart_count += 1
        self.logger.info(f"Restarting collector (attempt {self._restart_count})")
        await self.stop()
        await self.start()

    async def _run(self) -> None:
        # A loop superseded by a restart exits at its next check
        while self._active and self._task is asyncio.current_task():
            await self.collect_once()
            delay = self.schedule.seconds_until_next(self._clock())
            if delay is None:
                self.logger.warning("Schedule has no future fire times, stopping")
                self._active = False
                break
            await asyncio.sleep(delay)

    # ── One tick ─────────────────────────────────────────────────────────

    async def collect_once(self) -> int:
        """
        Run a single collection tick.

        Returns:
            Number of records published
        """
        if not self.rate_limiter.can_proceed():
            self.logger.warning(f"Rate limit reached for source {self.source.id}, skipping run")
            return 0

        self.last_run = self._clock()
        published = 0
        try:
            items = await self.collect()
            for raw in items:
                if not self.validate(raw):
                    self.logger.debug("Dropped invalid item")
                    continue
                record = self.transform(raw)
                await self.channel.publish_data(record)
                published += 1
        except Exception as e:
            error = CollectorError.from_exception(e, collector_id=self.id)
            self.last_error = error
            self.logger.error(f"Collection failed [{error.category.value}]: {error.message}")
            await self.channel.publish_error(error)
            return published

        self.logger.info(f"Collected {published} records from {self.source.name}")
        return published

    # ── Helpers for subclasses ───────────────────────────────────────────

    def _new_record_id(self) -> str:
        return f"{self.id}-{uuid.uuid4().hex[:12]}"

    def _request_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        auth = self.source.authentication
        if auth is None:
            return headers
        creds = auth.credentials
        if auth.type is AuthType.API_KEY:
            headers["X-API-Key"] = creds.get("api_key") or creds.get("apiKey") or creds.get("key", "")
        elif auth.type in (AuthType.BEARER_TOKEN, AuthType.OAUTH):
            headers["Authorization"] = f"Bearer {creds.get('token', '')}"
        return headers

    def get_status(self) -> dict:
        return {
            "id": self.id,
            "source": self.source.id,
            "active": self._active,
            "schedule": self.schedule.expression,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "restarts": self._restart_count,
            "last_error": self.last_error.message if self.last_error else None,
        }
