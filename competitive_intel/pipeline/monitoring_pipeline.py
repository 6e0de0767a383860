"""Monitoring pipeline: collectors -> ingestion queue -> sifters -> storage.

Per processed record:
1. Analyze the record into a ProcessedSignal
2. Run ethical guardrails (rejected records stop here)
3. Verify the signal and attach the result
4. Store the signal
5. Decide on a new-signal alert

Records are processed in batches. Every item in a batch runs concurrently and
the batch completes only when all of its items have finished. One item's
failure is stored as a processing error and never affects its siblings.

Usage:
    from competitive_intel.pipeline import MonitoringPipeline

    pipeline = MonitoringPipeline(storage=SignalStore(), alerting=LogAlertSink())
    pipeline.add_collector(collector)
    await pipeline.start()
    ...
    await pipeline.stop()
"""

import asyncio
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Set

from competitive_intel.agents.collectors.base_collector import BaseCollector
from competitive_intel.agents.collectors.fetcher import HttpxFetcher
from competitive_intel.agents.sifters.guardrails import COMPLIANCE_CODES, EthicalGuardrails
from competitive_intel.agents.sifters.signal_analyzer import SignalAnalyzer
from competitive_intel.agents.sifters.verification import FactVerifier
from competitive_intel.config.pipeline_config import PerformanceSettings, PipelineConfig
from competitive_intel.config.settings import settings
from competitive_intel.data_management.schemas import (
    AlertEvent,
    AlertType,
    BatchSummary,
    MonitoringRecord,
    PipelineMetrics,
    ProcessedSignal,
    Urgency,
)
from competitive_intel.exceptions import (
    CollectorError,
    ConfigurationError,
    ErrorCategory,
    classify_error_message,
)
from competitive_intel.interfaces import AlertingService, Fetcher, SignalStorage
from competitive_intel.pipeline.alert_policy import alert_urgency, should_alert
from competitive_intel.pipeline.ingestion_queue import IngestionQueue
from competitive_intel.utils.logging import get_structured_logger


class _ItemOutcome:
    STORED = "stored"
    REJECTED = "rejected"
    FAILED = "failed"


class MonitoringPipeline:
    """Owns collectors and the ingestion queue, and drives the processing loop.

    Attributes:
        storage: Signal and processing-error storage
        alerting: Alert sink
        analyzer: Record to signal analyzer
        guardrails: Ethical guardrails validator
        verifier: Fact verifier
        queue: Ingestion queue fed by collector subscriptions
        performance: Batch loop settings (replace via update_config)
        monitoring: Collector cadence and failure alerting settings
        analysis: Verification thresholds

    Unless guardrails are injected, robots.txt files are fetched through
    ``fetcher``, or through an owned HttpxFetcher closed on stop.
    """

    def __init__(
        self,
        storage: SignalStorage,
        alerting: AlertingService,
        analyzer: Optional[SignalAnalyzer] = None,
        guardrails: Optional[EthicalGuardrails] = None,
        verifier: Optional[FactVerifier] = None,
        config: Optional[PipelineConfig] = None,
        queue: Optional[IngestionQueue] = None,
        clock: Optional[Callable[[], datetime]] = None,
        fetcher: Optional[Fetcher] = None,
    ) -> None:
        config = config or PipelineConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.storage = storage
        self.alerting = alerting
        self.analyzer = analyzer or SignalAnalyzer(clock=self._clock)
        self._owned_fetcher: Optional[HttpxFetcher] = None
        if guardrails is None:
            if fetcher is None:
                fetcher = self._owned_fetcher = HttpxFetcher(
                    timeout=config.performance.request_timeout,
                    user_agent=settings.user_agent,
                )
            guardrails = EthicalGuardrails(
                config.guardrails,
                fetcher=fetcher,
                user_agent=settings.user_agent,
                clock=self._clock,
            )
        self.guardrails = guardrails
        self.verifier = verifier or FactVerifier(
            concurrency=config.analysis.cross_reference_concurrency,
            minimum_evidence=config.analysis.minimum_evidence,
            clock=self._clock,
        )
        self.performance = config.performance
        self.monitoring = config.monitoring
        self.analysis = config.analysis
        self.queue = queue or IngestionQueue(max_size=config.performance.max_queue_size)

        self._collectors: Dict[str, BaseCollector] = {}
        self._unsubscribers: Dict[str, List[Callable[[], None]]] = {}
        self._restart_tasks: Set[asyncio.Task] = set()
        self._loop_task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()
        self._running = False
        self._logger = get_structured_logger("MonitoringPipeline")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def collectors(self) -> List[BaseCollector]:
        return list(self._collectors.values())

    # ── Collectors ───────────────────────────────────────────────────────

    def add_collector(self, collector: BaseCollector) -> None:
        """Register a collector and subscribe to its records and errors.

        Raises:
            ConfigurationError: On a duplicate id or when the collector limit is reached
        """
        if collector.id in self._collectors:
            raise ConfigurationError(f"Collector already registered: {collector.id}")
        if len(self._collectors) >= self.performance.max_concurrent_collectors:
            raise ConfigurationError(
                f"Collector limit reached ({self.performance.max_concurrent_collectors})"
            )

        async def on_error(error: CollectorError) -> None:
            await self.handle_collector_error(collector, error)

        self._collectors[collector.id] = collector
        self._unsubscribers[collector.id] = [
            collector.subscribe_data(self.enqueue),
            collector.subscribe_error(on_error),
        ]
        self._logger.info("collector_added", collector_id=collector.id, source=collector.source.id)

    async def remove_collector(self, collector_id: str) -> bool:
        collector = self._collectors.pop(collector_id, None)
        if collector is None:
            return False
        for unsubscribe in self._unsubscribers.pop(collector_id, []):
            unsubscribe()
        await collector.stop()
        self._logger.info("collector_removed", collector_id=collector_id)
        return True

    async def enqueue(self, record: MonitoringRecord) -> None:
        await self.queue.enqueue(record)
        self._logger.debug("record_enqueued", record_id=record.id, queue_size=len(self.queue))

    async def handle_collector_error(self, collector: BaseCollector, error: CollectorError) -> None:
        """React to a failed collection tick according to its category."""
        self._logger.error(
            "collector_error",
            collector_id=collector.id,
            category=error.category.value,
            error=error.message,
        )

        if error.is_critical:
            if self.monitoring.alert_on_failure:
                await self._send_alert(
                    AlertEvent(
                        type=AlertType.SYSTEM_ERROR,
                        message=f"Data collector {collector.id} encountered an error: {error.message}",
                        urgency=Urgency.HIGH,
                        timestamp=self._clock(),
                    )
                )
            return

        if error.is_retryable:
            if not self._running:
                self._logger.info("collector_restart_skipped", collector_id=collector.id, reason="pipeline stopped")
            elif collector.can_restart():
                task = asyncio.create_task(collector.restart(), name=f"restart:{collector.id}")
                self._restart_tasks.add(task)
                task.add_done_callback(self._restart_tasks.discard)
            else:
                self._logger.warning("collector_restart_exhausted", collector_id=collector.id)

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def start(self) -> None:
        if self._running:
            raise RuntimeError("Pipeline is already running")

        self._running = True
        self._stop_event.clear()
        await asyncio.gather(*(c.start() for c in self._collectors.values()))
        self._loop_task = asyncio.create_task(self._loop(), name="monitoring-pipeline")
        self._logger.info("pipeline_started", collectors=len(self._collectors))

    async def stop(self) -> None:
        """Stop collectors, then drain everything already queued."""
        if not self._running:
            return

        self._running = False
        self._stop_event.set()
        await asyncio.gather(*(c.stop() for c in self._collectors.values()))

        if self._restart_tasks:
            await asyncio.gather(*self._restart_tasks, return_exceptions=True)
            # A restart that raced the stop may have reactivated its collector
            await asyncio.gather(*(c.stop() for c in self._collectors.values()))

        if self._loop_task is not None:
            await self._loop_task
            self._loop_task = None

        drained = 0
        while len(self.queue):
            summary = await self.process_batch()
            drained += summary.size

        if self._owned_fetcher is not None:
            await self._owned_fetcher.close()

        self._logger.info("pipeline_stopped", drained=drained)

    async def _loop(self) -> None:
        while self._running:
            try:
                if await self._wait_for_stop(self.performance.loop_interval):
                    break
                await self.process_batch()
            except Exception as e:
                self._logger.error("processing_loop_error", error=str(e))
                if await self._wait_for_stop(self.performance.error_backoff):
                    break

    async def _wait_for_stop(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds. Returns True if stop was requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    # ── Processing ───────────────────────────────────────────────────────

    async def process_batch(self) -> BatchSummary:
        """Dequeue one batch and process all of its items concurrently."""
        batch = await self.queue.dequeue_batch(self.performance.batch_size)
        summary = BatchSummary(size=len(batch))
        if not batch:
            return summary

        self._logger.info("batch_processing", size=len(batch))
        semaphore = asyncio.Semaphore(self.performance.max_concurrency)

        async def bounded(record: MonitoringRecord) -> tuple:
            async with semaphore:
                return await self._process_with_timeout(record)

        outcomes = await asyncio.gather(*(bounded(r) for r in batch))
        for outcome, alerts in outcomes:
            if outcome == _ItemOutcome.STORED:
                summary.stored += 1
            elif outcome == _ItemOutcome.REJECTED:
                summary.rejected += 1
            else:
                summary.failed += 1
            summary.alerts += alerts

        self._logger.info("batch_processed", **summary.model_dump())
        return summary

    async def _process_with_timeout(self, record: MonitoringRecord) -> tuple:
        try:
            if self.performance.item_timeout:
                return await asyncio.wait_for(
                    self.process_record(record), timeout=self.performance.item_timeout
                )
            return await self.process_record(record)
        except asyncio.TimeoutError:
            await self._store_processing_error(
                record, f"Processing timeout after {self.performance.item_timeout}s"
            )
        except Exception as e:
            await self._store_processing_error(record, str(e) or e.__class__.__name__)
        return _ItemOutcome.FAILED, 0

    async def process_record(self, record: MonitoringRecord) -> tuple:
        """Run one record through analysis, guardrails, verification and storage.

        Returns:
            (outcome, alerts sent)
        """
        started = time.perf_counter()

        signal = self.analyzer.analyze(record)

        validation = await self.guardrails.validate(record.source, record)
        if not validation.is_valid:
            violations = [c for c in validation.error_codes if c in COMPLIANCE_CODES]
            self._logger.warning(
                "record_rejected",
                record_id=record.id,
                codes=validation.error_codes,
            )
            if violations:
                await self._send_alert(
                    AlertEvent(
                        type=AlertType.COMPLIANCE_VIOLATION,
                        message=f"Record {record.id} violates compliance rules: {', '.join(violations)}",
                        urgency=Urgency.HIGH,
                        timestamp=self._clock(),
                    )
                )
                return _ItemOutcome.REJECTED, 1
            return _ItemOutcome.REJECTED, 0

        result = await self.verifier.verify(signal)
        signal.verification_result = result
        signal.verification.is_verified = (
            result.is_factual and result.confidence_level >= self.analysis.confidence_threshold
        )
        signal.verification.confidence_level = result.confidence_level
        signal.verification.last_verified = result.last_verified
        signal.verification.source_count = 1 + len(result.supporting_sources)
        signal.processing_time_ms = (time.perf_counter() - started) * 1000

        await self.storage.store_signal(signal)

        alerts = 0
        if should_alert(signal):
            await self._send_alert(
                AlertEvent(
                    type=AlertType.NEW_SIGNAL,
                    signal=signal,
                    urgency=alert_urgency(signal),
                    timestamp=self._clock(),
                )
            )
            alerts = 1

        self._logger.info(
            "signal_processed",
            signal_id=signal.id,
            record_id=record.id,
            type=signal.type.value,
            alerted=bool(alerts),
        )
        return _ItemOutcome.STORED, alerts

    async def _store_processing_error(self, record: MonitoringRecord, message: str) -> None:
        self._logger.error("record_processing_failed", record_id=record.id, error=message)
        try:
            await self.storage.store_processing_error(
                data_id=record.id,
                error=message,
                timestamp=self._clock(),
                retryable=classify_error_message(message) is ErrorCategory.RETRYABLE,
            )
        except Exception as e:
            self._logger.error("processing_error_store_failed", record_id=record.id, error=str(e))

    async def _send_alert(self, event: AlertEvent) -> None:
        try:
            await self.alerting.send_alert(event)
        except Exception as e:
            self._logger.error("alert_failed", alert_type=event.type.value, error=str(e))

    # ── Introspection ────────────────────────────────────────────────────

    async def get_metrics(self) -> PipelineMetrics:
        now = self._clock()
        hour_ago = now - timedelta(hours=1)
        return PipelineMetrics(
            collectors_active=sum(1 for c in self._collectors.values() if c.is_active()),
            collectors_total=len(self._collectors),
            queue_size=len(self.queue),
            signals_last_hour=await self.storage.get_signal_count(hour_ago, now),
            average_processing_time_ms=await self.storage.get_average_processing_time(hour_ago, now),
            error_rate=await self.storage.get_error_rate(hour_ago, now),
            is_running=self._running,
        )

    def get_status(self) -> Dict[str, Any]:
        return {
            "running": self._running,
            "queue": self.queue.get_statistics(),
            "collectors": [c.get_status() for c in self._collectors.values()],
        }

    def update_config(self, performance: PerformanceSettings) -> None:
        """Replace performance settings. Takes effect from the next batch."""
        self.performance = performance
        self.queue.max_size = performance.max_queue_size
        self._logger.info("pipeline_config_updated", **performance.model_dump())
