"""Monitoring pipeline: ingestion queue, processing loop and alert policy."""

from competitive_intel.pipeline.alert_policy import alert_urgency, should_alert
from competitive_intel.pipeline.ingestion_queue import IngestionQueue
from competitive_intel.pipeline.monitoring_pipeline import MonitoringPipeline

__all__ = [
    "IngestionQueue",
    "MonitoringPipeline",
    "alert_urgency",
    "should_alert",
]
