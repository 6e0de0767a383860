"""Collector channels and alert sinks."""

from competitive_intel.agents.communication.alerting import LogAlertSink, WebhookAlertSink
from competitive_intel.agents.communication.bus import CollectorChannel

__all__ = ["CollectorChannel", "LogAlertSink", "WebhookAlertSink"]
