"""Tests for alert sinks."""

import json

import httpx
import pytest

from competitive_intel.agents.communication import LogAlertSink, WebhookAlertSink
from competitive_intel.data_management.schemas import AlertEvent, AlertType, Urgency


class TestLogAlertSink:
    @pytest.mark.asyncio
    async def test_records_alerts(self):
        sink = LogAlertSink()
        await sink.send_alert(AlertEvent(type=AlertType.SYSTEM_ERROR, message="collector down"))

        assert len(sink.sent) == 1
        assert sink.sent[0].urgency is Urgency.MEDIUM

    @pytest.mark.asyncio
    async def test_history_is_bounded(self):
        sink = LogAlertSink(max_history=2)
        for i in range(5):
            await sink.send_alert(AlertEvent(type=AlertType.SYSTEM_ERROR, message=str(i)))

        assert [e.message for e in sink.sent] == ["3", "4"]


class TestWebhookAlertSink:
    @pytest.mark.asyncio
    async def test_posts_json_payload(self):
        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(json.loads(request.content))
            return httpx.Response(200)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            sink = WebhookAlertSink("https://hooks.example.com/alerts", client=client)
            await sink.send_alert(
                AlertEvent(type=AlertType.COMPLIANCE_VIOLATION, message="GDPR_001", urgency=Urgency.HIGH)
            )

        assert received[0]["text"] == "[HIGH] compliance_violation: GDPR_001"
        assert received[0]["alert"]["type"] == "compliance_violation"

    @pytest.mark.asyncio
    async def test_delivery_failure_is_swallowed(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            sink = WebhookAlertSink("https://hooks.example.com/alerts", client=client)
            await sink.send_alert(AlertEvent(type=AlertType.SYSTEM_ERROR, message="x"))
