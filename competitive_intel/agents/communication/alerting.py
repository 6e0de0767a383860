"""Alert sinks: a logging sink and an httpx webhook sink.

Both are fire-and-forget. Delivery failures are logged, never raised back
into the pipeline.
"""

from typing import List, Optional

import httpx
from loguru import logger

from competitive_intel.data_management.schemas import AlertEvent, Urgency


class LogAlertSink:
    """Logs alerts and keeps them in memory for inspection."""

    def __init__(self, max_history: int = 1000):
        self.sent: List[AlertEvent] = []
        self.max_history = max_history
        self.logger = logger.bind(component="LogAlertSink")

    async def send_alert(self, event: AlertEvent) -> None:
        self.sent.append(event)
        if len(self.sent) > self.max_history:
            del self.sent[: len(self.sent) - self.max_history]

        level = "WARNING" if event.urgency is Urgency.HIGH else "INFO"
        title = event.signal.title if event.signal else (event.message or "")
        self.logger.log(level, f"[{event.type.value}] urgency={event.urgency.value} {title}")


class WebhookAlertSink:
    """Posts alert events as JSON to a webhook URL."""

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.timeout = timeout
        self._client = client
        self.logger = logger.bind(component="WebhookAlertSink")

    async def send_alert(self, event: AlertEvent) -> None:
        payload = {
            "text": self._format_text(event),
            "alert": event.model_dump(mode="json"),
        }
        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=payload, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=payload)
            response.raise_for_status()
            self.logger.debug(f"Alert {event.id} delivered")
        except httpx.HTTPError as e:
            self.logger.error(f"Alert {event.id} delivery failed: {e}")

    @staticmethod
    def _format_text(event: AlertEvent) -> str:
        if event.signal is not None:
            signal = event.signal
            return (
                f"[{event.urgency.value.upper()}] {signal.type.value}: {signal.title} "
                f"({signal.competitor_id}, impact {signal.impact.strategic.value})"
            )
        return f"[{event.urgency.value.upper()}] {event.type.value}: {event.message or ''}"
