"""Per-collector publish/subscribe channel for records and errors.

Each collector owns one CollectorChannel. Any number of subscribers can
register for data and for errors; every subscriber sees every event. Handlers
may be plain functions or coroutines. A failing handler is logged and does not
prevent delivery to the remaining subscribers.
"""

import inspect
from typing import Any, Awaitable, Callable, Generic, List, TypeVar, Union

from loguru import logger

from competitive_intel.data_management.schemas import MonitoringRecord
from competitive_intel.exceptions import CollectorError

T = TypeVar("T")
Handler = Callable[[T], Union[None, Awaitable[None]]]


class _Topic(Generic[T]):
    """Ordered subscriber list for one event kind."""

    def __init__(self, name: str, owner: str):
        self.name = name
        self._handlers: List[Handler] = []
        self.logger = logger.bind(component=f"CollectorChannel.{owner}")

    def subscribe(self, handler: Handler) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    async def publish(self, event: T) -> int:
        """Deliver event to every subscriber. Returns the number of failed handlers."""
        failures = 0
        for handler in list(self._handlers):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                failures += 1
                self.logger.error(f"{self.name} subscriber failed: {e}")
        return failures

    def __len__(self) -> int:
        return len(self._handlers)


class CollectorChannel:
    """
    Data and error topics owned by one collector.

    Usage:
        channel = CollectorChannel("acme-rss")
        channel.subscribe_data(pipeline.enqueue)
        channel.subscribe_error(pipeline.handle_collector_error)
        await channel.publish_data(record)
    """

    def __init__(self, owner: str):
        self.owner = owner
        self.data: _Topic[MonitoringRecord] = _Topic("data", owner)
        self.errors: _Topic[CollectorError] = _Topic("error", owner)

    def subscribe_data(self, handler: Handler) -> Callable[[], None]:
        return self.data.subscribe(handler)

    def subscribe_error(self, handler: Handler) -> Callable[[], None]:
        return self.errors.subscribe(handler)

    async def publish_data(self, record: MonitoringRecord) -> int:
        return await self.data.publish(record)

    async def publish_error(self, error: CollectorError) -> int:
        return await self.errors.publish(error)

    def subscriber_counts(self) -> dict[str, Any]:
        return {"data": len(self.data), "error": len(self.errors)}
