"""FIFO ingestion queue between collectors and the processing loop."""

import asyncio
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from loguru import logger

from competitive_intel.data_management.schemas import MonitoringRecord
from competitive_intel.exceptions import QueueFullError


class IngestionQueue:
    """
    Ordered buffer of collected records awaiting processing.

    Records leave in arrival order. Enqueue and dequeue share one asyncio
    lock so a batch is always a contiguous prefix of the queue.

    Attributes:
        max_size: Capacity, 0 for unbounded
    """

    def __init__(self, max_size: int = 0):
        """
        Initialize the queue.

        Args:
            max_size: Maximum number of pending records, 0 for unbounded
        """
        self.max_size = max_size
        self._items: Deque[MonitoringRecord] = deque()
        self._lock = asyncio.Lock()
        self._enqueued = 0
        self._dequeued = 0
        self._rejected = 0
        self._last_enqueued_at: Optional[datetime] = None
        self.logger = logger.bind(component="IngestionQueue")

    async def enqueue(self, record: MonitoringRecord) -> None:
        """
        Append a record.

        Raises:
            QueueFullError: If the queue is bounded and at capacity
        """
        async with self._lock:
            if self.max_size and len(self._items) >= self.max_size:
                self._rejected += 1
                raise QueueFullError(
                    f"Ingestion queue full ({self.max_size}), dropping record {record.id}"
                )
            self._items.append(record)
            self._enqueued += 1
            self._last_enqueued_at = datetime.now(timezone.utc)
        self.logger.debug(f"Record enqueued: {record.id}")

    async def dequeue_batch(self, size: int) -> List[MonitoringRecord]:
        """Remove and return up to ``size`` records from the head."""
        async with self._lock:
            count = min(size, len(self._items))
            batch = [self._items.popleft() for _ in range(count)]
            self._dequeued += count
        if batch:
            self.logger.debug(f"Dequeued batch of {len(batch)}")
        return batch

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "pending": len(self._items),
            "max_size": self.max_size,
            "enqueued": self._enqueued,
            "dequeued": self._dequeued,
            "rejected": self._rejected,
            "last_enqueued_at": self._last_enqueued_at.isoformat() if self._last_enqueued_at else None,
        }

    async def clear(self) -> int:
        """Drop every pending record. Returns how many were dropped."""
        async with self._lock:
            dropped = len(self._items)
            self._items.clear()
        self.logger.info(f"Ingestion queue cleared ({dropped} records dropped)")
        return dropped

    def __len__(self) -> int:
        return len(self._items)
