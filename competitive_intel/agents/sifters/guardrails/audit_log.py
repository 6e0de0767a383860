"""Bounded audit trail of guardrail validations."""

import threading
from collections import Counter, deque
from datetime import datetime, timedelta, timezone
from typing import Callable, Deque, List, Optional

from competitive_intel.data_management.schemas import AuditLogEntry, ComplianceMetrics

DEFAULT_CAPACITY = 10_000
METRICS_WINDOW = timedelta(hours=24)


class AuditLog:
    """
    Ring buffer of AuditLogEntry. When full, the oldest entry is evicted.

    Owned by one validator. Appends and reads are guarded by a lock so the
    log can be read from other threads (CLI, metrics exporters).
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.capacity = capacity
        self._entries: Deque[AuditLogEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def append(self, entry: AuditLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def entries(self, since: Optional[datetime] = None) -> List[AuditLogEntry]:
        with self._lock:
            if since is None:
                return list(self._entries)
            return [e for e in self._entries if e.timestamp >= since]

    def compliance_metrics(self, top_n: int = 5) -> ComplianceMetrics:
        """Pass rate and most common violation codes over the trailing 24 hours."""
        now = self._clock()
        window_start = now - METRICS_WINDOW
        recent = [e for e in self.entries() if e.timestamp > window_start]

        total = len(recent)
        passed = sum(1 for e in recent if e.result.is_valid)
        violations = Counter(code for e in recent for code in e.result.error_codes)

        return ComplianceMetrics(
            total_validations=total,
            passed_validations=passed,
            failed_validations=total - passed,
            compliance_rate=passed / total if total else 1.0,
            common_violations=violations.most_common(top_n),
            window_start=window_start,
            window_end=now,
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
