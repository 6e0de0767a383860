"""In-memory signal storage with windowed metrics and optional JSON persistence.

Follows the same patterns as the other stores in this package:
- Thread-safe operations with asyncio locks
- Stored signals are deep copies and never mutated afterwards
- Optional JSON persistence

Usage:
    from competitive_intel.data_management.signal_store import SignalStore

    store = SignalStore()
    await store.store_signal(signal)
    count = await store.get_signal_count(start, end)
"""

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from competitive_intel.data_management.schemas import (
    ProcessedSignal,
    ProcessingErrorRecord,
)
from competitive_intel.utils.logging import get_structured_logger


def _stored_at(signal: ProcessedSignal) -> datetime:
    return signal.metadata.processed_at or datetime.min.replace(tzinfo=timezone.utc)


class SignalStore:
    """Storage for processed signals and per-item processing errors.

    Window queries use half-open intervals ``[start, end)`` keyed on the
    signal's ``metadata.processed_at`` and the error's ``timestamp``.
    """

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize SignalStore.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._signals: dict[str, ProcessedSignal] = {}
        self._errors: list[ProcessingErrorRecord] = []
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = get_structured_logger("SignalStore")

    async def store_signal(self, signal: ProcessedSignal) -> None:
        async with self._lock:
            self._signals[signal.id] = signal.model_copy(deep=True)
            self._logger.debug(
                "signal_stored",
                signal_id=signal.id,
                type=signal.type.value,
                competitor_id=signal.competitor_id,
            )
            if self._persistence_path:
                self._save_to_file()

    async def store_processing_error(
        self,
        data_id: str,
        error: str,
        timestamp: datetime,
        retryable: bool,
    ) -> None:
        async with self._lock:
            self._errors.append(
                ProcessingErrorRecord(
                    data_id=data_id,
                    error=error,
                    timestamp=timestamp,
                    retryable=retryable,
                )
            )
            self._logger.debug("processing_error_stored", data_id=data_id, retryable=retryable)
            if self._persistence_path:
                self._save_to_file()

    async def get_signal(self, signal_id: str) -> Optional[ProcessedSignal]:
        async with self._lock:
            stored = self._signals.get(signal_id)
            return stored.model_copy(deep=True) if stored else None

    async def get_all_signals(self) -> list[ProcessedSignal]:
        async with self._lock:
            return [s.model_copy(deep=True) for s in self._signals.values()]

    async def get_processing_errors(self) -> list[ProcessingErrorRecord]:
        async with self._lock:
            return list(self._errors)

    async def get_signal_count(self, start: datetime, end: datetime) -> int:
        async with self._lock:
            return len(self._signals_in(start, end))

    async def get_average_processing_time(self, start: datetime, end: datetime) -> float:
        async with self._lock:
            window = self._signals_in(start, end)
            if not window:
                return 0.0
            return sum(s.processing_time_ms for s in window) / len(window)

    async def get_error_rate(self, start: datetime, end: datetime) -> float:
        """Errors divided by all processed items (signals + errors) in the window."""
        async with self._lock:
            signals = len(self._signals_in(start, end))
            errors = sum(1 for e in self._errors if start <= e.timestamp < end)
            total = signals + errors
            return errors / total if total else 0.0

    async def get_stats(self) -> dict[str, Any]:
        async with self._lock:
            by_type: dict[str, int] = {}
            for signal in self._signals.values():
                by_type[signal.type.value] = by_type.get(signal.type.value, 0) + 1
            return {
                "total_signals": len(self._signals),
                "total_errors": len(self._errors),
                "by_type": by_type,
            }

    def _signals_in(self, start: datetime, end: datetime) -> list[ProcessedSignal]:
        return [s for s in self._signals.values() if start <= _stored_at(s) < end]

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            data = {
                "signals": {
                    sid: signal.model_dump(mode="json")
                    for sid, signal in self._signals.items()
                },
                "errors": [e.model_dump(mode="json") for e in self._errors],
            }
            with open(self._persistence_path, "w") as f:
                json.dump(data, f, indent=2, default=str)
        except OSError as e:
            self._logger.error("persistence_failed", error=str(e))

    def load_from_file(self) -> int:
        """Load previously persisted signals. Returns the number loaded."""
        if not self._persistence_path or not self._persistence_path.exists():
            return 0
        with open(self._persistence_path) as f:
            data = json.load(f)
        for sid, payload in data.get("signals", {}).items():
            self._signals[sid] = ProcessedSignal.model_validate(payload)
        for payload in data.get("errors", []):
            self._errors.append(ProcessingErrorRecord.model_validate(payload))
        self._logger.info("store_loaded", signals=len(self._signals), errors=len(self._errors))
        return len(self._signals)
