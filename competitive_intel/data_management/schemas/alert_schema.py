"""Alert, processing error and pipeline metric schemas."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from competitive_intel.data_management.schemas.signal_schema import ProcessedSignal


class AlertType(str, Enum):
    NEW_SIGNAL = "new_signal"
    SYSTEM_ERROR = "system_error"
    PROCESSING_ERROR = "processing_error"
    COMPLIANCE_VIOLATION = "compliance_violation"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AlertEvent(BaseModel):
    id: str = Field(default_factory=lambda: f"alert-{uuid.uuid4().hex[:12]}")
    type: AlertType
    signal: Optional[ProcessedSignal] = None
    message: Optional[str] = None
    urgency: Urgency = Urgency.MEDIUM
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ProcessingErrorRecord(BaseModel):
    """A per-item pipeline failure persisted for later inspection."""

    data_id: str
    error: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    retryable: bool = False


class PipelineMetrics(BaseModel):
    collectors_active: int = 0
    collectors_total: int = 0
    queue_size: int = 0
    signals_last_hour: int = 0
    average_processing_time_ms: float = 0.0
    error_rate: float = 0.0
    is_running: bool = False


class BatchSummary(BaseModel):
    """Outcome counts of one processed batch."""

    size: int = 0
    stored: int = 0
    rejected: int = 0
    failed: int = 0
    alerts: int = 0
