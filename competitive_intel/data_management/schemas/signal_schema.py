"""Signal schemas: collected records, processed signals and corpus analyses.

Lifecycle:
    RawData -> MonitoringRecord (collector transform)
            -> ProcessedSignal (analyzer, then verifier)

Stored signals are never mutated; a correction is a new record.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from competitive_intel.data_management.schemas.source_schema import (
    ChannelType,
    DataSource,
)
from competitive_intel.data_management.schemas.verification_schema import (
    VerificationResult,
)

RawData = Union[dict[str, Any], str]

TEXT_FIELDS = ("title", "description", "content", "summary", "text")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SignalType(str, Enum):
    """Closed set of signal classifications."""

    PRODUCT_LAUNCH = "product_launch"
    FEATURE_UPDATE = "feature_update"
    PRICING_CHANGE = "pricing_change"
    HIRING_SIGNAL = "hiring_signal"
    PATENT_FILING = "patent_filing"
    TECHNICAL_INSIGHT = "technical_insight"
    PARTNERSHIP = "partnership"
    FUNDING = "funding"
    MARKET_MOVE = "market_move"


class StrategicImpact(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Timeframe(str, Enum):
    IMMEDIATE = "immediate"
    SHORT_TERM = "short_term"
    MEDIUM_TERM = "medium_term"
    LONG_TERM = "long_term"


class ImpactAssessment(BaseModel):
    """Strategic impact of a signal and the suggested response."""

    strategic: StrategicImpact = StrategicImpact.MEDIUM
    timeframe: Timeframe = Timeframe.MEDIUM_TERM
    affected_segments: list[str] = Field(default_factory=list)
    response_recommendation: str = ""


class SignalMetadata(BaseModel):
    keywords: list[str] = Field(default_factory=list)
    sentiment: float = Field(default=0.0, ge=-1.0, le=1.0)
    entities: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    language: str = "en"
    readability_score: float = 0.0
    processed_at: Optional[datetime] = None


class VerificationMethod(str, Enum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"
    CROSS_REFERENCE = "cross_reference"


class VerificationStatus(BaseModel):
    """Summary verification state carried on every signal."""

    is_verified: bool = False
    source_count: int = 0
    last_verified: Optional[datetime] = None
    method: VerificationMethod = VerificationMethod.AUTOMATIC
    confidence_level: float = Field(default=0.0, ge=0.0, le=1.0)


class SignalDraft(BaseModel):
    """Partial signal a collector attaches to its record.

    Every field is optional; the analyzer fills what the collector left out.
    """

    type: Optional[SignalType] = None
    category: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    impact: Optional[ImpactAssessment] = None
    sentiment: Optional[float] = Field(default=None, ge=-1.0, le=1.0)
    entities: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)


class MonitoringRecord(BaseModel):
    """One collected item, ready for the ingestion queue.

    Attributes:
        id: Unique record id
        competitor_id: Competitor the record is about
        channel: Channel the record arrived on
        timestamp: When the item was published or observed (UTC)
        collected_at: When the collector fetched the item (UTC)
        raw_data: Untouched payload
        draft: Collector's partial signal
        confidence: Collector confidence in [0, 1]
        source: Source the record was collected from
    """

    id: str
    competitor_id: str
    channel: ChannelType
    timestamp: datetime = Field(default_factory=utc_now)
    collected_at: datetime = Field(default_factory=utc_now)
    raw_data: RawData
    draft: SignalDraft = Field(default_factory=SignalDraft)
    confidence: float = Field(..., ge=0.0, le=1.0)
    source: DataSource

    def content_text(self) -> str:
        """Text content of the payload for analysis."""
        if isinstance(self.raw_data, str):
            return self.raw_data
        parts = [
            str(self.raw_data[key])
            for key in TEXT_FIELDS
            if self.raw_data.get(key)
        ]
        if parts:
            return " ".join(parts)
        return self.serialized_payload()

    def serialized_payload(self) -> str:
        """Payload serialized to a single string for pattern scanning."""
        if isinstance(self.raw_data, str):
            return self.raw_data
        return json.dumps(self.raw_data, default=str, sort_keys=True)


class ProcessedSignal(BaseModel):
    """A structured, classified and verified intelligence item."""

    id: str
    type: SignalType
    category: str
    title: str
    description: str
    impact: ImpactAssessment = Field(default_factory=ImpactAssessment)
    metadata: SignalMetadata = Field(default_factory=SignalMetadata)
    verification: VerificationStatus = Field(default_factory=VerificationStatus)
    verification_result: Optional[VerificationResult] = None
    competitor_id: str
    record_id: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    sources: list[DataSource] = Field(default_factory=list)
    processing_time_ms: float = 0.0

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": "sig-1a2b3c",
                    "type": "pricing_change",
                    "category": "pricing",
                    "title": "Acme raises Pro plan to $49/month",
                    "description": "Pricing page lists Pro at $49 per month.",
                    "competitor_id": "acme",
                    "record_id": "rec-9f8e7d",
                    "confidence": 0.9,
                }
            ]
        }
    }


class Anomaly(BaseModel):
    type: str
    description: str
    severity: StrategicImpact
    signal_ids: list[str] = Field(default_factory=list)
    detected_at: datetime = Field(default_factory=utc_now)


class PrioritizedSignal(BaseModel):
    signal: ProcessedSignal
    priority_score: float
