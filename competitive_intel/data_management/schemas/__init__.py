"""Pydantic schemas for sources, signals, verification, validation and alerts.

Usage:
    from competitive_intel.data_management.schemas import DataSource, RateLimit
    source = DataSource(
        id="acme-blog",
        name="Acme Blog",
        type="rss",
        url="https://acme.com/feed.xml",
        rate_limit=RateLimit(requests_per_hour=24, requests_per_day=288, burst_limit=5),
        reliability=0.9,
    )
"""

from competitive_intel.data_management.schemas.source_schema import (
    AuthConfig,
    AuthType,
    ChannelFilter,
    ChannelType,
    CompetitorTarget,
    DataSource,
    Frequency,
    MonitoringChannel,
    RateLimit,
    SourceType,
)
from competitive_intel.data_management.schemas.verification_schema import (
    CredibilityScore,
    CrossReference,
    EvidenceLevel,
    SpeculationFlag,
    VerificationResult,
)
from competitive_intel.data_management.schemas.signal_schema import (
    Anomaly,
    ImpactAssessment,
    MonitoringRecord,
    PrioritizedSignal,
    ProcessedSignal,
    RawData,
    SignalDraft,
    SignalMetadata,
    SignalType,
    StrategicImpact,
    Timeframe,
    VerificationMethod,
    VerificationStatus,
)
from competitive_intel.data_management.schemas.validation_schema import (
    AuditLogEntry,
    ComplianceMetrics,
    PatternDetection,
    Severity,
    ValidationError,
    ValidationResult,
    ValidationWarning,
)
from competitive_intel.data_management.schemas.alert_schema import (
    AlertEvent,
    AlertType,
    BatchSummary,
    PipelineMetrics,
    ProcessingErrorRecord,
    Urgency,
)

__all__ = [
    "AuthConfig",
    "AuthType",
    "ChannelFilter",
    "ChannelType",
    "CompetitorTarget",
    "DataSource",
    "Frequency",
    "MonitoringChannel",
    "RateLimit",
    "SourceType",
    "CredibilityScore",
    "CrossReference",
    "EvidenceLevel",
    "SpeculationFlag",
    "VerificationResult",
    "Anomaly",
    "ImpactAssessment",
    "MonitoringRecord",
    "PrioritizedSignal",
    "ProcessedSignal",
    "RawData",
    "SignalDraft",
    "SignalMetadata",
    "SignalType",
    "StrategicImpact",
    "Timeframe",
    "VerificationMethod",
    "VerificationStatus",
    "AuditLogEntry",
    "ComplianceMetrics",
    "PatternDetection",
    "Severity",
    "ValidationError",
    "ValidationResult",
    "ValidationWarning",
    "AlertEvent",
    "AlertType",
    "BatchSummary",
    "PipelineMetrics",
    "ProcessingErrorRecord",
    "Urgency",
]
