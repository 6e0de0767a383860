"""Fact verification schemas."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from competitive_intel.data_management.schemas.source_schema import DataSource


class EvidenceLevel(str, Enum):
    """How well a signal is corroborated.

    CONFIRMED: two or more independent sources agree.
    LIKELY: one supporting source, or high collector confidence.
    UNCONFIRMED: no corroboration either way.
    SPECULATIVE: the text itself is dominated by speculation.
    """

    CONFIRMED = "confirmed"
    LIKELY = "likely"
    UNCONFIRMED = "unconfirmed"
    SPECULATIVE = "speculative"


class SpeculationFlag(BaseModel):
    text: str
    position: int = Field(..., ge=0)
    reason: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    suggested_revision: str


class CredibilityScore(BaseModel):
    """Credibility of one source across four dimensions."""

    overall: float = Field(..., ge=0.0, le=1.0)
    factual: float = Field(..., ge=0.0, le=1.0)
    timeliness: float = Field(..., ge=0.0, le=1.0)
    expertise: float = Field(..., ge=0.0, le=1.0)
    bias: float = Field(..., ge=0.0, le=1.0)
    factors: list[str] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def neutral(cls, reason: str) -> "CredibilityScore":
        return cls(
            overall=0.5,
            factual=0.5,
            timeliness=0.5,
            expertise=0.5,
            bias=0.5,
            factors=[reason],
        )


class CrossReference(BaseModel):
    """Agreement between a signal and one independent source."""

    source: DataSource
    agreement: float = Field(..., ge=0.0, le=1.0)
    conflicting_info: list[str] = Field(default_factory=list)
    supporting_info: list[str] = Field(default_factory=list)
    last_checked: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class VerificationResult(BaseModel):
    """Outcome of verifying one signal. Always produced, never raised."""

    is_factual: bool = False
    evidence_level: EvidenceLevel = EvidenceLevel.UNCONFIRMED
    supporting_sources: list[DataSource] = Field(default_factory=list)
    contradicting_sources: list[DataSource] = Field(default_factory=list)
    speculation_flags: list[SpeculationFlag] = Field(default_factory=list)
    credibility: CredibilityScore
    confidence_level: float = Field(default=0.0, ge=0.0, le=1.0)
    verification_notes: str = ""
    last_verified: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def summary(self) -> dict[str, Any]:
        return {
            "is_factual": self.is_factual,
            "evidence_level": self.evidence_level.value,
            "confidence_level": round(self.confidence_level, 3),
            "flags": len(self.speculation_flags),
            "supporting": len(self.supporting_sources),
            "contradicting": len(self.contradicting_sources),
        }
