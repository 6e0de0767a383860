"""Guardrail validation and audit schemas."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ValidationError(BaseModel):
    """A guardrail violation. Data, not an exception."""

    field: str
    message: str
    code: str
    severity: Severity


class ValidationWarning(BaseModel):
    field: str
    message: str
    suggestion: str = ""


class ValidationResult(BaseModel):
    is_valid: bool = True
    errors: list[ValidationError] = Field(default_factory=list)
    warnings: list[ValidationWarning] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    @property
    def error_codes(self) -> list[str]:
        return [error.code for error in self.errors]


class PatternDetection(BaseModel):
    """Result of scanning text against one pattern category."""

    category: str
    detected: bool = False
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    indicators: list[str] = Field(default_factory=list)


class AuditLogEntry(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    action: str
    source_id: str
    record_id: Optional[str] = None
    result: ValidationResult
    user_agent: str = ""


class ComplianceMetrics(BaseModel):
    """Validation outcomes over a trailing window."""

    total_validations: int = 0
    passed_validations: int = 0
    failed_validations: int = 0
    compliance_rate: float = 1.0
    common_violations: list[tuple[str, int]] = Field(default_factory=list)
    window_start: datetime
    window_end: datetime
