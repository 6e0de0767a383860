"""Ethical, legal and content guardrails applied to every collected record.

Four independent stages accumulate errors and warnings:

1. Source validation: public-only access, blacklist, URL shape, reliability,
   prohibited sources and robots.txt for scraped sources
2. Ethical checks: insider information, unauthorized access, social
   engineering and personal data (declarative pattern tables)
3. Content validation: confidence, unmarked speculation, evidence and
   sensitive content handling
4. Compliance: GDPR, CCPA and data retention

A record is valid when no stage reports an error. Every validation attempt is
appended to the validator's own audit log.

Usage:
    guardrails = EthicalGuardrails(GuardrailsConfig(), fetcher)
    result = await guardrails.validate(record.source, record)
    if not result.is_valid:
        ...
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional

from loguru import logger
from yarl import URL

from competitive_intel.agents.sifters.guardrails.audit_log import AuditLog
from competitive_intel.agents.sifters.guardrails.pattern_detector import PatternDetector
from competitive_intel.agents.sifters.guardrails.robots_policy import RobotsPolicy
from competitive_intel.config.detection_patterns import (
    CONSENT_KEYS,
    INSIDER_INFORMATION_PATTERNS,
    OPT_OUT_KEYS,
    PERSONAL_DATA_PATTERNS,
    SENSITIVE_CONTENT_PATTERNS,
    SOCIAL_ENGINEERING_PATTERNS,
    SPECULATION_LANGUAGE_PATTERNS,
    SPECULATION_MARKER,
    UNAUTHORIZED_ACCESS_PATTERNS,
)
from competitive_intel.config.pipeline_config import (
    ComplianceConfig,
    ContentFilteringConfig,
    EthicalCheckConfig,
    GuardrailsConfig,
    SourceValidationConfig,
)
from competitive_intel.data_management.schemas import (
    AuditLogEntry,
    AuthType,
    ComplianceMetrics,
    DataSource,
    MonitoringRecord,
    Severity,
    SourceType,
    ValidationError,
    ValidationResult,
    ValidationWarning,
)
from competitive_intel.interfaces import Fetcher

# Stage codes that count as compliance violations for alerting
COMPLIANCE_CODES = frozenset({"GDPR_001", "CCPA_001", "RETENTION_001"})

PUBLIC_KEY_PREFIXES = ("pub_", "public_")
PUBLIC_KEY_MAX_LENGTH = 20


def _error(field: str, message: str, code: str, severity: Severity = Severity.HIGH) -> ValidationError:
    return ValidationError(field=field, message=message, code=code, severity=severity)


def _result(errors: List[ValidationError], warnings: Optional[List[ValidationWarning]] = None) -> ValidationResult:
    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings or [])


def is_public_source(source: DataSource) -> bool:
    """Unauthenticated sources, or API keys that look like published public keys."""
    auth = source.authentication
    if auth is None:
        return True
    if auth.type is not AuthType.API_KEY:
        return False
    creds = auth.credentials
    key = creds.get("api_key") or creds.get("apiKey") or creds.get("key") or ""
    return key.startswith(PUBLIC_KEY_PREFIXES) or len(key) < PUBLIC_KEY_MAX_LENGTH


class EthicalGuardrails:
    """
    Validates sources and records against ethical and legal constraints.

    Attributes:
        config: Current guardrail configuration (replace via update_config)
        audit_log: Bounded audit trail owned by this validator
    """

    def __init__(
        self,
        config: Optional[GuardrailsConfig] = None,
        fetcher: Optional[Fetcher] = None,
        audit_log: Optional[AuditLog] = None,
        robots_policy: Optional[RobotsPolicy] = None,
        user_agent: str = "competitive-intel-monitor",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or GuardrailsConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.audit_log = audit_log or AuditLog(clock=self._clock)
        if robots_policy is None and fetcher is not None:
            robots_policy = RobotsPolicy(fetcher, user_agent=user_agent)
        self.robots_policy = robots_policy
        self.user_agent = user_agent

        self.ethical_detector = PatternDetector(
            {
                "insider_information": INSIDER_INFORMATION_PATTERNS,
                "unauthorized_access": UNAUTHORIZED_ACCESS_PATTERNS,
                "social_engineering": SOCIAL_ENGINEERING_PATTERNS,
                "personal_data": PERSONAL_DATA_PATTERNS,
            }
        )
        self.content_detector = PatternDetector(
            {
                "speculation": SPECULATION_LANGUAGE_PATTERNS,
                "sensitive": SENSITIVE_CONTENT_PATTERNS,
            }
        )
        self.logger = logger.bind(component="EthicalGuardrails")

    # ── Full validation ──────────────────────────────────────────────────

    async def validate(self, source: DataSource, record: MonitoringRecord) -> ValidationResult:
        """Run all four stages and record the attempt in the audit log."""
        stages = [
            await self.validate_source(source),
            self.perform_ethical_checks(source, record),
            self.validate_content(record),
            self.validate_compliance(source, record),
        ]

        errors = [e for stage in stages for e in stage.errors]
        warnings = [w for stage in stages for w in stage.warnings]
        result = ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            recommendations=self._recommendations(errors, warnings),
        )

        self.audit_log.append(
            AuditLogEntry(
                timestamp=self._clock(),
                action="validate_record",
                source_id=source.id,
                record_id=record.id,
                result=result,
                user_agent=self.user_agent,
            )
        )

        if result.is_valid:
            self.logger.debug(f"Record {record.id} passed guardrails ({len(warnings)} warnings)")
        else:
            self.logger.warning(
                f"Record {record.id} rejected: {', '.join(result.error_codes)}"
            )
        return result

    # ── Stage 1: source ──────────────────────────────────────────────────

    async def validate_source(self, source: DataSource) -> ValidationResult:
        errors: List[ValidationError] = []
        warnings: List[ValidationWarning] = []
        ethics = self.config.ethical_checks
        rules = self.config.source_validation

        if ethics.require_public_sources and not is_public_source(source):
            errors.append(_error(
                "source.authentication",
                "Source requires non-public authentication",
                "ETHICAL_001",
                Severity.CRITICAL,
            ))

        host = self._hostname(source.url)
        if host is None:
            errors.append(_error("source.url", "Invalid URL format", "VALIDATION_001"))
        else:
            blacklist = {d.lower() for d in rules.blacklisted_domains}
            if host in blacklist:
                errors.append(_error(
                    "source.url", f"Domain {host} is blacklisted", "ETHICAL_002", Severity.CRITICAL
                ))
            allowed = {d.lower() for d in rules.allowed_domains}
            if allowed and host not in allowed:
                errors.append(_error(
                    "source.url", f"Domain {host} is not in the allowed domains", "VALIDATION_002"
                ))

        if source.reliability < rules.minimum_reliability:
            warnings.append(ValidationWarning(
                field="source.reliability",
                message=(
                    f"Source reliability ({source.reliability}) is below threshold "
                    f"({rules.minimum_reliability})"
                ),
                suggestion="Consider using higher-reliability sources or implementing additional verification",
            ))

        if source.id in rules.prohibited_sources or source.type.value in rules.prohibited_source_types:
            errors.append(_error(
                "source.type", "Source type is prohibited by ethical guidelines", "ETHICAL_003"
            ))

        if source.type is SourceType.WEB_SCRAPING and ethics.check_robots_txt and host is not None:
            if self.robots_policy is None:
                self.logger.warning(f"robots.txt not checked for {source.url}: no fetcher configured")
                warnings.append(ValidationWarning(
                    field="source.url",
                    message="robots.txt could not be checked",
                    suggestion="Construct the guardrails with a fetcher",
                ))
            else:
                decision = await self.robots_policy.check(source.url)
                if not decision.allowed:
                    errors.append(_error(
                        "source.url", "Web scraping not allowed per robots.txt", "ETHICAL_004"
                    ))

        return _result(errors, warnings)

    # ── Stage 2: ethical patterns ────────────────────────────────────────

    def perform_ethical_checks(self, source: DataSource, record: MonitoringRecord) -> ValidationResult:
        ethics: EthicalCheckConfig = self.config.ethical_checks
        if not ethics.enabled:
            return ValidationResult()

        errors: List[ValidationError] = []
        detections = self.ethical_detector.scan(self._scan_text(record))

        if ethics.prohibit_insider_info and detections["insider_information"].detected:
            errors.append(_error(
                "data.content", "Potential insider information detected", "ETHICAL_005", Severity.CRITICAL
            ))

        access = detections["unauthorized_access"]
        scraping_authenticated = (
            source.authentication is not None and source.type is SourceType.WEB_SCRAPING
        )
        if scraping_authenticated or access.detected:
            errors.append(_error(
                "source.access", "Potential unauthorized access pattern detected", "ETHICAL_006"
            ))

        if detections["social_engineering"].detected:
            errors.append(_error(
                "data.collection_method", "Social engineering patterns detected", "ETHICAL_007", Severity.CRITICAL
            ))

        if detections["personal_data"].detected:
            errors.append(_error(
                "data.content", "Personal data detected - privacy violation risk", "PRIVACY_001"
            ))

        return _result(errors)

    # ── Stage 3: content ─────────────────────────────────────────────────

    def validate_content(self, record: MonitoringRecord) -> ValidationResult:
        rules: ContentFilteringConfig = self.config.content_filtering
        errors: List[ValidationError] = []
        warnings: List[ValidationWarning] = []
        text = self._scan_text(record)

        if rules.filter_low_confidence and record.confidence < rules.minimum_confidence:
            warnings.append(ValidationWarning(
                field="data.confidence",
                message="Low confidence data detected",
                suggestion="Consider additional verification or flagging as uncertain",
            ))

        if rules.flag_speculation:
            speculation = self.content_detector.detect("speculation", text)
            if speculation.detected and not SPECULATION_MARKER.search(text):
                warnings.append(ValidationWarning(
                    field="data.content",
                    message="Speculation detected but not marked",
                    suggestion="Add speculation markers to maintain transparency",
                ))

        if rules.require_evidence and record.confidence <= rules.evidence_confidence_threshold:
            errors.append(_error(
                "data.evidence", "Insufficient evidence for claims made", "CONTENT_001", Severity.MEDIUM
            ))

        if self.content_detector.detect("sensitive", text).detected:
            if rules.sensitive_content_handling == "block":
                errors.append(_error(
                    "data.content", "Sensitive content detected and blocked", "CONTENT_002", Severity.MEDIUM
                ))
            elif rules.sensitive_content_handling == "flag":
                warnings.append(ValidationWarning(
                    field="data.content",
                    message="Sensitive content detected and flagged for review",
                    suggestion="Review content before publishing or sharing",
                ))

        return _result(errors, warnings)

    # ── Stage 4: compliance ──────────────────────────────────────────────

    def validate_compliance(self, source: DataSource, record: MonitoringRecord) -> ValidationResult:
        rules: ComplianceConfig = self.config.compliance
        errors: List[ValidationError] = []

        has_personal_data = self.ethical_detector.detect(
            "personal_data", self._scan_text(record)
        ).detected

        if rules.gdpr_compliant:
            legal_basis = source.type is not SourceType.SOCIAL
            consent = self._payload_flag(record, CONSENT_KEYS)
            if not legal_basis or (has_personal_data and not consent):
                errors.append(_error("compliance.gdpr", "GDPR compliance violation detected", "GDPR_001"))

        if rules.ccpa_compliant:
            opted_out = self._payload_flag(record, OPT_OUT_KEYS)
            if opted_out and has_personal_data:
                errors.append(_error("compliance.ccpa", "CCPA compliance violation detected", "CCPA_001"))

        if rules.retention_limits:
            oldest_allowed = self._clock() - timedelta(days=rules.data_retention_days)
            if record.collected_at < oldest_allowed:
                errors.append(_error(
                    "compliance.retention", "Data retention policy violation", "RETENTION_001", Severity.MEDIUM
                ))

        return _result(errors)

    # ── Configuration and audit ──────────────────────────────────────────

    def update_config(
        self,
        ethical_checks: Optional[EthicalCheckConfig] = None,
        source_validation: Optional[SourceValidationConfig] = None,
        content_filtering: Optional[ContentFilteringConfig] = None,
        compliance: Optional[ComplianceConfig] = None,
    ) -> None:
        """Replace whole configuration sections. Omitted sections are kept."""
        updates = {
            name: section
            for name, section in (
                ("ethical_checks", ethical_checks),
                ("source_validation", source_validation),
                ("content_filtering", content_filtering),
                ("compliance", compliance),
            )
            if section is not None
        }
        self.config = self.config.model_copy(update=updates)
        if self.robots_policy is not None and "ethical_checks" in updates:
            self.robots_policy.clear()
        self.logger.info(f"Guardrail config updated: {', '.join(updates) or 'no changes'}")

    def get_audit_log(self, since: Optional[datetime] = None) -> List[AuditLogEntry]:
        return self.audit_log.entries(since)

    def get_compliance_metrics(self) -> ComplianceMetrics:
        return self.audit_log.compliance_metrics()

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _hostname(url: str) -> Optional[str]:
        try:
            parsed = URL(url)
        except (ValueError, TypeError):
            return None
        if not parsed.is_absolute() or parsed.scheme not in ("http", "https") or not parsed.host:
            return None
        return parsed.host.lower()

    @staticmethod
    def _scan_text(record: MonitoringRecord) -> str:
        draft = record.draft
        parts = [record.serialized_payload(), draft.title or "", draft.description or ""]
        return "\n".join(p for p in parts if p)

    @staticmethod
    def _payload_flag(record: MonitoringRecord, keys: tuple) -> bool:
        payload: Any = record.raw_data
        if not isinstance(payload, dict):
            return False
        return any(bool(payload.get(key)) for key in keys)

    @staticmethod
    def _recommendations(
        errors: List[ValidationError],
        warnings: List[ValidationWarning],
    ) -> List[str]:
        recommendations = []
        if any(e.code.startswith("ETHICAL_") for e in errors):
            recommendations.append(
                "Review ethical guidelines and ensure all data collection follows ethical practices"
            )
        if any("confidence" in w.field for w in warnings):
            recommendations.append("Implement additional verification steps for low-confidence data")
        if any(e.code.startswith("PRIVACY_") for e in errors):
            recommendations.append("Implement data anonymization and privacy protection measures")
        if any(e.code in COMPLIANCE_CODES for e in errors):
            recommendations.append("Review data handling against GDPR, CCPA and retention policies")
        return recommendations
