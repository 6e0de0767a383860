"""Tests for source, ethical, content and compliance guardrails."""

from datetime import timedelta

import pytest

from competitive_intel.agents.sifters.guardrails import AuditLog, EthicalGuardrails, RobotsPolicy
from competitive_intel.config.pipeline_config import (
    ComplianceConfig,
    ContentFilteringConfig,
    GuardrailsConfig,
    SourceValidationConfig,
)
from competitive_intel.data_management.schemas import (
    AuditLogEntry,
    AuthConfig,
    AuthType,
    Severity,
    SourceType,
    ValidationError,
    ValidationResult,
)
from competitive_intel.interfaces import FetchResponse

DISALLOW_ALL = "User-agent: *\nDisallow: /\n"


@pytest.fixture
def guardrails(fetcher, clock) -> EthicalGuardrails:
    return EthicalGuardrails(GuardrailsConfig(), fetcher=fetcher, user_agent="test-agent", clock=clock)


class TestSourceValidation:
    @pytest.mark.asyncio
    async def test_public_source_passes(self, guardrails, make_source):
        result = await guardrails.validate_source(make_source())
        assert result.is_valid
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_private_credentials_rejected(self, guardrails, make_source):
        source = make_source(
            authentication=AuthConfig(type=AuthType.BEARER_TOKEN, credentials={"token": "secret"})
        )
        result = await guardrails.validate_source(source)
        assert "ETHICAL_001" in result.error_codes

    @pytest.mark.asyncio
    async def test_public_api_key_allowed(self, guardrails, make_source):
        source = make_source(
            authentication=AuthConfig(
                type=AuthType.API_KEY, credentials={"api_key": "pub_" + "x" * 40}
            )
        )
        assert (await guardrails.validate_source(source)).is_valid

    @pytest.mark.asyncio
    async def test_blacklisted_domain(self, fetcher, clock, make_source):
        guardrails = EthicalGuardrails(
            GuardrailsConfig(
                source_validation=SourceValidationConfig(blacklisted_domains=["evil.example.com"])
            ),
            fetcher=fetcher,
            clock=clock,
        )
        result = await guardrails.validate_source(make_source(url="https://evil.example.com/feed"))

        assert not result.is_valid
        assert "ETHICAL_002" in result.error_codes

    @pytest.mark.asyncio
    async def test_blacklist_matches_exact_host(self, fetcher, clock, make_source):
        guardrails = EthicalGuardrails(
            GuardrailsConfig(
                source_validation=SourceValidationConfig(blacklisted_domains=["evil.example.com"])
            ),
            fetcher=fetcher,
            clock=clock,
        )
        result = await guardrails.validate_source(make_source(url="https://www.evil.example.com/feed"))

        assert "ETHICAL_002" not in result.error_codes

    @pytest.mark.asyncio
    async def test_allowed_domains_restrict_sources(self, fetcher, clock, make_source):
        guardrails = EthicalGuardrails(
            GuardrailsConfig(
                source_validation=SourceValidationConfig(allowed_domains=["Acme.com"])
            ),
            fetcher=fetcher,
            clock=clock,
        )

        assert (await guardrails.validate_source(make_source(url="https://acme.com/feed.xml"))).is_valid
        result = await guardrails.validate_source(make_source(url="https://rival.io/feed.xml"))
        assert result.error_codes == ["VALIDATION_002"]

    @pytest.mark.asyncio
    async def test_invalid_url(self, guardrails, make_source):
        result = await guardrails.validate_source(make_source(url="not a url"))
        assert "VALIDATION_001" in result.error_codes

    @pytest.mark.asyncio
    async def test_low_reliability_warns(self, guardrails, make_source):
        result = await guardrails.validate_source(make_source(reliability=0.2))
        assert result.is_valid
        assert result.warnings[0].field == "source.reliability"

    @pytest.mark.asyncio
    async def test_social_sources_prohibited(self, guardrails, make_source):
        result = await guardrails.validate_source(make_source(type=SourceType.SOCIAL))
        assert "ETHICAL_003" in result.error_codes

    @pytest.mark.asyncio
    async def test_robots_disallow_blocks_scraping(self, guardrails, fetcher, make_source):
        fetcher.pages["https://acme.com/robots.txt"] = DISALLOW_ALL
        source = make_source(type=SourceType.WEB_SCRAPING, url="https://acme.com/pricing")

        result = await guardrails.validate_source(source)

        assert "ETHICAL_004" in result.error_codes

    @pytest.mark.asyncio
    async def test_robots_not_checked_for_feeds(self, guardrails, fetcher, make_source):
        fetcher.pages["https://acme.com/robots.txt"] = DISALLOW_ALL
        result = await guardrails.validate_source(make_source(url="https://acme.com/feed.xml"))

        assert result.is_valid
        assert fetcher.requests == []

    @pytest.mark.asyncio
    async def test_scraping_without_fetcher_warns(self, clock, make_source):
        guardrails = EthicalGuardrails(GuardrailsConfig(), clock=clock)
        source = make_source(type=SourceType.WEB_SCRAPING, url="https://acme.com/pricing")

        result = await guardrails.validate_source(source)

        assert result.is_valid
        assert any(w.message == "robots.txt could not be checked" for w in result.warnings)


class TestRobotsPolicy:
    @pytest.mark.asyncio
    async def test_missing_robots_allows(self, fetcher):
        decision = await RobotsPolicy(fetcher).check("https://acme.com/pricing")
        assert decision.allowed

    @pytest.mark.asyncio
    async def test_fetch_failure_allows(self, fetcher):
        fetcher.pages["https://acme.com/robots.txt"] = ConnectionError("refused")
        decision = await RobotsPolicy(fetcher).check("https://acme.com/pricing")
        assert decision.allowed

    @pytest.mark.asyncio
    async def test_path_rules_and_origin_cache(self, fetcher):
        fetcher.pages["https://acme.com/robots.txt"] = "User-agent: *\nDisallow: /private\n"
        policy = RobotsPolicy(fetcher, user_agent="test-agent")

        assert (await policy.check("https://acme.com/pricing")).allowed
        assert not (await policy.check("https://acme.com/private/roadmap")).allowed
        assert fetcher.requests == ["https://acme.com/robots.txt"]


class TestEthicalChecks:
    @pytest.mark.parametrize(
        "content, code",
        [
            ("Leaked memo: confidential information about the roadmap", "ETHICAL_005"),
            ("Login required to continue reading", "ETHICAL_006"),
            ("Our researcher posed as a customer to get the deck", "ETHICAL_007"),
            ("Contact jane.doe@acme.com for details", "PRIVACY_001"),
            ("Call 555-123-4567 for a demo", "PRIVACY_001"),
        ],
    )
    def test_pattern_violations(self, guardrails, make_record, content, code):
        record = make_record(raw_data={"title": "Update", "content": content})
        result = guardrails.perform_ethical_checks(record.source, record)
        assert code in result.error_codes

    def test_clean_content_passes(self, guardrails, make_record):
        record = make_record()
        assert guardrails.perform_ethical_checks(record.source, record).is_valid

    def test_timestamps_are_not_phone_numbers(self, guardrails, make_record):
        record = make_record(raw_data={"title": "Release", "content": "Published at 1717416000"})
        assert guardrails.perform_ethical_checks(record.source, record).is_valid

    def test_authenticated_scraping_is_unauthorized_access(self, guardrails, make_source, make_record):
        source = make_source(
            type=SourceType.WEB_SCRAPING,
            authentication=AuthConfig(type=AuthType.API_KEY, credentials={"api_key": "pub_1"}),
        )
        record = make_record(source=source)
        assert "ETHICAL_006" in guardrails.perform_ethical_checks(source, record).error_codes

    def test_unauthorized_access_judged_on_checked_source(self, guardrails, make_source, make_record):
        source = make_source(
            type=SourceType.WEB_SCRAPING,
            authentication=AuthConfig(type=AuthType.API_KEY, credentials={"api_key": "pub_1"}),
        )
        record = make_record()

        assert "ETHICAL_006" in guardrails.perform_ethical_checks(source, record).error_codes
        assert guardrails.perform_ethical_checks(record.source, record).is_valid


class TestContentValidation:
    def test_low_confidence_warns_and_lacks_evidence(self, guardrails, make_record):
        result = guardrails.validate_content(make_record(confidence=0.3))

        assert "CONTENT_001" in result.error_codes
        assert any(w.field == "data.confidence" for w in result.warnings)

    def test_evidence_threshold_is_inclusive(self, guardrails, make_record):
        assert "CONTENT_001" in guardrails.validate_content(make_record(confidence=0.6)).error_codes
        assert guardrails.validate_content(make_record(confidence=0.61)).is_valid

    def test_unmarked_speculation_warns(self, guardrails, make_record):
        record = make_record(raw_data="Acme might be acquiring a rival")
        result = guardrails.validate_content(record)
        assert any("Speculation" in w.message for w in result.warnings)

    def test_marked_speculation_is_fine(self, guardrails, make_record):
        record = make_record(raw_data="[speculation] Acme might be acquiring a rival")
        assert not any("Speculation" in w.message for w in guardrails.validate_content(record).warnings)

    def test_sensitive_content_blocked_when_configured(self, fetcher, clock, make_record):
        guardrails = EthicalGuardrails(
            GuardrailsConfig(content_filtering=ContentFilteringConfig(sensitive_content_handling="block")),
            clock=clock,
        )
        result = guardrails.validate_content(make_record(raw_data="An offensive ad campaign"))
        assert "CONTENT_002" in result.error_codes


class TestCompliance:
    def test_social_source_has_no_legal_basis(self, guardrails, make_source, make_record):
        source = make_source(type=SourceType.SOCIAL)
        result = guardrails.validate_compliance(source, make_record(source=source))
        assert "GDPR_001" in result.error_codes

    def test_personal_data_without_consent(self, guardrails, make_record):
        record = make_record(raw_data={"content": "Reach me at ceo@acme.com"})
        assert "GDPR_001" in guardrails.validate_compliance(record.source, record).error_codes

        consented = make_record(raw_data={"content": "Reach me at ceo@acme.com", "consent": True})
        assert "GDPR_001" not in guardrails.validate_compliance(consented.source, consented).error_codes

    def test_opt_out_with_personal_data(self, guardrails, make_record):
        record = make_record(
            raw_data={"content": "ceo@acme.com", "consent": True, "do_not_sell": True}
        )
        assert guardrails.validate_compliance(record.source, record).error_codes == ["CCPA_001"]

    def test_retention_limit(self, guardrails, make_record, clock):
        old = make_record(collected_at=clock() - timedelta(days=91))
        recent = make_record(collected_at=clock() - timedelta(days=89))

        assert "RETENTION_001" in guardrails.validate_compliance(old.source, old).error_codes
        assert guardrails.validate_compliance(recent.source, recent).is_valid

    def test_checks_can_be_disabled(self, guardrails, make_source, make_record):
        guardrails.update_config(
            compliance=ComplianceConfig(gdpr_compliant=False, ccpa_compliant=False, retention_limits=False)
        )
        source = make_source(type=SourceType.SOCIAL)
        assert guardrails.validate_compliance(source, make_record(source=source)).is_valid


class TestValidateAndAudit:
    @pytest.mark.asyncio
    async def test_valid_record(self, guardrails, make_record):
        result = await guardrails.validate(make_record().source, make_record())
        assert result.is_valid
        assert len(guardrails.get_audit_log()) == 1

    @pytest.mark.asyncio
    async def test_errors_from_all_stages_accumulate(self, guardrails, make_source, make_record):
        source = make_source(type=SourceType.SOCIAL)
        record = make_record(
            source=source,
            confidence=0.3,
            raw_data={"content": "Confidential information, email cfo@acme.com"},
        )
        result = await guardrails.validate(source, record)

        assert not result.is_valid
        assert {"ETHICAL_003", "ETHICAL_005", "PRIVACY_001", "CONTENT_001", "GDPR_001"} <= set(
            result.error_codes
        )
        assert result.recommendations

    @pytest.mark.asyncio
    async def test_compliance_metrics(self, guardrails, make_source, make_record):
        await guardrails.validate(make_record().source, make_record())
        social = make_source(type=SourceType.SOCIAL)
        await guardrails.validate(social, make_record(source=social))

        metrics = guardrails.get_compliance_metrics()
        assert metrics.total_validations == 2
        assert metrics.passed_validations == 1
        assert metrics.compliance_rate == 0.5
        assert ("ETHICAL_003", 1) in metrics.common_violations

    @pytest.mark.asyncio
    async def test_update_config_keeps_other_sections(self, guardrails, fetcher, make_source):
        guardrails.update_config(
            source_validation=SourceValidationConfig(blacklisted_domains=["acme.com"])
        )
        result = await guardrails.validate_source(make_source(url="https://acme.com/feed.xml"))

        assert "ETHICAL_002" in result.error_codes
        assert guardrails.config.compliance.data_retention_days == 90

    @pytest.mark.asyncio
    async def test_robots_error_response_allows(self, guardrails, fetcher, make_source):
        fetcher.pages["https://acme.com/robots.txt"] = FetchResponse(status=500, body="")
        source = make_source(type=SourceType.WEB_SCRAPING, url="https://acme.com/pricing")
        assert (await guardrails.validate_source(source)).is_valid


class TestAuditLog:
    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _entry(record_id, timestamp, code=None):
        errors = []
        if code:
            errors.append(ValidationError(field="source.url", message="bad", code=code, severity=Severity.HIGH))
        return AuditLogEntry(
            timestamp=timestamp,
            action="validate_record",
            source_id="acme-blog",
            record_id=record_id,
            result=ValidationResult(is_valid=not errors, errors=errors),
        )

    # ── Tests ────────────────────────────────────────────────────────────

    def test_oldest_entries_evicted_at_capacity(self, clock):
        log = AuditLog(capacity=3, clock=clock)
        for i in range(5):
            log.append(self._entry(f"rec-{i}", clock(), code="ETHICAL_003" if i < 2 else None))

        assert len(log) == 3
        assert [e.record_id for e in log.entries()] == ["rec-2", "rec-3", "rec-4"]

        metrics = log.compliance_metrics()
        assert metrics.total_validations == 3
        assert metrics.passed_validations == 3
        assert metrics.common_violations == []

    def test_metrics_only_cover_trailing_day(self, clock):
        log = AuditLog(capacity=10, clock=clock)
        log.append(self._entry("old", clock() - timedelta(hours=25), code="ETHICAL_002"))
        log.append(self._entry("new", clock(), code="ETHICAL_004"))

        metrics = log.compliance_metrics()
        assert metrics.total_validations == 1
        assert metrics.common_violations == [("ETHICAL_004", 1)]
        assert [e.record_id for e in log.entries(since=clock() - timedelta(hours=1))] == ["new"]
