"""Tests for speculation flagging, cross-referencing and fact verification."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from competitive_intel.agents.sifters.verification import (
    CredibilityAssessor,
    CrossReferenceRegistry,
    FactVerifier,
    KeywordAgreementChecker,
    SpeculationFlagger,
    suggest_factual_revision,
)
from competitive_intel.data_management.schemas import (
    CrossReference,
    EvidenceLevel,
    ProcessedSignal,
    SignalMetadata,
    SignalType,
    SourceType,
)
from competitive_intel.exceptions import FetchStatusError

SPECULATIVE_TEXT = (
    "Rumor has it Acme might be planning to launch a new tier. "
    "Sources say it seems to be aimed at enterprises."
)


# ── Helpers ───────────────────────────────────────────────────────────────


@pytest.fixture
def make_signal(make_source):
    def _make(
        signal_id="sig-1",
        description="Acme lists the Pro plan at $49 per month.",
        confidence=0.7,
        sources=None,
        title="Acme launches analytics dashboard",
        keywords=None,
    ) -> ProcessedSignal:
        return ProcessedSignal(
            id=signal_id,
            type=SignalType.PRODUCT_LAUNCH,
            category="product_updates",
            title=title,
            description=description,
            metadata=SignalMetadata(keywords=keywords or ["analytics", "pricing"]),
            competitor_id="acme",
            record_id=f"rec-{signal_id}",
            confidence=confidence,
            sources=sources if sources is not None else [
                make_source(
                    "acme-pricing",
                    type=SourceType.WEB_SCRAPING,
                    url="https://acme.com/pricing",
                    reliability=0.85,
                )
            ],
        )

    return _make


def _checker(agreements):
    """Cross-reference checker returning a fixed agreement per source id."""

    async def check(signal, source):
        agreement = agreements[source.id]
        if isinstance(agreement, Exception):
            raise agreement
        return CrossReference(source=source, agreement=agreement)

    mock = AsyncMock(side_effect=check)
    mock.check = mock
    return mock


@pytest.fixture
def reference_sources(make_source):
    return [
        make_source("ref-a", url="https://news.example.com/a"),
        make_source("ref-b", url="https://news.example.com/b"),
        make_source("ref-c", url="https://news.example.com/c"),
    ]


# ── Speculation ───────────────────────────────────────────────────────────


class TestSpeculationFlagger:
    def test_single_flag(self):
        flags = SpeculationFlagger().flag("Acme might be expanding.")

        assert len(flags) == 1
        assert flags[0].text == "might be"
        assert flags[0].position == 5
        assert flags[0].reason == "Uncertainty language detected"
        assert flags[0].suggested_revision == "appears to be (unconfirmed)"

    def test_every_match_of_every_rule(self):
        flags = SpeculationFlagger().flag(SPECULATIVE_TEXT)
        reasons = {f.reason for f in flags}

        assert len(flags) >= 5
        assert {
            "Uncertainty language detected",
            "Future prediction without evidence",
            "Explicit speculation marker",
            "Weak or anonymous sourcing",
        } <= reasons

    def test_factual_text_has_no_flags(self):
        assert SpeculationFlagger().flag("Acme raised prices on June 3.") == []
        assert SpeculationFlagger().flag("") == []

    def test_revisions(self):
        assert suggest_factual_revision("reportedly") == "according to [source]"
        assert suggest_factual_revision("word is") == "[VERIFY] word is"


# ── Cross-referencing ─────────────────────────────────────────────────────


class TestCrossReferenceRegistry:
    def test_add_dedupes_and_remove(self, reference_sources):
        registry = CrossReferenceRegistry(reference_sources[:2])

        assert not registry.add(reference_sources[0])
        assert registry.add(reference_sources[2])
        assert len(registry) == 3

        assert registry.remove("ref-a")
        assert not registry.remove("ref-a")
        assert [s.id for s in registry.list()] == ["ref-b", "ref-c"]

    def test_list_is_a_snapshot(self, reference_sources):
        registry = CrossReferenceRegistry(reference_sources)
        snapshot = registry.list()
        registry.remove("ref-a")
        assert len(snapshot) == 3


class TestKeywordAgreementChecker:
    @pytest.mark.asyncio
    async def test_full_agreement_supports(self, fetcher, clock, make_signal, reference_sources):
        source = reference_sources[0]
        fetcher.pages[source.url] = (
            "<p>Acme launches a new analytics dashboard with usage-based pricing</p>"
        )
        ref = await KeywordAgreementChecker(fetcher, clock=clock).check(make_signal(), source)

        assert ref.agreement == 1.0
        assert ref.supporting_info == ["Confirms product_launch"]
        assert ref.conflicting_info == []
        assert ref.last_checked == clock()

    @pytest.mark.asyncio
    async def test_weak_agreement_conflicts(self, fetcher, make_signal, reference_sources):
        source = reference_sources[0]
        fetcher.pages[source.url] = "<p>Acme opened an office</p>"
        ref = await KeywordAgreementChecker(fetcher).check(make_signal(), source)

        assert ref.agreement == pytest.approx(0.2)
        assert ref.conflicting_info == ["Different perspective on product_updates"]

    @pytest.mark.asyncio
    async def test_irrelevant_source_returns_none(self, fetcher, make_signal, reference_sources):
        source = reference_sources[0]
        fetcher.pages[source.url] = "<p>Weather is nice today</p>"
        assert await KeywordAgreementChecker(fetcher).check(make_signal(), source) is None

    @pytest.mark.asyncio
    async def test_http_error_raises(self, fetcher, make_signal, reference_sources):
        with pytest.raises(FetchStatusError):
            await KeywordAgreementChecker(fetcher).check(make_signal(), reference_sources[0])


# ── Verification ──────────────────────────────────────────────────────────


class TestFactVerifier:
    @pytest.mark.asyncio
    async def test_speculative_without_corroboration(self, clock, make_signal):
        verifier = FactVerifier(clock=clock)
        result = await verifier.verify(make_signal(description=SPECULATIVE_TEXT))

        assert result.evidence_level is EvidenceLevel.SPECULATIVE
        assert result.is_factual is False
        assert result.confidence_level <= 0.3
        assert len(result.speculation_flags) >= 3
        assert "Contains significant speculation" in result.verification_notes

    @pytest.mark.asyncio
    async def test_two_supporting_sources_confirm(self, clock, make_signal, reference_sources):
        checker = _checker({"ref-a": 0.9, "ref-b": 0.8, "ref-c": 0.5})
        verifier = FactVerifier(CrossReferenceRegistry(reference_sources), checker, clock=clock)

        result = await verifier.verify(make_signal())

        assert checker.await_count == 3
        assert result.evidence_level is EvidenceLevel.CONFIRMED
        assert result.is_factual is True
        assert result.confidence_level == 0.9
        assert [s.id for s in result.supporting_sources] == ["ref-a", "ref-b"]
        assert result.contradicting_sources == []
        assert "2 source(s) support this information" in result.verification_notes
        assert result.verification_notes.endswith(".")

    @pytest.mark.asyncio
    async def test_minimum_evidence_sets_confirmation_bar(self, make_signal, reference_sources):
        agreements = {"ref-a": 0.9, "ref-b": 0.5, "ref-c": 0.5}
        default = FactVerifier(CrossReferenceRegistry(reference_sources), _checker(agreements))
        lenient = FactVerifier(
            CrossReferenceRegistry(reference_sources), _checker(agreements), minimum_evidence=1
        )

        assert (await default.verify(make_signal())).evidence_level is EvidenceLevel.LIKELY
        assert (await lenient.verify(make_signal())).evidence_level is EvidenceLevel.CONFIRMED

    @pytest.mark.asyncio
    async def test_contradicting_sources_are_reported(self, make_signal, reference_sources):
        checker = _checker({"ref-a": 0.2, "ref-b": 0.15, "ref-c": 0.5})
        verifier = FactVerifier(CrossReferenceRegistry(reference_sources), checker)

        result = await verifier.verify(make_signal())

        assert result.evidence_level is EvidenceLevel.UNCONFIRMED
        assert [s.id for s in result.contradicting_sources] == ["ref-a", "ref-b"]
        assert result.confidence_level <= 0.6

    @pytest.mark.asyncio
    async def test_high_collector_confidence_is_likely(self, make_signal):
        result = await FactVerifier().verify(make_signal(confidence=0.95))

        assert result.evidence_level is EvidenceLevel.LIKELY
        assert result.confidence_level == pytest.approx((0.8 + 0.95) / 2)

    @pytest.mark.asyncio
    async def test_failing_cross_reference_is_skipped(self, make_signal, reference_sources):
        checker = _checker({"ref-a": 0.9, "ref-b": RuntimeError("boom"), "ref-c": 0.9})
        verifier = FactVerifier(CrossReferenceRegistry(reference_sources), checker)

        result = await verifier.verify(make_signal())

        assert result.evidence_level is EvidenceLevel.CONFIRMED
        assert len(result.supporting_sources) == 2

    @pytest.mark.asyncio
    async def test_malformed_input_degrades(self):
        result = await FactVerifier().verify(None)

        assert result.is_factual is False
        assert result.evidence_level is EvidenceLevel.UNCONFIRMED
        assert result.confidence_level == 0.0
        assert result.verification_notes.startswith("Verification failed:")

    @pytest.mark.asyncio
    async def test_internal_failure_degrades(self, make_signal):
        assessor = MagicMock(spec=CredibilityAssessor)
        assessor.assess.side_effect = RuntimeError("cache corrupted")
        verifier = FactVerifier(assessor=assessor)

        result = await verifier.verify(make_signal())

        assert result.confidence_level == 0.0
        assert result.verification_notes == "Verification failed: cache corrupted"
        assert verifier.get_verification_history()["sig-1"] is result

    @pytest.mark.asyncio
    async def test_signal_without_sources_uses_neutral_credibility(self, make_signal):
        result = await FactVerifier().verify(make_signal(sources=[]))

        assert result.credibility.overall == 0.5
        assert 0.0 <= result.confidence_level <= 1.0

    @pytest.mark.asyncio
    async def test_batch_verify_and_history(self, make_signal):
        verifier = FactVerifier()
        signals = [make_signal(signal_id=f"sig-{i}") for i in range(7)]

        results = await verifier.batch_verify(signals, batch_delay=0)

        assert list(results) == [f"sig-{i}" for i in range(7)]
        assert len(verifier.get_verification_history()) == 7

        verifier.clear_verification_history()
        assert verifier.get_verification_history() == {}

    def test_registry_administration(self, reference_sources):
        verifier = FactVerifier()
        assert verifier.add_cross_reference_source(reference_sources[0])
        assert not verifier.add_cross_reference_source(reference_sources[0])
        assert verifier.remove_cross_reference_source("ref-a")
        assert len(verifier.registry) == 0
