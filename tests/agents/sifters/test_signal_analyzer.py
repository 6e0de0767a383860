"""Tests for signal classification, anomaly detection and prioritization."""

from datetime import timedelta

import pytest

from competitive_intel.agents.sifters.signal_analyzer import (
    SignalAnalyzer,
    classify_signal_type,
    detect_language,
    extract_keywords,
)
from competitive_intel.data_management.schemas import (
    ChannelType,
    ImpactAssessment,
    ProcessedSignal,
    SignalDraft,
    SignalMetadata,
    SignalType,
    StrategicImpact,
    Timeframe,
    VerificationStatus,
)


# ── Helpers ───────────────────────────────────────────────────────────────


def _signal(signal_id, strategic="medium", timeframe="medium_term", confidence=0.5, processed_at=None):
    return ProcessedSignal(
        id=signal_id,
        type=SignalType.MARKET_MOVE,
        category="product_updates",
        title=signal_id,
        description="",
        impact=ImpactAssessment(strategic=strategic, timeframe=timeframe),
        metadata=SignalMetadata(processed_at=processed_at),
        verification=VerificationStatus(confidence_level=confidence),
        competitor_id="acme",
        record_id=f"rec-{signal_id}",
    )


@pytest.fixture
def analyzer(clock) -> SignalAnalyzer:
    return SignalAnalyzer(clock=clock)


class TestClassification:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Acme will launch a new product", SignalType.PRODUCT_LAUNCH),
            ("New pricing tiers announced", SignalType.PRICING_CHANGE),
            ("Patent granted for sync engine", SignalType.PATENT_FILING),
            ("Acme is hiring engineers", SignalType.HIRING_SIGNAL),
            ("Release notes mention pricing", SignalType.PRODUCT_LAUNCH),
            ("We ship a new IP portfolio", SignalType.PATENT_FILING),
        ],
    )
    def test_keyword_precedence(self, text, expected):
        assert classify_signal_type(text) is expected

    def test_ip_is_not_matched_inside_words(self):
        assert classify_signal_type("Free shipping on every order") is None


class TestAnalyze:
    def test_keywords_override_draft_type(self, analyzer, make_record):
        record = make_record(
            raw_data={"title": "Acme price increase", "content": "Pro plan now costs more."},
            draft=SignalDraft(type=SignalType.TECHNICAL_INSIGHT, title="Drafted"),
        )
        signal = analyzer.analyze(record)

        assert signal.type is SignalType.PRICING_CHANGE
        assert signal.title == "Drafted"

    def test_draft_type_ignored_without_keywords(self, analyzer, make_record):
        record = make_record(
            raw_data="Senior engineer opening in Berlin for the analytics team",
            draft=SignalDraft(type=SignalType.HIRING_SIGNAL),
        )
        assert analyzer.analyze(record).type is SignalType.MARKET_MOVE

    def test_defaults_without_draft(self, analyzer, make_record, clock):
        record = make_record(raw_data="Quarterly update\nAcme opened a new office in Berlin.")
        signal = analyzer.analyze(record)

        assert signal.type is SignalType.MARKET_MOVE
        assert signal.title == "Quarterly update"
        assert signal.category == ChannelType.PRODUCT_UPDATES.value
        assert signal.impact.strategic is StrategicImpact.MEDIUM
        assert signal.impact.affected_segments == ["general"]
        assert signal.impact.response_recommendation == "Monitor and analyze further"
        assert signal.metadata.processed_at == clock()
        assert signal.verification.confidence_level == record.confidence
        assert signal.sources == [record.source]
        assert signal.record_id == record.id
        assert signal.id.startswith("sig-")

    def test_draft_impact_is_copied(self, analyzer, make_record):
        impact = ImpactAssessment(strategic=StrategicImpact.CRITICAL, timeframe=Timeframe.IMMEDIATE)
        signal = analyzer.analyze(make_record(draft=SignalDraft(impact=impact)))

        assert signal.impact == impact
        assert signal.impact is not impact

    def test_empty_payload(self, analyzer, make_record):
        signal = analyzer.analyze(make_record(raw_data=""))
        assert signal.title == "Competitive Signal"
        assert signal.description == ""


class TestTextHelpers:
    def test_extract_keywords_skips_short_and_stop_words(self):
        assert extract_keywords("The new analytics dashboard from Acme, their best dashboard") == [
            "analytics", "dashboard", "acme", "best",
        ]

    def test_extract_keywords_limit(self):
        words = " ".join(f"word{i}" for i in range(20))
        assert len(extract_keywords(words)) == 10

    def test_short_text_defaults_to_english(self):
        assert detect_language("Hola") == "en"

    def test_detects_language(self):
        assert detect_language("Der Wettbewerber hat heute eine neue Preisstruktur angekündigt.") == "de"


class TestAnomalies:
    def test_activity_spike_over_ten_recent(self, analyzer, clock):
        signals = [_signal(f"s{i}", processed_at=clock() - timedelta(hours=1)) for i in range(11)]
        anomalies = analyzer.detect_anomalies(signals)

        assert len(anomalies) == 1
        assert anomalies[0].type == "activity_spike"
        assert anomalies[0].signal_ids == ["s0", "s1", "s2", "s3", "s4"]

    def test_old_signals_do_not_count(self, analyzer, clock):
        signals = [_signal(f"s{i}", processed_at=clock() - timedelta(days=2)) for i in range(20)]
        assert analyzer.detect_anomalies(signals) == []

    def test_idempotent(self, analyzer, clock):
        signals = [_signal(f"s{i}") for i in range(12)]
        assert analyzer.detect_anomalies(signals, now=clock()) == analyzer.detect_anomalies(
            signals, now=clock()
        )


class TestPrioritization:
    def test_priority_score(self):
        signal = _signal("a", strategic="critical", timeframe="immediate", confidence=1.0)
        assert SignalAnalyzer.priority_score(signal) == 175

    def test_sorted_descending_and_stable(self, analyzer):
        signals = [
            _signal("low", strategic="low"),
            _signal("tie-1", strategic="high"),
            _signal("top", strategic="critical"),
            _signal("tie-2", strategic="high"),
        ]
        ranked = analyzer.prioritize_signals(signals)

        assert [p.signal.id for p in ranked] == ["top", "tie-1", "tie-2", "low"]
        scores = [p.priority_score for p in ranked]
        assert scores == sorted(scores, reverse=True)
