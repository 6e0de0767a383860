"""Signal analysis: classification, metadata extraction, anomalies and priority.

Turns a MonitoringRecord into a full ProcessedSignal and computes corpus-level
views over stored signals.

Usage:
    analyzer = SignalAnalyzer()
    signal = analyzer.analyze(record)
    ranked = analyzer.prioritize_signals(signals)
"""

import re
import string
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from langdetect import DetectorFactory, LangDetectException, detect
from loguru import logger

from competitive_intel.config.detection_patterns import (
    CONFIDENCE_WEIGHT,
    IMPACT_WEIGHTS,
    SIGNAL_TYPE_RULES,
    STOP_WORDS,
    TIMEFRAME_WEIGHTS,
)
from competitive_intel.data_management.schemas import (
    Anomaly,
    ImpactAssessment,
    MonitoringRecord,
    PrioritizedSignal,
    ProcessedSignal,
    SignalMetadata,
    SignalType,
    StrategicImpact,
    Timeframe,
    VerificationStatus,
)

# Deterministic language detection
DetectorFactory.seed = 0

ANOMALY_WINDOW = timedelta(hours=24)
ACTIVITY_SPIKE_THRESHOLD = 10
ANOMALY_SAMPLE_SIZE = 5
MAX_KEYWORDS = 10
TITLE_LIMIT = 100
DESCRIPTION_LIMIT = 500
MIN_LANGDETECT_CHARS = 20


def clean_text(text: str) -> str:
    """Collapse whitespace runs and trim."""
    return re.sub(r"\s+", " ", text).strip()


def classify_signal_type(content: str) -> Optional[SignalType]:
    for signal_type, pattern in SIGNAL_TYPE_RULES:
        if pattern.search(content):
            return signal_type
    return None


def extract_keywords(content: str, limit: int = MAX_KEYWORDS) -> List[str]:
    """Distinct lower-cased words longer than three characters, in order of appearance.

    Surrounding punctuation is stripped from each word.
    """
    seen: List[str] = []
    for token in content.lower().split():
        word = token.strip(string.punctuation)
        if len(word) > 3 and word not in STOP_WORDS and word not in seen:
            seen.append(word)
            if len(seen) >= limit:
                break
    return seen


def detect_language(content: str, default: str = "en") -> str:
    if len(content) < MIN_LANGDETECT_CHARS:
        return default
    try:
        return detect(content)
    except LangDetectException:
        return default


class SignalAnalyzer:
    """
    Classifies records into signals and ranks signal corpora.

    Type is assigned by keyword precedence (launch/release, then price/pricing,
    then patent/ip, then hiring/job). Content with none of these is
    market_move, whatever type the collector drafted.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = logger.bind(component="SignalAnalyzer")

    def analyze(self, record: MonitoringRecord) -> ProcessedSignal:
        raw_text = record.content_text()
        content = clean_text(raw_text)
        draft = record.draft

        signal_type = classify_signal_type(content) or SignalType.MARKET_MOVE
        first_line = clean_text(raw_text.strip().split("\n", 1)[0]) if content else ""
        title = draft.title or first_line[:TITLE_LIMIT] or "Competitive Signal"
        description = draft.description or content[:DESCRIPTION_LIMIT]

        impact = draft.impact.model_copy(deep=True) if draft.impact else ImpactAssessment(
            strategic=StrategicImpact.MEDIUM,
            timeframe=Timeframe.MEDIUM_TERM,
            affected_segments=["general"],
            response_recommendation="Monitor and analyze further",
        )

        keywords = extract_keywords(content)
        for keyword in draft.keywords:
            if keyword not in keywords and len(keywords) < MAX_KEYWORDS:
                keywords.append(keyword)

        metadata = SignalMetadata(
            keywords=keywords,
            sentiment=draft.sentiment if draft.sentiment is not None else 0.0,
            entities=list(draft.entities),
            topics=list(draft.topics),
            language=detect_language(content),
            readability_score=0.5,
            processed_at=self._clock(),
        )

        signal = ProcessedSignal(
            id=f"sig-{uuid.uuid4().hex[:12]}",
            type=signal_type,
            category=record.channel.value,
            title=title,
            description=description,
            impact=impact,
            metadata=metadata,
            verification=VerificationStatus(
                is_verified=False,
                source_count=1,
                confidence_level=record.confidence,
            ),
            competitor_id=record.competitor_id,
            record_id=record.id,
            confidence=record.confidence,
            sources=[record.source],
        )

        self.logger.debug(f"Analyzed record {record.id} as {signal_type.value}")
        return signal

    def detect_anomalies(
        self,
        signals: List[ProcessedSignal],
        now: Optional[datetime] = None,
    ) -> List[Anomaly]:
        """
        Detect corpus-level anomalies in the trailing 24 hours.

        Signals without a processing timestamp count as recent. Deterministic
        for a fixed ``now``.
        """
        now = now or self._clock()
        cutoff = now - ANOMALY_WINDOW
        recent = [
            s for s in signals
            if s.metadata.processed_at is None or s.metadata.processed_at > cutoff
        ]

        anomalies: List[Anomaly] = []
        if len(recent) > ACTIVITY_SPIKE_THRESHOLD:
            anomalies.append(
                Anomaly(
                    type="activity_spike",
                    description=f"Unusual spike in signals: {len(recent)} in last 24 hours",
                    severity=StrategicImpact.MEDIUM,
                    signal_ids=[s.id for s in recent[:ANOMALY_SAMPLE_SIZE]],
                    detected_at=now,
                )
            )
        return anomalies

    @staticmethod
    def priority_score(signal: ProcessedSignal) -> float:
        return (
            IMPACT_WEIGHTS[signal.impact.strategic.value]
            + TIMEFRAME_WEIGHTS[signal.impact.timeframe.value]
            + signal.verification.confidence_level * CONFIDENCE_WEIGHT
        )

    def prioritize_signals(self, signals: List[ProcessedSignal]) -> List[PrioritizedSignal]:
        """Rank signals by priority, highest first. Ties keep input order."""
        scored = [
            PrioritizedSignal(signal=signal, priority_score=self.priority_score(signal))
            for signal in signals
        ]
        return sorted(scored, key=lambda p: p.priority_score, reverse=True)
