"""Fact verification for processed signals.

Pipeline per signal:
1. Flag speculation in the description
2. Cross-reference every registry source concurrently (aiometer)
3. Assess source credibility (cached 24h per source)
4. Derive the evidence level
5. Decide factual status and write notes

``verify`` never raises. Any internal failure degrades to an unconfirmed,
non-factual result with zero confidence.

Usage:
    verifier = FactVerifier(registry, KeywordAgreementChecker(fetcher))
    result = await verifier.verify(signal)
"""

import asyncio
import functools
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import aiometer

from competitive_intel.agents.sifters.verification.credibility import CredibilityAssessor
from competitive_intel.agents.sifters.verification.cross_reference import (
    CONTRADICT_THRESHOLD,
    SUPPORT_THRESHOLD,
    CrossReferenceRegistry,
)
from competitive_intel.agents.sifters.verification.speculation_flagger import SpeculationFlagger
from competitive_intel.data_management.schemas import (
    CredibilityScore,
    CrossReference,
    DataSource,
    EvidenceLevel,
    ProcessedSignal,
    SpeculationFlag,
    VerificationResult,
)
from competitive_intel.exceptions import VerificationError
from competitive_intel.interfaces import CrossReferenceChecker
from competitive_intel.utils.logging import get_structured_logger

EVIDENCE_NOTES = {
    EvidenceLevel.CONFIRMED: "Multiple sources confirm this information",
    EvidenceLevel.LIKELY: "Evidence suggests this is accurate",
    EvidenceLevel.UNCONFIRMED: "Limited evidence available",
    EvidenceLevel.SPECULATIVE: "Contains significant speculation",
}

DEFAULT_BATCH_SIZE = 5
DEFAULT_MINIMUM_EVIDENCE = 2


def determine_evidence_level(
    signal: ProcessedSignal,
    cross_references: List[CrossReference],
    flags: List[SpeculationFlag],
    minimum_evidence: int = DEFAULT_MINIMUM_EVIDENCE,
) -> EvidenceLevel:
    if len(flags) > 2:
        return EvidenceLevel.SPECULATIVE
    supporting = sum(1 for ref in cross_references if ref.agreement > SUPPORT_THRESHOLD)
    if supporting >= minimum_evidence:
        return EvidenceLevel.CONFIRMED
    if supporting or signal.confidence > 0.8:
        return EvidenceLevel.LIKELY
    return EvidenceLevel.UNCONFIRMED


def determine_factual_status(
    evidence_level: EvidenceLevel,
    flags: List[SpeculationFlag],
    credibility: CredibilityScore,
) -> bool:
    if evidence_level is EvidenceLevel.SPECULATIVE or len(flags) > 3:
        return False
    if evidence_level is EvidenceLevel.CONFIRMED and credibility.overall > 0.7:
        return True
    if evidence_level is EvidenceLevel.LIKELY and credibility.overall > 0.8:
        return True
    return False


def confidence_for(
    evidence_level: EvidenceLevel,
    credibility: CredibilityScore,
    signal_confidence: float,
) -> float:
    """Blend credibility and collector confidence, bounded by evidence level."""
    base = (credibility.overall + signal_confidence) / 2
    if evidence_level is EvidenceLevel.CONFIRMED:
        value = max(base, 0.9)
    elif evidence_level is EvidenceLevel.LIKELY:
        value = base
    elif evidence_level is EvidenceLevel.UNCONFIRMED:
        value = min(base, 0.6)
    else:
        value = min(base, 0.3)
    return min(1.0, max(0.0, value))


def build_notes(
    evidence_level: EvidenceLevel,
    flags: List[SpeculationFlag],
    cross_references: List[CrossReference],
    credibility: CredibilityScore,
) -> str:
    notes = [EVIDENCE_NOTES[evidence_level]]

    if credibility.overall > 0.8:
        notes.append("High-credibility source")
    elif credibility.overall < 0.4:
        notes.append("Low-credibility source - verify independently")

    if flags:
        notes.append(f"Contains {len(flags)} speculation indicator(s)")

    supporting = sum(1 for ref in cross_references if ref.agreement > SUPPORT_THRESHOLD)
    contradicting = sum(1 for ref in cross_references if ref.agreement < CONTRADICT_THRESHOLD)
    if supporting:
        notes.append(f"{supporting} source(s) support this information")
    if contradicting:
        notes.append(f"{contradicting} source(s) contradict this information")

    return ". ".join(notes) + "."


class FactVerifier:
    """
    Verifies signals against speculation patterns, independent sources and
    source credibility.

    Attributes:
        registry: Cross-reference sources
        checker: Cross-reference checker collaborator
        assessor: Credibility assessor with its own cache
        flagger: Speculation flagger
        concurrency: Maximum concurrent cross-reference checks per signal
        minimum_evidence: Supporting cross-references needed to confirm a signal
    """

    def __init__(
        self,
        registry: Optional[CrossReferenceRegistry] = None,
        checker: Optional[CrossReferenceChecker] = None,
        assessor: Optional[CredibilityAssessor] = None,
        flagger: Optional[SpeculationFlagger] = None,
        concurrency: int = 5,
        minimum_evidence: int = DEFAULT_MINIMUM_EVIDENCE,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.registry = registry or CrossReferenceRegistry()
        self.checker = checker
        self.assessor = assessor or CredibilityAssessor(clock=self._clock)
        self.flagger = flagger or SpeculationFlagger()
        self.concurrency = concurrency
        self.minimum_evidence = minimum_evidence
        self._history: Dict[str, VerificationResult] = {}
        self._logger = get_structured_logger("FactVerifier")

    async def verify(self, signal: ProcessedSignal) -> VerificationResult:
        try:
            result = await self._verify(signal)
        except Exception as e:
            self._logger.error("verification_failed", signal_id=getattr(signal, "id", None), error=str(e))
            result = VerificationResult(
                is_factual=False,
                evidence_level=EvidenceLevel.UNCONFIRMED,
                credibility=CredibilityScore.neutral("Verification failed"),
                confidence_level=0.0,
                verification_notes=f"Verification failed: {e}",
                last_verified=self._clock(),
            )

        signal_id = getattr(signal, "id", None)
        if signal_id:
            self._history[signal_id] = result
        return result

    async def _verify(self, signal: ProcessedSignal) -> VerificationResult:
        if not isinstance(signal, ProcessedSignal):
            raise VerificationError(f"Expected ProcessedSignal, got {type(signal).__name__}")

        flags = self.flagger.flag(signal.description)
        cross_references = await self.cross_reference(signal, self.registry.list())
        credibility = self.assessor.assess(signal.sources[0] if signal.sources else None)

        evidence_level = determine_evidence_level(
            signal, cross_references, flags, self.minimum_evidence
        )
        result = VerificationResult(
            is_factual=determine_factual_status(evidence_level, flags, credibility),
            evidence_level=evidence_level,
            supporting_sources=[r.source for r in cross_references if r.agreement > SUPPORT_THRESHOLD],
            contradicting_sources=[r.source for r in cross_references if r.agreement < CONTRADICT_THRESHOLD],
            speculation_flags=flags,
            credibility=credibility,
            confidence_level=confidence_for(evidence_level, credibility, signal.confidence),
            verification_notes=build_notes(evidence_level, flags, cross_references, credibility),
            last_verified=self._clock(),
        )

        self._logger.info(
            "signal_verified",
            signal_id=signal.id,
            evidence_level=evidence_level.value,
            cross_references=len(cross_references),
            flags=len(flags),
        )
        return result

    async def cross_reference(
        self,
        signal: ProcessedSignal,
        sources: List[DataSource],
    ) -> List[CrossReference]:
        """Check all sources concurrently. Per-source failures are logged and skipped."""
        if not sources or self.checker is None:
            return []

        results = await aiometer.run_all(
            [functools.partial(self._check_one, signal, source) for source in sources],
            max_at_once=self.concurrency,
        )
        return [ref for ref in results if ref is not None]

    async def _check_one(
        self,
        signal: ProcessedSignal,
        source: DataSource,
    ) -> Optional[CrossReference]:
        try:
            return await self.checker.check(signal, source)
        except Exception as e:
            self._logger.warning("cross_reference_failed", source=source.name, error=str(e))
            return None

    async def batch_verify(
        self,
        signals: List[ProcessedSignal],
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay: float = 1.0,
    ) -> Dict[str, VerificationResult]:
        """Verify signals in fixed-size batches, pausing between batches."""
        results: Dict[str, VerificationResult] = {}
        for start in range(0, len(signals), batch_size):
            batch = signals[start:start + batch_size]
            verified = await asyncio.gather(*(self.verify(s) for s in batch))
            for signal, result in zip(batch, verified):
                results[signal.id] = result
            if batch_delay and start + batch_size < len(signals):
                await asyncio.sleep(batch_delay)
        return results

    def get_verification_history(self) -> Dict[str, VerificationResult]:
        return dict(self._history)

    def clear_verification_history(self) -> None:
        self._history.clear()

    def add_cross_reference_source(self, source: DataSource) -> bool:
        return self.registry.add(source)

    def remove_cross_reference_source(self, source_id: str) -> bool:
        return self.registry.remove(source_id)
