"""Fact verification: speculation flags, cross-references and credibility."""

from competitive_intel.agents.sifters.verification.credibility import (
    CredibilityAssessor,
    CredibilityCache,
    domain_reputation,
)
from competitive_intel.agents.sifters.verification.cross_reference import (
    CrossReferenceRegistry,
    KeywordAgreementChecker,
)
from competitive_intel.agents.sifters.verification.fact_verifier import FactVerifier
from competitive_intel.agents.sifters.verification.speculation_flagger import (
    SpeculationFlagger,
    suggest_factual_revision,
)

__all__ = [
    "CredibilityAssessor",
    "CredibilityCache",
    "CrossReferenceRegistry",
    "FactVerifier",
    "KeywordAgreementChecker",
    "SpeculationFlagger",
    "domain_reputation",
    "suggest_factual_revision",
]
