"""Ethical guardrails: source, ethics, content and compliance validation."""

from competitive_intel.agents.sifters.guardrails.audit_log import AuditLog
from competitive_intel.agents.sifters.guardrails.ethical_guardrails import (
    COMPLIANCE_CODES,
    EthicalGuardrails,
    is_public_source,
)
from competitive_intel.agents.sifters.guardrails.pattern_detector import PatternDetector
from competitive_intel.agents.sifters.guardrails.robots_policy import RobotsDecision, RobotsPolicy

__all__ = [
    "AuditLog",
    "COMPLIANCE_CODES",
    "EthicalGuardrails",
    "PatternDetector",
    "RobotsDecision",
    "RobotsPolicy",
    "is_public_source",
]
