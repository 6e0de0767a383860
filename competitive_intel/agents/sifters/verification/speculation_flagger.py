"""Speculation flagging over signal text."""

from typing import Iterable, List, Optional

from competitive_intel.config.detection_patterns import (
    FACTUAL_REVISIONS,
    SPECULATION_FLAG_PATTERNS,
    SpeculationRule,
)
from competitive_intel.data_management.schemas import SpeculationFlag


def suggest_factual_revision(text: str) -> str:
    lowered = text.lower()
    for speculative, factual in FACTUAL_REVISIONS:
        if speculative in lowered:
            return factual
    return f"[VERIFY] {text}"


class SpeculationFlagger:
    """
    Flags every match of every speculation rule in a text.

    Flags are ordered by rule, then by position within the text. Overlapping
    matches from different rules are all reported.
    """

    def __init__(self, rules: Optional[Iterable[SpeculationRule]] = None):
        self.rules: List[SpeculationRule] = list(rules or SPECULATION_FLAG_PATTERNS)

    def flag(self, content: str) -> List[SpeculationFlag]:
        if not content:
            return []
        flags = []
        for rule in self.rules:
            for match in rule.pattern.finditer(content):
                flags.append(
                    SpeculationFlag(
                        text=match.group(0),
                        position=match.start(),
                        reason=rule.reason,
                        confidence=rule.confidence,
                        suggested_revision=suggest_factual_revision(match.group(0)),
                    )
                )
        return flags
