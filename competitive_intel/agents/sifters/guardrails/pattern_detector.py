"""One-pass evaluation of declarative pattern tables."""

from typing import Dict, Iterable, List, Mapping

from competitive_intel.config.detection_patterns import PatternRule
from competitive_intel.data_management.schemas import PatternDetection


class PatternDetector:
    """
    Scans text against named tables of PatternRule.

    A category is detected when any of its rules match. Confidence is the
    sum of matched rule weights, capped at 1.0. Indicators list the labels of
    matched rules in table order.

    Usage:
        detector = PatternDetector({"insider": INSIDER_INFORMATION_PATTERNS})
        results = detector.scan(text)
        results["insider"].detected
    """

    def __init__(self, tables: Mapping[str, Iterable[PatternRule]]):
        self.tables: Dict[str, List[PatternRule]] = {
            name: list(rules) for name, rules in tables.items()
        }

    def detect(self, category: str, text: str) -> PatternDetection:
        matched = [rule for rule in self.tables[category] if rule.pattern.search(text)]
        return PatternDetection(
            category=category,
            detected=bool(matched),
            confidence=min(1.0, sum(rule.weight for rule in matched)),
            indicators=[rule.label for rule in matched],
        )

    def scan(self, text: str) -> Dict[str, PatternDetection]:
        return {category: self.detect(category, text) for category in self.tables}
