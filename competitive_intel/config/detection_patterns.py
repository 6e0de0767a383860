"""Declarative pattern tables for guardrails, speculation flagging and signal typing.

Each guardrail category is a list of ``PatternRule(pattern, weight, label)``.
PatternDetector evaluates a whole table in one pass; a category's confidence
is the capped sum of matched weights.

Tables:
- INSIDER_INFORMATION_PATTERNS: leaked or confidential material
- UNAUTHORIZED_ACCESS_PATTERNS: content behind access walls
- SOCIAL_ENGINEERING_PATTERNS: impersonation language
- PERSONAL_DATA_PATTERNS: SSN, email, card and phone numbers
- SENSITIVE_CONTENT_PATTERNS: content requiring review before use
- SPECULATION_LANGUAGE_PATTERNS: unmarked speculation in collected content
- SPECULATION_FLAG_PATTERNS: verifier speculation flags with reasons
- SIGNAL_TYPE_RULES: analyzer keyword precedence
"""

import re
from typing import NamedTuple, Pattern

from competitive_intel.data_management.schemas import SignalType


class PatternRule(NamedTuple):
    pattern: Pattern[str]
    weight: float
    label: str


def _rule(expr: str, weight: float, label: str, flags: int = re.IGNORECASE) -> PatternRule:
    return PatternRule(re.compile(expr, flags), weight, label)


INSIDER_INFORMATION_PATTERNS = [
    _rule(r"\bconfidential(?:\s+(?:information|data|document))?\b", 0.8, "confidential material"),
    _rule(r"\binternal\s+(?:only|use|document)\b", 0.8, "internal-only material"),
    _rule(r"\bnot\s+for\s+(?:public|external|distribution)\b", 0.8, "restricted distribution"),
    _rule(r"\bproprietary\s+(?:information|data)\b", 0.8, "proprietary information"),
    _rule(r"\bleak(?:ed)?\s+(?:document|information|memo|roadmap)\b", 0.8, "leaked material"),
    _rule(r"\binsider\s+(?:information|knowledge|source)\b", 0.8, "insider source"),
]

UNAUTHORIZED_ACCESS_PATTERNS = [
    _rule(r"\b(?:login|sign[\s-]?in)\s+(?:required|to\s+continue)\b", 0.3, "login wall"),
    _rule(r"\b(?:members|subscribers|employees)\s+only\b", 0.3, "restricted audience"),
    _rule(r"\bpaywall(?:ed)?\b", 0.3, "paywalled content"),
    _rule(r"\baccess\s+denied\b", 0.3, "access denied page"),
]

SOCIAL_ENGINEERING_PATTERNS = [
    _rule(r"\bpretend(?:ing|ed)?\s+to\s+be\b", 0.9, "pretexting"),
    _rule(r"\bposed?\s+as\b", 0.9, "posing as someone else"),
    _rule(r"\bimpersonat(?:e|ed|ing|ion)\b", 0.9, "impersonation"),
    _rule(r"\bfalse\s+identity\b", 0.9, "false identity"),
    _rule(r"\bmisrepresent(?:ed|ing)\b", 0.9, "misrepresentation"),
]

PERSONAL_DATA_PATTERNS = [
    _rule(r"\b\d{3}-\d{2}-\d{4}\b", 0.7, "social security number", 0),
    _rule(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", 0.7, "email address", 0),
    _rule(r"\b\d{4}[\s-]?\d{4}[\s-]?\d{4}[\s-]?\d{4}\b", 0.7, "payment card number", 0),
    _rule(r"(?:\(\d{3}\)\s?|\b\d{3}[\s.-])\d{3}[\s.-]\d{4}\b", 0.7, "phone number", 0),
]

SENSITIVE_CONTENT_PATTERNS = [
    _rule(r"\bsexual(?:ly)?\b", 0.6, "sexual content"),
    _rule(r"\bviolen(?:t|tly|ce)\b", 0.6, "violent content"),
    _rule(r"\bdiscriminat(?:e|ed|ing|ion|ory)\b", 0.6, "discrimination"),
    _rule(r"\boffensive\b", 0.6, "offensive content"),
    _rule(r"\binappropriate\b", 0.6, "inappropriate content"),
]

SPECULATION_LANGUAGE_PATTERNS = [
    _rule(r"\b(?:might|could|possibly|likely|probably)\b", 0.5, "hedged claim"),
    _rule(r"\b(?:rumou?r(?:s|ed)?|speculation|unconfirmed)\b", 0.5, "speculation term"),
    _rule(r"\b(?:appears|seems|suggests)\b", 0.5, "inferred claim"),
]

SPECULATION_MARKER = re.compile(r"\[(?:speculation|unconfirmed|rumor)\]", re.IGNORECASE)

# Payload keys a source uses to record an opt-out request under CCPA
OPT_OUT_KEYS = ("do_not_sell", "opt_out", "ccpa_opt_out")
CONSENT_KEYS = ("consent", "gdpr_consent", "data_subject_consent")


class SpeculationRule(NamedTuple):
    pattern: Pattern[str]
    reason: str
    confidence: float


SPECULATION_FLAG_PATTERNS = [
    SpeculationRule(
        re.compile(
            r"\b(?:might|may|could|possibly|potentially|likely|probably|perhaps|seems|appears)"
            r"\s+(?:to\s+)?(?:be|have|indicate|suggest)\b",
            re.IGNORECASE,
        ),
        "Uncertainty language detected",
        0.8,
    ),
    SpeculationRule(
        re.compile(
            r"\b(?:will|going to|planning|intends?|expects?)\s+(?:to\s+)?"
            r"(?:launch|release|announce|implement)\b",
            re.IGNORECASE,
        ),
        "Future prediction without evidence",
        0.8,
    ),
    SpeculationRule(
        re.compile(
            r"\b(?:rumou?r(?: has it)?|speculation|unconfirmed|alleged(?:ly)?|supposedly|reportedly)\b",
            re.IGNORECASE,
        ),
        "Explicit speculation marker",
        0.8,
    ),
    SpeculationRule(
        re.compile(
            r"\b(?:sources? say|according to rumou?rs|word is|it seems|word on the street)\b",
            re.IGNORECASE,
        ),
        "Weak or anonymous sourcing",
        0.8,
    ),
    SpeculationRule(
        re.compile(
            r"\b(?:i think|i believe|in my opinion|it appears that|it looks like)\b",
            re.IGNORECASE,
        ),
        "Opinion rather than fact",
        0.8,
    ),
    SpeculationRule(
        re.compile(
            r"\b(?:somewhat|rather|quite|fairly|relatively|sort of|kind of)\s+"
            r"(?:significant|important|large|small)\b",
            re.IGNORECASE,
        ),
        "Hedging language",
        0.8,
    ),
]

# Checked in order; first substring hit wins
FACTUAL_REVISIONS = [
    ("might be", "appears to be (unconfirmed)"),
    ("will launch", "announced plans to launch"),
    ("reportedly", "according to [source]"),
    ("rumor has it", "unconfirmed reports suggest"),
    ("likely to", "may potentially"),
    ("planning to", "has indicated plans to"),
]

# First matching rule wins. A keyword matches at the start of a word, so
# "ip" matches "IP" but not "ship".
SIGNAL_TYPE_RULES = [
    (SignalType.PRODUCT_LAUNCH, re.compile(r"\b(?:launch|release)", re.IGNORECASE)),
    (SignalType.PRICING_CHANGE, re.compile(r"\b(?:price|pricing)", re.IGNORECASE)),
    (SignalType.PATENT_FILING, re.compile(r"\b(?:patent|ip\b)", re.IGNORECASE)),
    (SignalType.HIRING_SIGNAL, re.compile(r"\b(?:hiring|job)", re.IGNORECASE)),
]

STOP_WORDS = frozenset(
    {
        "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
        "this", "that", "from", "have", "been", "were", "will", "their", "there",
        "about", "into", "than", "they", "what", "when", "which", "your",
    }
)

IMPACT_WEIGHTS = {"critical": 100, "high": 75, "medium": 50, "low": 25}
TIMEFRAME_WEIGHTS = {"immediate": 50, "short_term": 30, "medium_term": 20, "long_term": 10}
CONFIDENCE_WEIGHT = 25
