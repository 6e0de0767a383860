"""Source credibility assessment with a TTL cache.

Scores start from per-type base values, blend in the source's historical
reliability and are adjusted by domain reputation. Results are cached per
source id for 24 hours; an expired entry is recomputed on the next request.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple

from yarl import URL

from competitive_intel.config.source_credibility import (
    CREDIBILITY_CACHE_TTL_SECONDS,
    DEFAULT_DOMAIN_REPUTATION,
    DOMAIN_SUFFIX_REPUTATION,
    HIGH_REPUTATION_DOMAINS,
    HIGH_REPUTATION_THRESHOLD,
    INVALID_URL_REPUTATION,
    KNOWN_TECH_BLOGS,
    LOW_REPUTATION_DOMAINS,
    LOW_REPUTATION_THRESHOLD,
    OFFICIAL_SITE_PATTERNS,
    OFFICIAL_SITE_SCORES,
    RSS_GENERAL_SCORES,
    RSS_TECH_BLOG_SCORES,
    SOURCE_TYPE_BASE_SCORES,
    THIRD_PARTY_SITE_SCORES,
    UNKNOWN_TYPE_SCORES,
)
from competitive_intel.data_management.schemas import (
    CredibilityScore,
    DataSource,
    SourceType,
)


def _clamp(value: float) -> float:
    return min(1.0, max(0.0, value))


def domain_reputation(url: str) -> float:
    try:
        host = URL(url).host
    except (ValueError, TypeError):
        return INVALID_URL_REPUTATION
    if not host:
        return INVALID_URL_REPUTATION

    domain = host.lower().removeprefix("www.")
    if domain in HIGH_REPUTATION_DOMAINS:
        return HIGH_REPUTATION_DOMAINS[domain]
    if domain in LOW_REPUTATION_DOMAINS:
        return LOW_REPUTATION_DOMAINS[domain]
    for suffix, score in DOMAIN_SUFFIX_REPUTATION:
        if domain.endswith(suffix):
            return score
    return DEFAULT_DOMAIN_REPUTATION


def is_known_tech_blog(url: str) -> bool:
    return any(blog in url for blog in KNOWN_TECH_BLOGS)


def is_official_site(url: str) -> bool:
    return any(pattern.search(url) for pattern in OFFICIAL_SITE_PATTERNS)


class CredibilityCache:
    """Per-source credibility cache with expiry, guarded by a lock."""

    def __init__(
        self,
        ttl: timedelta = timedelta(seconds=CREDIBILITY_CACHE_TTL_SECONDS),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.ttl = ttl
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._entries: Dict[str, Tuple[CredibilityScore, datetime]] = {}
        self._lock = threading.Lock()

    def get(self, source_id: str) -> Optional[CredibilityScore]:
        with self._lock:
            entry = self._entries.get(source_id)
            if entry is None:
                return None
            score, stored_at = entry
            if self._clock() - stored_at >= self.ttl:
                del self._entries[source_id]
                return None
            return score

    def set(self, source_id: str, score: CredibilityScore) -> None:
        with self._lock:
            self._entries[source_id] = (score, self._clock())

    def snapshot(self) -> Dict[str, CredibilityScore]:
        with self._lock:
            return {sid: score for sid, (score, _) in self._entries.items()}

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CredibilityAssessor:
    """
    Computes and caches CredibilityScore per source.

    Usage:
        assessor = CredibilityAssessor()
        score = assessor.assess(source)
    """

    def __init__(
        self,
        cache: Optional[CredibilityCache] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.cache = cache or CredibilityCache(clock=self._clock)

    def assess(self, source: Optional[DataSource]) -> CredibilityScore:
        if source is None:
            return CredibilityScore.neutral("No source provided")

        cached = self.cache.get(source.id)
        if cached is not None:
            return cached

        score = self.calculate(source)
        self.cache.set(source.id, score)
        return score

    def calculate(self, source: DataSource) -> CredibilityScore:
        factual, timeliness, expertise, bias, factor = self._base_scores(source)
        factors = [factor]

        if source.reliability:
            factual = (factual + source.reliability) / 2
            factors.append(f"Historical reliability: {source.reliability * 100:.0f}%")

        reputation = domain_reputation(source.url)
        if reputation > HIGH_REPUTATION_THRESHOLD:
            factual += 0.1
            expertise += 0.1
            factors.append("High-reputation domain")
        elif reputation < LOW_REPUTATION_THRESHOLD:
            factual -= 0.1
            bias -= 0.2
            factors.append("Low-reputation domain")

        overall = (factual + timeliness + expertise + bias) / 4
        return CredibilityScore(
            overall=_clamp(overall),
            factual=_clamp(factual),
            timeliness=_clamp(timeliness),
            expertise=_clamp(expertise),
            bias=_clamp(bias),
            factors=factors,
            last_updated=self._clock(),
        )

    @staticmethod
    def _base_scores(source: DataSource):
        if source.type is SourceType.RSS:
            return RSS_TECH_BLOG_SCORES if is_known_tech_blog(source.url) else RSS_GENERAL_SCORES
        if source.type is SourceType.WEB_SCRAPING:
            return OFFICIAL_SITE_SCORES if is_official_site(source.url) else THIRD_PARTY_SITE_SCORES
        return SOURCE_TYPE_BASE_SCORES.get(source.type.value, UNKNOWN_TYPE_SCORES)
