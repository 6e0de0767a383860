"""Cross-reference sources and the default keyword agreement checker."""

import re
import threading
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from bs4 import BeautifulSoup
from loguru import logger

from competitive_intel.data_management.schemas import (
    CrossReference,
    DataSource,
    ProcessedSignal,
)
from competitive_intel.exceptions import FetchStatusError
from competitive_intel.interfaces import Fetcher

RELEVANCE_THRESHOLD = 0.1
SUPPORT_THRESHOLD = 0.7
CONTRADICT_THRESHOLD = 0.3
TITLE_TERM_MIN_LENGTH = 4


class CrossReferenceRegistry:
    """
    The independent sources a verifier checks signals against.

    Reads return a snapshot; add and remove are administrative operations.
    """

    def __init__(self, sources: Optional[Iterable[DataSource]] = None):
        self._sources: List[DataSource] = []
        self._lock = threading.Lock()
        self.logger = logger.bind(component="CrossReferenceRegistry")
        for source in sources or []:
            self.add(source)

    def list(self) -> List[DataSource]:
        with self._lock:
            return list(self._sources)

    def add(self, source: DataSource) -> bool:
        with self._lock:
            if any(s.id == source.id for s in self._sources):
                return False
            self._sources.append(source)
        self.logger.info(f"Added cross-reference source: {source.name}")
        return True

    def remove(self, source_id: str) -> bool:
        with self._lock:
            for index, source in enumerate(self._sources):
                if source.id == source_id:
                    del self._sources[index]
                    break
            else:
                return False
        self.logger.info(f"Removed cross-reference source: {source.name}")
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)


def search_terms(signal: ProcessedSignal) -> List[str]:
    """Significant title words plus the signal's top three keywords."""
    terms = [
        word for word in re.findall(r"[a-z0-9][a-z0-9.+-]*", signal.title.lower())
        if len(word) >= TITLE_TERM_MIN_LENGTH
    ]
    for keyword in signal.metadata.keywords[:3]:
        if keyword not in terms:
            terms.append(keyword.lower())
    return terms


class KeywordAgreementChecker:
    """
    Fetches a cross-reference source and scores how many of the signal's
    search terms it mentions.

    Agreement is the fraction of terms found. Sources below 0.1 agreement
    are treated as irrelevant and produce no cross-reference.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.fetcher = fetcher
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def check(
        self,
        signal: ProcessedSignal,
        source: DataSource,
    ) -> Optional[CrossReference]:
        terms = search_terms(signal)
        if not terms:
            return None

        response = await self.fetcher.get(source.url)
        if not response.ok:
            raise FetchStatusError(source.url, response.status)

        text = " ".join(BeautifulSoup(response.body, "html.parser").get_text(" ").lower().split())
        found = [t for t in terms if re.search(rf"\b{re.escape(t)}\b", text)]
        agreement = len(found) / len(terms)

        if agreement <= RELEVANCE_THRESHOLD:
            return None

        return CrossReference(
            source=source,
            agreement=agreement,
            conflicting_info=[f"Different perspective on {signal.category}"] if agreement < 0.5 else [],
            supporting_info=[f"Confirms {signal.type.value}"] if agreement > SUPPORT_THRESHOLD else [],
            last_checked=self._clock(),
        )
