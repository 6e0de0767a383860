"""robots.txt compliance checks through the Fetcher interface."""

from dataclasses import dataclass
from typing import Dict, Optional
from urllib.robotparser import RobotFileParser

from loguru import logger
from yarl import URL

from competitive_intel.interfaces import Fetcher


@dataclass
class RobotsDecision:
    allowed: bool
    reason: str = ""


class RobotsPolicy:
    """
    Decides whether a URL may be crawled according to its host's robots.txt.

    A missing robots file or a failed fetch allows crawling. Parsed files are
    cached per origin for the lifetime of the policy.
    """

    def __init__(self, fetcher: Fetcher, user_agent: str = "*"):
        self.fetcher = fetcher
        self.user_agent = user_agent
        self._parsers: Dict[str, Optional[RobotFileParser]] = {}
        self.logger = logger.bind(component="RobotsPolicy")

    async def check(self, url: str) -> RobotsDecision:
        try:
            target = URL(url)
            origin = str(target.origin())
        except ValueError as e:
            return RobotsDecision(True, f"Could not verify robots.txt: {e}")

        if origin not in self._parsers:
            self._parsers[origin] = await self._load(origin)

        parser = self._parsers[origin]
        if parser is None:
            return RobotsDecision(True, "No robots.txt found")

        if parser.can_fetch(self.user_agent, url):
            return RobotsDecision(True)
        return RobotsDecision(False, "Crawling disallowed by robots.txt")

    async def _load(self, origin: str) -> Optional[RobotFileParser]:
        robots_url = f"{origin}/robots.txt"
        try:
            response = await self.fetcher.get(robots_url)
        except Exception as e:
            self.logger.warning(f"Error checking {robots_url}: {e}")
            return None

        if not response.ok:
            return None

        parser = RobotFileParser(robots_url)
        parser.parse(response.body.splitlines())
        return parser

    def clear(self) -> None:
        self._parsers.clear()
