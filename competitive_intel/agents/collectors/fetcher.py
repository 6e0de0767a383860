"""httpx-backed implementation of the Fetcher interface."""

from typing import Mapping, Optional

import httpx
from loguru import logger

from competitive_intel.interfaces import FetchResponse


class HttpxFetcher:
    """
    Async HTTP GET with a caller-configured timeout.

    Transport errors propagate as httpx exceptions so collectors can classify
    them (timeouts and connection errors are retryable). Non-2xx statuses are
    returned, not raised.

    Usage:
        async with HttpxFetcher(timeout=30.0) as fetcher:
            response = await fetcher.get("https://acme.com/pricing")
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = "competitive-intel-monitor/0.1",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self._client = client
        self._owns_client = client is None
        self.logger = logger.bind(component="HttpxFetcher")

    async def __aenter__(self) -> "HttpxFetcher":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
            )
        return self._client

    async def get(
        self,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> FetchResponse:
        client = self._ensure_client()
        response = await client.get(url, headers=dict(headers or {}))
        self.logger.debug(f"GET {url} -> {response.status_code}")
        return FetchResponse(
            status=response.status_code,
            body=response.text,
            headers=dict(response.headers),
        )

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
