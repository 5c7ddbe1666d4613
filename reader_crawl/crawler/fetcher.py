# reader_crawl/crawler/fetcher.py
"""
Fetcher module: pulls rendered page content through the reader proxy,
with a fixed-delay retry loop and a per-request timeout.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional
from urllib.parse import quote

from aiohttp import ClientError, ClientSession
from yarl import URL

from reader_crawl.config import CrawlerConfig
from reader_crawl.errors import FetchFailed
from reader_crawl.logger import get_logger

__all__ = ("ReaderFetcher", "reader_url")

# Characters encodeURIComponent leaves alone besides alphanumerics and "-_.".
_URI_COMPONENT_SAFE = "!~*'()"

SleepFunc = Callable[[float], Awaitable[None]]


def reader_url(endpoint: str, url: str) -> str:
    """Build ``{endpoint}/{url}`` with *url* encoded as a single path segment."""
    return f"{endpoint.rstrip('/')}/{quote(url, safe=_URI_COMPONENT_SAFE)}"


class ReaderFetcher:
    """Fetches one URL's text rendering; retries on any failure."""

    def __init__(
        self,
        session: ClientSession,
        config: CrawlerConfig,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.session = session
        self.config = config
        self.retry_times: int = config.retry_times
        self.retry_delay: float = config.retry_delay
        self._sleep = sleep
        self.logger = get_logger("fetcher")

    async def fetch(self, url: str) -> str:
        """
        Return the rendered content of *url*.

        Makes up to ``retry_times + 1`` attempts separated by a fixed
        ``retry_delay``; raises :class:`FetchFailed` with the last failure
        once they are exhausted.
        """
        target = reader_url(self.config.reader_endpoint, url)
        attempts = self.retry_times + 1
        status: Optional[int] = None
        message = ""
        for attempt in range(1, attempts + 1):
            self.logger.debug("Fetching %s (attempt %d/%d)", target, attempt, attempts)
            try:
                status, message, content = await self._request(target)
                if content is not None:
                    self.logger.debug("Content length for %s: %d characters", url, len(content))
                    return content
            except (ClientError, asyncio.TimeoutError) as exc:
                status = None
                message = str(exc) or type(exc).__name__
            if attempt < attempts:
                self.logger.warning(
                    "Fetch of %s failed (%s), retry %d/%d in %.1f s",
                    url,
                    f"HTTP {status}" if status is not None else message,
                    attempt,
                    self.retry_times,
                    self.retry_delay,
                )
                await self._sleep(self.retry_delay)
        self.logger.error("Giving up on %s after %d attempts", url, attempts)
        raise FetchFailed(url, status, message)

    async def _request(self, target: str) -> tuple[Optional[int], str, Optional[str]]:
        # encoded=True keeps %3A and %2F inside the path segment as sent.
        async with self.session.get(URL(target, encoded=True), raise_for_status=False) as resp:
            if 200 <= resp.status < 300:
                # Undecodable bytes become U+FFFD rather than failing the page.
                return resp.status, "", await resp.text(errors="replace")
            return resp.status, resp.reason or f"status {resp.status}", None
