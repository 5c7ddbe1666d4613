"""Exception hierarchy shared by the crawler, the stores and the CLI."""
from __future__ import annotations

from typing import Optional

__all__ = (
    "CrawlerError",
    "CrawlValidationError",
    "CrawlerBusyError",
    "FetchFailed",
    "MalformedUrl",
    "PersistenceError",
)


class CrawlerError(Exception):
    """Base class for every error raised by ReaderCrawl."""


class CrawlValidationError(CrawlerError, ValueError):
    """Operator input rejected before any network activity (bad seed, empty selection)."""


class CrawlerBusyError(CrawlerError, RuntimeError):
    """A crawl or retry wave was requested while another one is running."""


class FetchFailed(CrawlerError):
    """All attempts to fetch *url* through the rendering proxy failed."""

    def __init__(self, url: str, status: Optional[int], message: str) -> None:
        self.url = url
        self.status = status
        self.message = message
        detail = f"HTTP {status}" if status is not None else message
        super().__init__(f"Failed to fetch {url}: {detail}")


class MalformedUrl(CrawlerError, ValueError):
    """A link could not be resolved into an absolute URL."""


class PersistenceError(CrawlerError):
    """Reading or writing the result store or the session file failed."""
