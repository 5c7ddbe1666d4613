"""
Data models for the ReaderCrawl crawler.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CrawlStatus(str, Enum):
    """Lifecycle of a single URL inside a crawl session."""

    PENDING = "pending"
    FETCHING = "fetching"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(slots=True)
class CrawlEntry:
    """One row of the crawl state table.

    ``content`` stays ``None`` until the page is fetched; an empty string is a
    successfully fetched empty page.
    """

    url: str
    content: Optional[str] = None
    status: CrawlStatus = CrawlStatus.PENDING

    def to_dict(self) -> dict:
        return {"url": self.url, "content": self.content, "status": self.status.value}

    @classmethod
    def from_dict(cls, data: dict) -> CrawlEntry:
        return cls(url=data["url"], content=data.get("content"), status=CrawlStatus(data["status"]))


@dataclass(slots=True)
class ExtractedLink:
    """Raw link found in page content, before resolution."""

    url: str
    text: str


@dataclass(slots=True)
class LinkCandidate:
    """Resolved in-domain link the operator may select for crawling."""

    url: str
    text: str
    selected: bool = False

    def to_dict(self) -> dict:
        return {"url": self.url, "text": self.text, "selected": self.selected}

    @classmethod
    def from_dict(cls, data: dict) -> LinkCandidate:
        return cls(url=data["url"], text=data.get("text") or data["url"], selected=bool(data.get("selected")))


@dataclass(slots=True, frozen=True)
class ProcessResult:
    """Outcome of processing one URL within a wave."""

    url: str
    success: bool
    skipped: bool = False


@dataclass(slots=True, frozen=True)
class CrawlStats:
    """Counts of state-table entries by status."""

    total: int = 0
    completed: int = 0
    pending: int = 0
    fetching: int = 0
    error: int = 0


@dataclass(slots=True, frozen=True)
class CrawlSummary:
    """Aggregate outcome of one crawl or retry wave.

    Skipped URLs were already completed; they count towards ``succeeded``.
    """

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    @classmethod
    def from_results(cls, results: list[ProcessResult]) -> CrawlSummary:
        return cls(
            total=len(results),
            succeeded=sum(1 for r in results if r.success),
            failed=sum(1 for r in results if not r.success),
            skipped=sum(1 for r in results if r.skipped),
        )
