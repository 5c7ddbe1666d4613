# reader_crawl/crawler/state.py
"""
In-memory crawl state table: URL -> CrawlEntry.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from reader_crawl.models import CrawlEntry, CrawlStats, CrawlStatus

__all__ = ("CrawlStateStore",)


class CrawlStateStore:
    """Single source of truth for crawl progress within a session.

    Entries keep insertion order and are never removed while the session
    lives; only :meth:`clear` (session reset) empties the table.
    """

    def __init__(self, entries: Optional[Iterable[CrawlEntry]] = None) -> None:
        self._entries: Dict[str, CrawlEntry] = {}
        for entry in entries or ():
            self._entries[entry.url] = entry

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: object) -> bool:
        return url in self._entries

    def get(self, url: str) -> Optional[CrawlEntry]:
        return self._entries.get(url)

    def entries(self) -> List[CrawlEntry]:
        return list(self._entries.values())

    def upsert_pending(self, url: str) -> CrawlEntry:
        """Insert *url* as pending unless it is already known."""
        entry = self._entries.get(url)
        if entry is None:
            entry = self._entries[url] = CrawlEntry(url=url)
        return entry

    def reset_to_pending(self, url: str) -> bool:
        """Move an ``error`` entry back to ``pending``; returns True if it changed."""
        entry = self._entries.get(url)
        if entry is None or entry.status is not CrawlStatus.ERROR:
            return False
        entry.status = CrawlStatus.PENDING
        return True

    def mark_fetching(self, url: str) -> CrawlEntry:
        entry = self.upsert_pending(url)
        entry.status = CrawlStatus.FETCHING
        return entry

    def mark_completed(self, url: str, content: str) -> CrawlEntry:
        entry = self.upsert_pending(url)
        entry.content = content
        entry.status = CrawlStatus.COMPLETED
        return entry

    def mark_error(self, url: str) -> CrawlEntry:
        entry = self.upsert_pending(url)
        entry.status = CrawlStatus.ERROR
        return entry

    def urls_with_status(self, status: CrawlStatus) -> List[str]:
        return [e.url for e in self._entries.values() if e.status is status]

    def completed_entries(self) -> List[CrawlEntry]:
        return [e for e in self._entries.values() if e.status is CrawlStatus.COMPLETED]

    def snapshot_stats(self) -> CrawlStats:
        """Count entries by status, recomputed from the table on every call."""
        counts = {status: 0 for status in CrawlStatus}
        for entry in self._entries.values():
            counts[entry.status] += 1
        return CrawlStats(
            total=len(self._entries),
            completed=counts[CrawlStatus.COMPLETED],
            pending=counts[CrawlStatus.PENDING],
            fetching=counts[CrawlStatus.FETCHING],
            error=counts[CrawlStatus.ERROR],
        )

    def clear(self) -> None:
        self._entries.clear()

    def to_list(self) -> List[dict]:
        return [entry.to_dict() for entry in self._entries.values()]

    @classmethod
    def from_list(cls, data: Iterable[dict]) -> CrawlStateStore:
        return cls(CrawlEntry.from_dict(item) for item in data)
