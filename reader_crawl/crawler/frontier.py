# reader_crawl/crawler/frontier.py
"""
Frontier: ordered, de-duplicated set of in-domain links open for selection.
"""
from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional

from reader_crawl.models import LinkCandidate

__all__ = ("Frontier",)


class Frontier:
    """Insertion-ordered collection of :class:`LinkCandidate` keyed by URL."""

    def __init__(self, candidates: Optional[Iterable[LinkCandidate]] = None) -> None:
        self._items: Dict[str, LinkCandidate] = {}
        if candidates:
            self.extend(candidates)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[LinkCandidate]:
        return iter(list(self._items.values()))

    def __contains__(self, url: object) -> bool:
        return url in self._items

    def __getitem__(self, index: int) -> LinkCandidate:
        return list(self._items.values())[index]

    def add(self, url: str, text: str = "") -> bool:
        """Append a candidate unless its URL is already known; True if added."""
        if url in self._items:
            return False
        self._items[url] = LinkCandidate(url=url, text=text or url)
        return True

    def extend(self, candidates: Iterable[LinkCandidate]) -> int:
        added = 0
        for candidate in candidates:
            if candidate.url not in self._items:
                self._items[candidate.url] = candidate
                added += 1
        return added

    def toggle(self, index: int) -> LinkCandidate:
        """Flip the selection flag of the candidate at *index* (raises IndexError)."""
        candidate = self[index]
        candidate.selected = not candidate.selected
        return candidate

    def select_all(self, selected: bool = True) -> None:
        for candidate in self._items.values():
            candidate.selected = selected

    def select_matching(self, pattern: str, selected: bool = True) -> int:
        """Set the flag on every candidate whose URL or label contains *pattern*."""
        needle = pattern.lower()
        hits = 0
        for candidate in self._items.values():
            if needle in candidate.url.lower() or needle in candidate.text.lower():
                candidate.selected = selected
                hits += 1
        return hits

    def selected(self) -> List[LinkCandidate]:
        return [c for c in self._items.values() if c.selected]

    def clear(self) -> None:
        self._items.clear()

    def to_list(self) -> List[dict]:
        return [c.to_dict() for c in self._items.values()]

    @classmethod
    def from_list(cls, data: Iterable[dict]) -> Frontier:
        return cls(LinkCandidate.from_dict(item) for item in data)
