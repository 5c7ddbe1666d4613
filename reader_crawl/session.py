"""reader_crawl.session: контекст сессии обхода и его хранение между запусками CLI."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Final, Optional, Union

from reader_crawl.crawler.frontier import Frontier
from reader_crawl.crawler.state import CrawlStateStore
from reader_crawl.errors import PersistenceError
from reader_crawl.logger import get_logger

__all__ = ["CrawlSession", "SessionStore", "SESSION_KEYS"]

logger = get_logger("session")

SESSION_KEYS: Final[Dict[str, str]] = {
    "initial_url": "initial_url",
    "crawled_data": "crawled_data",
    "extracted_urls": "extracted_urls",
    "progress": "progress",
}


@dataclass
class CrawlSession:
    """Всё состояние одной сессии: seed, таблица состояний, frontier, прогресс и флаги."""

    seed_url: Optional[str] = None
    state: CrawlStateStore = field(default_factory=CrawlStateStore)
    frontier: Frontier = field(default_factory=Frontier)
    progress: int = 0
    is_loading: bool = False
    is_crawling: bool = False
    is_retrying: bool = False

    @property
    def busy(self) -> bool:
        return self.is_loading or self.is_crawling or self.is_retrying

    def reset(self) -> None:
        """Сбрасывает сессию к начальному состоянию."""
        self.seed_url = None
        self.state.clear()
        self.frontier.clear()
        self.progress = 0
        self.is_loading = False
        self.is_crawling = False
        self.is_retrying = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            SESSION_KEYS["initial_url"]: self.seed_url or "",
            SESSION_KEYS["crawled_data"]: self.state.to_list(),
            SESSION_KEYS["extracted_urls"]: self.frontier.to_list(),
            SESSION_KEYS["progress"]: self.progress,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CrawlSession:
        return cls(
            seed_url=data.get(SESSION_KEYS["initial_url"]) or None,
            state=CrawlStateStore.from_list(data.get(SESSION_KEYS["crawled_data"], [])),
            frontier=Frontier.from_list(data.get(SESSION_KEYS["extracted_urls"], [])),
            progress=int(data.get(SESSION_KEYS["progress"], 0)),
        )


class SessionStore:
    """JSON-файл с незавершённой сессией; флаги занятости не сохраняются."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> CrawlSession:
        """Читает сессию из файла; отсутствующий файл даёт пустую сессию."""
        if not self.path.exists():
            return CrawlSession()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise TypeError(f"expected a mapping, got {type(data).__name__}")
            return CrawlSession.from_dict(data)
        except (OSError, ValueError, TypeError, KeyError) as exc:
            raise PersistenceError(f"Cannot read session file {self.path}: {exc}") from exc

    def save(self, session: CrawlSession) -> Path:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(session.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8"
            )
        except OSError as exc:
            raise PersistenceError(f"Cannot write session file {self.path}: {exc}") from exc
        logger.debug("Session saved to %s", self.path)
        return self.path

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Cannot remove session file {self.path}: {exc}") from exc
