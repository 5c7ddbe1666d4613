"""reader_crawl.storage: SQLite-хранилище результатов обхода (ключ — URL) и настроек."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

import aiosqlite

from reader_crawl.errors import PersistenceError
from reader_crawl.logger import get_logger
from reader_crawl.models import CrawlEntry, CrawlStatus

__all__ = ["ResultStore", "SETTINGS_KEYS"]

logger = get_logger("storage")

SETTINGS_KEYS = {
    "MAX_CONCURRENT_REQUESTS": "max_concurrent_requests",
}

_SCHEMA = """
CREATE TABLE IF NOT EXISTS crawled_pages (
    url TEXT PRIMARY KEY,
    content TEXT,
    status TEXT NOT NULL,
    saved_at REAL NOT NULL
);
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class ResultStore:
    """Асинхронное key-value хранилище страниц поверх aiosqlite.

    Использование::

        async with ResultStore("reader_crawl.db") as store:
            await store.put(entries)
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._db: Optional[aiosqlite.Connection] = None

    async def __aenter__(self) -> ResultStore:
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def open(self) -> None:
        if self._db is not None:
            return
        db: Optional[aiosqlite.Connection] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            db = await aiosqlite.connect(self.path)
            await db.executescript(_SCHEMA)
            await db.commit()
        except (aiosqlite.Error, OSError) as exc:
            if db is not None:
                await db.close()
            raise PersistenceError(f"Cannot open result store {self.path}: {exc}") from exc
        self._db = db

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("ResultStore is not open")
        return self._db

    # ------------------------------------------------------------------ #
    # Pages                                                              #
    # ------------------------------------------------------------------ #

    async def put(self, entries: Iterable[CrawlEntry]) -> int:
        """Сохраняет только завершённые записи; повторный URL перезаписывается."""
        completed = [e for e in entries if e.status is CrawlStatus.COMPLETED]
        if not completed:
            return 0
        now = time.time()
        try:
            await self.db.executemany(
                "INSERT OR REPLACE INTO crawled_pages (url, content, status, saved_at) "
                "VALUES (?, ?, ?, ?)",
                [(e.url, e.content, e.status.value, now) for e in completed],
            )
            await self.db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Cannot save crawled pages: {exc}") from exc
        logger.info("Saved %d pages to %s", len(completed), self.path)
        return len(completed)

    async def get_all(self) -> List[CrawlEntry]:
        try:
            async with self.db.execute(
                "SELECT url, content, status FROM crawled_pages ORDER BY saved_at, url"
            ) as cursor:
                rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Cannot read crawled pages: {exc}") from exc
        return [CrawlEntry(url=r[0], content=r[1], status=CrawlStatus(r[2])) for r in rows]

    async def get_by_key(self, url: str) -> Optional[CrawlEntry]:
        try:
            async with self.db.execute(
                "SELECT url, content, status FROM crawled_pages WHERE url = ?", (url,)
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Cannot read page {url}: {exc}") from exc
        if row is None:
            return None
        return CrawlEntry(url=row[0], content=row[1], status=CrawlStatus(row[2]))

    async def delete(self, url: str) -> bool:
        try:
            cursor = await self.db.execute("DELETE FROM crawled_pages WHERE url = ?", (url,))
            await self.db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Cannot delete page {url}: {exc}") from exc
        return cursor.rowcount > 0

    async def delete_all(self) -> int:
        try:
            cursor = await self.db.execute("DELETE FROM crawled_pages")
            await self.db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Cannot clear crawled pages: {exc}") from exc
        return cursor.rowcount

    # ------------------------------------------------------------------ #
    # Settings                                                           #
    # ------------------------------------------------------------------ #

    async def get_setting(self, key: str, default: Any = None) -> Any:
        try:
            async with self.db.execute("SELECT value FROM settings WHERE key = ?", (key,)) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Cannot read setting {key}: {exc}") from exc
        return default if row is None else json.loads(row[0])

    async def put_setting(self, key: str, value: Any) -> None:
        try:
            await self.db.execute(
                "INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)",
                (key, json.dumps(value)),
            )
            await self.db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Cannot save setting {key}: {exc}") from exc
