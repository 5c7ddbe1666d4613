# File: reader_crawl/engine.py
"""reader_crawl.engine: синхронный фасад над оркестратором для CLI и тестов."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Iterable, List, Optional, TypeVar, Union

from aiohttp import ClientSession, ClientTimeout

from reader_crawl.config import MAX_CONCURRENCY, MIN_CONCURRENCY, CrawlerConfig, load_config
from reader_crawl.crawler.fetcher import ReaderFetcher
from reader_crawl.crawler.orchestrator import CrawlOrchestrator
from reader_crawl.crawler.scheduler import ProgressFunc
from reader_crawl.errors import CrawlValidationError
from reader_crawl.logger import logger
from reader_crawl.models import CrawlEntry, CrawlStats, CrawlSummary, LinkCandidate
from reader_crawl.report import export_pages
from reader_crawl.session import CrawlSession, SessionStore
from reader_crawl.storage import SETTINGS_KEYS, ResultStore

__all__ = ["Engine"]

T = TypeVar("T")


class Engine:
    """Фасад для CLI: загрузка сессии, запуск операции обхода, сохранение результатов.

    Каждая операция выполняется в собственном ``asyncio.run``; сессия
    сохраняется в файл после операции, а завершённые страницы пишутся в
    хранилище только когда волна уже закончилась.
    """

    @staticmethod
    def load_config(path: Optional[str]) -> CrawlerConfig:
        """Загружает конфиг из YAML/JSON или использует значения по умолчанию."""
        return load_config(path)

    def __init__(self, config: CrawlerConfig, on_progress: Optional[ProgressFunc] = None) -> None:
        self.config = config
        self.on_progress = on_progress
        self.session_store = SessionStore(config.session_path)

    # ------------------------------------------------------------------ #
    # Crawl operations                                                   #
    # ------------------------------------------------------------------ #

    def seed(self, url: str) -> int:
        """Начинает новую сессию с *url*; возвращает число извлечённых ссылок."""
        logger.info("Fetching initial page %s", url)
        return self._run(lambda orch: orch.fetch_initial_content(url))

    def crawl(self) -> CrawlSummary:
        return self._run(lambda orch: orch.crawl_selected())

    def retry(self) -> CrawlSummary:
        return self._run(lambda orch: orch.retry_failed())

    def reset(self) -> None:
        self.session_store.clear()
        logger.info("Crawl session cleared")

    # ------------------------------------------------------------------ #
    # Session inspection & selection                                     #
    # ------------------------------------------------------------------ #

    def load_session(self) -> CrawlSession:
        return self.session_store.load()

    def stats(self) -> CrawlStats:
        return self.load_session().state.snapshot_stats()

    def links(self) -> List[LinkCandidate]:
        return list(self.load_session().frontier)

    def select(
        self,
        indexes: Iterable[int] = (),
        select_all: Optional[bool] = None,
        match: Optional[str] = None,
    ) -> List[LinkCandidate]:
        """Меняет выбор ссылок: сначала все/ни одной, затем шаблон, затем переключение по индексам."""
        session = self.load_session()
        frontier = session.frontier
        if not len(frontier):
            raise CrawlValidationError("No extracted URLs; run 'seed' first")
        if select_all is not None:
            frontier.select_all(select_all)
        if match:
            frontier.select_matching(match)
        for index in indexes:
            try:
                frontier.toggle(index)
            except IndexError:
                raise CrawlValidationError(
                    f"Index {index} out of range (0..{len(frontier) - 1})"
                ) from None
        self.session_store.save(session)
        return frontier.selected()

    # ------------------------------------------------------------------ #
    # Settings                                                           #
    # ------------------------------------------------------------------ #

    def get_concurrency(self) -> int:
        return self._with_store(self._concurrency)

    def set_concurrency(self, value: int) -> int:
        if not MIN_CONCURRENCY <= value <= MAX_CONCURRENCY:
            raise CrawlValidationError(
                f"Concurrency limit must be between {MIN_CONCURRENCY} and {MAX_CONCURRENCY}"
            )

        async def _save(store: ResultStore) -> int:
            await store.put_setting(SETTINGS_KEYS["MAX_CONCURRENT_REQUESTS"], value)
            return value

        return self._with_store(_save)

    # ------------------------------------------------------------------ #
    # Stored results                                                     #
    # ------------------------------------------------------------------ #

    def results(self) -> List[CrawlEntry]:
        return self._with_store(lambda store: store.get_all())

    def result(self, url: str) -> Optional[CrawlEntry]:
        return self._with_store(lambda store: store.get_by_key(url))

    def delete_result(self, url: str) -> bool:
        return self._with_store(lambda store: store.delete(url))

    def clear_results(self) -> int:
        return self._with_store(lambda store: store.delete_all())

    def export(
        self,
        fmt: Optional[str] = None,
        output_path: Union[str, Path, None] = None,
        template_dir: Union[str, Path, None] = None,
    ) -> Path:
        """Экспортирует сохранённые страницы; формат по умолчанию берётся из конфига."""
        entries = self.results()
        return export_pages(entries, fmt or self.config.download_format, output_path, template_dir)

    # ------------------------------------------------------------------ #
    # Internals                                                          #
    # ------------------------------------------------------------------ #

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[ClientSession]:
        session = ClientSession(
            timeout=ClientTimeout(total=self.config.timeout),
            headers={"User-Agent": self.config.user_agent},
        )
        try:
            yield session
        finally:
            await session.close()

    async def _concurrency(self, store: ResultStore) -> int:
        value = await store.get_setting(
            SETTINGS_KEYS["MAX_CONCURRENT_REQUESTS"], self.config.concurrency_limit
        )
        if not isinstance(value, int) or not MIN_CONCURRENCY <= value <= MAX_CONCURRENCY:
            logger.warning("Ignoring stored concurrency %r, using %d", value, self.config.concurrency_limit)
            return self.config.concurrency_limit
        return value

    def _with_store(self, operation: Callable[[ResultStore], Awaitable[T]]) -> T:
        async def _runner() -> T:
            async with ResultStore(self.config.db_path) as store:
                return await operation(store)

        return asyncio.run(_runner())

    def _run(self, operation: Callable[[CrawlOrchestrator], Awaitable[T]]) -> T:
        async def _runner() -> T:
            session = self.session_store.load()
            async with ResultStore(self.config.db_path) as store:
                limit = await self._concurrency(store)
                async with self._client() as client:
                    orchestrator = CrawlOrchestrator(
                        ReaderFetcher(client, self.config),
                        session=session,
                        concurrency_limit=limit,
                        on_progress=self.on_progress,
                    )
                    try:
                        result = await operation(orchestrator)
                    finally:
                        self.session_store.save(session)
                await store.put(session.state.completed_entries())
                return result

        return asyncio.run(_runner())
