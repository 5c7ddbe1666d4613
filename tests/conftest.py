# File: tests/conftest.py
import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Iterable, Optional

import pytest
from aiohttp import web

from reader_crawl.config import CrawlerConfig
from reader_crawl.errors import FetchFailed
from reader_crawl.session import CrawlSession


class FakeFetcher:
    """In-memory stand-in for ReaderFetcher: counts calls and concurrent requests."""

    def __init__(
        self,
        pages: Optional[Dict[str, str]] = None,
        failing: Iterable[str] = (),
        delay: float = 0.0,
    ) -> None:
        self.pages = dict(pages or {})
        self.failing = set(failing)
        self.delay = delay
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if url in self.failing:
                raise FetchFailed(url, 500, "Internal Server Error")
            return self.pages.get(url, "")
        finally:
            self.in_flight -= 1


@pytest.fixture()
def make_fetcher():
    """Return the FakeFetcher class so tests can build one with their own pages."""
    return FakeFetcher


@pytest.fixture()
def session() -> CrawlSession:
    return CrawlSession()


@pytest.fixture()
def basic_config(tmp_path: Path) -> CrawlerConfig:
    """
    Return a CrawlerConfig whose stores live in tmp_path and that never sleeps between retries.
    """
    return CrawlerConfig(
        reader_base_url="http://reader.test",
        concurrency_limit=2,
        retry_times=2,
        retry_delay=0,
        timeout=5.0,
        user_agent="TestAgent/1.0",
        db_path=tmp_path / "results.db",
        session_path=tmp_path / "session.json",
    )


@asynccontextmanager
async def _serve(handler) -> AsyncIterator[str]:
    """Serve *handler* for every GET path on an ephemeral port, yield the base URL."""
    app = web.Application()
    app.router.add_route("GET", "/{tail:.*}", handler)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    try:
        host, port = runner.addresses[0][:2]
        yield f"http://{host}:{port}"
    finally:
        await runner.cleanup()


@pytest.fixture()
def serve_reader():
    """Async context manager factory: ``async with serve_reader(handler) as base_url``."""
    return _serve
