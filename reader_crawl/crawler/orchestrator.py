# reader_crawl/crawler/orchestrator.py
"""
Crawl orchestrator: seed fetch, selective crawl waves and retry of failed URLs
over an explicit :class:`~reader_crawl.session.CrawlSession`.
"""
from __future__ import annotations

from typing import List, Optional, Protocol

from reader_crawl.config import MAX_CONCURRENCY, MIN_CONCURRENCY
from reader_crawl.crawler.links import extract_links
from reader_crawl.crawler.scheduler import ProgressFunc, run_batches
from reader_crawl.crawler.urls import is_same_domain, is_valid_http_url, resolve
from reader_crawl.errors import CrawlerBusyError, CrawlValidationError, FetchFailed, MalformedUrl
from reader_crawl.logger import get_logger
from reader_crawl.models import CrawlStats, CrawlStatus, CrawlSummary, LinkCandidate, ProcessResult
from reader_crawl.session import CrawlSession

__all__ = ("CrawlOrchestrator", "ContentFetcher")


class ContentFetcher(Protocol):
    async def fetch(self, url: str) -> str: ...


class CrawlOrchestrator:
    """Drives a crawl session: ``Idle → InitialFetch → Crawling/Retrying → Idle``.

    Busy flags live on the session and are cooperative: starting a wave while
    another runs raises :class:`CrawlerBusyError`, nothing is locked.
    """

    def __init__(
        self,
        fetcher: ContentFetcher,
        session: Optional[CrawlSession] = None,
        concurrency_limit: int = 1,
        on_progress: Optional[ProgressFunc] = None,
    ) -> None:
        self.fetcher = fetcher
        self.session = session if session is not None else CrawlSession()
        self.concurrency_limit = concurrency_limit
        self.on_progress = on_progress
        self.logger = get_logger("orchestrator")

    # ------------------------------------------------------------------ #
    # Properties                                                         #
    # ------------------------------------------------------------------ #

    @property
    def concurrency_limit(self) -> int:
        return self._concurrency_limit

    @concurrency_limit.setter
    def concurrency_limit(self, value: int) -> None:
        if not MIN_CONCURRENCY <= value <= MAX_CONCURRENCY:
            raise CrawlValidationError(
                f"Concurrency limit must be between {MIN_CONCURRENCY} and {MAX_CONCURRENCY}"
            )
        self._concurrency_limit = value

    @property
    def busy(self) -> bool:
        return self.session.busy

    @property
    def frontier(self) -> List[LinkCandidate]:
        return list(self.session.frontier)

    def stats(self) -> CrawlStats:
        return self.session.state.snapshot_stats()

    # ------------------------------------------------------------------ #
    # Session lifecycle                                                  #
    # ------------------------------------------------------------------ #

    def reset_session(self) -> None:
        """Drop seed, crawl table, frontier and progress."""
        self.session.reset()
        self.logger.info("Crawl session reset")

    async def fetch_initial_content(self, seed_url: str) -> int:
        """
        Start a new session from *seed_url*.

        Returns the number of in-domain links placed in the fresh frontier.
        Raises :class:`CrawlValidationError` for a missing or non-http(s) seed
        (the session is left untouched) and :class:`FetchFailed` when the seed
        cannot be fetched (the session is left empty).
        """
        self._ensure_idle()
        seed_url = (seed_url or "").strip()
        if not seed_url:
            raise CrawlValidationError("Please enter a URL")
        if not is_valid_http_url(seed_url):
            raise CrawlValidationError("Please enter a valid URL starting with http:// or https://")

        self.session.reset()
        self.session.seed_url = seed_url
        self.session.is_loading = True
        try:
            content = await self.fetcher.fetch(seed_url)
        except FetchFailed as exc:
            self.logger.error("Initial fetch failed: %s", exc)
            raise
        finally:
            self.session.is_loading = False

        self.session.state.mark_completed(seed_url, content)
        extracted = self._fold_links(content, seed_url)
        if extracted == 0:
            self.logger.info("No links found on %s; content starts with: %.500s", seed_url, content)
        self.logger.info("Initial page fetched, %d links extracted", extracted)
        return extracted

    # ------------------------------------------------------------------ #
    # Waves                                                              #
    # ------------------------------------------------------------------ #

    async def crawl_selected(self) -> CrawlSummary:
        """Crawl every selected frontier URL; already-completed ones are skipped."""
        self._ensure_idle()
        urls = [candidate.url for candidate in self.session.frontier.selected()]
        if not urls:
            raise CrawlValidationError("No URLs selected for crawling")

        state = self.session.state
        for url in urls:
            state.reset_to_pending(url)
            state.upsert_pending(url)

        self.session.is_crawling = True
        try:
            summary = await self._run_wave(urls)
        finally:
            self.session.is_crawling = False
        self.logger.info(
            "Crawl finished: %d succeeded, %d failed (%d already completed)",
            summary.succeeded,
            summary.failed,
            summary.skipped,
        )
        return summary

    async def retry_failed(self) -> CrawlSummary:
        """Re-run only the URLs currently in the ``error`` state."""
        self._ensure_idle()
        state = self.session.state
        failed = state.urls_with_status(CrawlStatus.ERROR)
        if not failed:
            self.logger.info("No failed URLs to retry")
            return CrawlSummary()

        for url in failed:
            state.reset_to_pending(url)

        self.session.is_retrying = True
        try:
            summary = await self._run_wave(failed)
        finally:
            self.session.is_retrying = False
        if summary.failed:
            self.logger.warning(
                "Retry finished: %d recovered, %d still failing", summary.succeeded, summary.failed
            )
        else:
            self.logger.info("Retry finished: all %d URLs recovered", summary.total)
        return summary

    async def process_url(self, url: str) -> ProcessResult:
        """Fetch one URL and fold its links into the frontier; never raises for fetch errors."""
        state = self.session.state
        entry = state.get(url)
        if entry is not None and entry.status is CrawlStatus.COMPLETED:
            self.logger.debug("%s already completed, skipping", url)
            return ProcessResult(url=url, success=True, skipped=True)

        state.mark_fetching(url)
        try:
            content = await self.fetcher.fetch(url)
        except FetchFailed as exc:
            self.logger.warning("%s", exc)
            state.mark_error(url)
            return ProcessResult(url=url, success=False)
        except Exception:
            self.logger.exception("Unexpected error while fetching %s", url)
            state.mark_error(url)
            return ProcessResult(url=url, success=False)

        state.mark_completed(url, content)
        added = self._fold_links(content, url)
        self.logger.info("%s fetched, %d new links", url, added)
        return ProcessResult(url=url, success=True)

    # ------------------------------------------------------------------ #
    # Selection                                                          #
    # ------------------------------------------------------------------ #

    def toggle_selection(self, index: int) -> LinkCandidate:
        return self.session.frontier.toggle(index)

    def select_all(self, selected: bool = True) -> None:
        self.session.frontier.select_all(selected)

    def select_matching(self, pattern: str, selected: bool = True) -> int:
        return self.session.frontier.select_matching(pattern, selected)

    # ------------------------------------------------------------------ #
    # Internals                                                          #
    # ------------------------------------------------------------------ #

    def _ensure_idle(self) -> None:
        if self.session.busy:
            raise CrawlerBusyError("A crawl is already in progress")

    async def _run_wave(self, urls: List[str]) -> CrawlSummary:
        self.session.progress = 0
        results = await run_batches(urls, self.concurrency_limit, self.process_url, self._report_progress)
        self.session.progress = 100
        return CrawlSummary.from_results(results)

    def _report_progress(self, done: int, total: int) -> None:
        self.session.progress = done * 100 // total
        if self.on_progress is not None:
            self.on_progress(done, total)

    def _fold_links(self, content: str, source_url: str) -> int:
        """Add in-domain links of *content* to the frontier; returns how many were new."""
        seed = self.session.seed_url
        if not seed:
            return 0
        frontier = self.session.frontier
        added = 0
        for link in extract_links(content):
            try:
                absolute = resolve(source_url, link.url)
            except MalformedUrl as exc:
                self.logger.debug("Skipping link: %s", exc)
                continue
            if is_same_domain(absolute, seed) and frontier.add(absolute, link.text):
                added += 1
        return added
