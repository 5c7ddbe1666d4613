# reader_crawl/crawler/scheduler.py
"""
Batch scheduler: runs one wave of URLs in sequential, concurrency-bounded windows.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Sequence

from reader_crawl.config import MAX_CONCURRENCY, MIN_CONCURRENCY
from reader_crawl.logger import get_logger
from reader_crawl.models import ProcessResult

__all__ = ("run_batches", "windows", "ProcessFunc", "ProgressFunc")

ProcessFunc = Callable[[str], Awaitable[ProcessResult]]
ProgressFunc = Callable[[int, int], None]

logger = get_logger("scheduler")


def windows(urls: Sequence[str], size: int) -> List[List[str]]:
    """Split *urls* into consecutive chunks of *size*; the last may be shorter."""
    return [list(urls[i:i + size]) for i in range(0, len(urls), size)]


async def run_batches(
    urls: Sequence[str],
    concurrency_limit: int,
    process: ProcessFunc,
    on_progress: Optional[ProgressFunc] = None,
) -> List[ProcessResult]:
    """
    Process *urls* window by window.

    Every URL of a window runs concurrently and the window is awaited as a
    whole before the next one starts, so at most ``concurrency_limit``
    requests are in flight. ``on_progress(done, total)`` fires after each
    window; ``done`` counts attempted URLs, not successful ones.
    """
    if not urls:
        return []
    if not MIN_CONCURRENCY <= concurrency_limit <= MAX_CONCURRENCY:
        raise ValueError(
            f"concurrency_limit must be between {MIN_CONCURRENCY} and {MAX_CONCURRENCY}, "
            f"got {concurrency_limit}"
        )

    total = len(urls)
    done = 0
    results: List[ProcessResult] = []
    for window in windows(urls, concurrency_limit):
        settled = await asyncio.gather(*(process(url) for url in window), return_exceptions=True)
        for url, outcome in zip(window, settled):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.error("Unexpected failure while processing %s: %r", url, outcome)
                results.append(ProcessResult(url=url, success=False))
            else:
                results.append(outcome)
        done += len(window)
        logger.debug("Window finished: %d/%d URLs attempted", done, total)
        if on_progress is not None:
            on_progress(done, total)
    return results
