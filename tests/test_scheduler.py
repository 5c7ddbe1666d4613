"""Tests for the windowed batch scheduler."""
import asyncio
import math

import pytest

from reader_crawl.crawler.scheduler import run_batches, windows
from reader_crawl.models import ProcessResult


class RecordingProcess:
    """Processing step that records concurrency and can be told to fail."""

    def __init__(self, fail=(), explode=()):
        self.fail = set(fail)
        self.explode = set(explode)
        self.started: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, url: str) -> ProcessResult:
        self.started.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0.01)
            if url in self.explode:
                raise RuntimeError(f"boom {url}")
            return ProcessResult(url=url, success=url not in self.fail)
        finally:
            self.in_flight -= 1


def test_windows_preserve_order():
    assert windows(["a", "b", "c", "d", "e"], 2) == [["a", "b"], ["c", "d"], ["e"]]
    assert windows([], 3) == []


@pytest.mark.asyncio()
async def test_empty_input_returns_without_progress():
    progress: list[tuple[int, int]] = []
    results = await run_batches([], 3, RecordingProcess(), lambda done, total: progress.append((done, total)))
    assert results == []
    assert progress == []


@pytest.mark.asyncio()
@pytest.mark.parametrize("limit", [0, 11])
async def test_empty_input_returns_before_checking_limit(limit):
    process = RecordingProcess()
    assert await run_batches([], limit, process) == []
    assert process.started == []


@pytest.mark.asyncio()
@pytest.mark.parametrize("limit,count", [(1, 4), (3, 7), (3, 9), (10, 4), (4, 25)])
async def test_concurrency_bound_and_progress_calls(limit, count):
    urls = [f"https://ex.com/{i}" for i in range(count)]
    process = RecordingProcess()
    progress: list[tuple[int, int]] = []

    results = await run_batches(urls, limit, process, lambda done, total: progress.append((done, total)))

    assert process.max_in_flight <= limit
    assert len(progress) == math.ceil(count / limit)
    firsts = [done for done, _ in progress]
    assert firsts == sorted(set(firsts))
    assert firsts[-1] == count
    assert all(total == count for _, total in progress)
    assert [r.url for r in results] == urls


@pytest.mark.asyncio()
async def test_windows_run_strictly_in_sequence():
    urls = ["a", "b", "c", "d"]
    process = RecordingProcess()
    seen_at_progress: list[list[str]] = []

    await run_batches(urls, 2, process, lambda done, total: seen_at_progress.append(list(process.started)))

    assert seen_at_progress == [["a", "b"], ["a", "b", "c", "d"]]


@pytest.mark.asyncio()
async def test_failures_do_not_cancel_siblings_and_still_count_as_progress():
    urls = ["ok-1", "bad", "boom", "ok-2"]
    process = RecordingProcess(fail={"bad"}, explode={"boom"})
    progress: list[tuple[int, int]] = []

    results = await run_batches(urls, 4, process, lambda done, total: progress.append((done, total)))

    assert process.started == urls
    assert progress == [(4, 4)]
    assert {r.url: r.success for r in results} == {
        "ok-1": True,
        "bad": False,
        "boom": False,
        "ok-2": True,
    }


@pytest.mark.asyncio()
@pytest.mark.parametrize("limit", [0, 11, -1])
async def test_rejects_out_of_range_limits(limit):
    with pytest.raises(ValueError):
        await run_batches(["a"], limit, RecordingProcess())
