"""Tests for the crawl state table, the frontier and the session file."""
import json

import pytest

from reader_crawl.crawler.frontier import Frontier
from reader_crawl.crawler.state import CrawlStateStore
from reader_crawl.errors import PersistenceError
from reader_crawl.models import CrawlStats, CrawlStatus
from reader_crawl.session import CrawlSession, SessionStore


# --------------------------------------------------------------------------- #
#                               CrawlStateStore                               #
# --------------------------------------------------------------------------- #


def test_upsert_pending_does_not_touch_existing_entries():
    store = CrawlStateStore()
    store.mark_completed("https://ex.com/a", "body")
    store.upsert_pending("https://ex.com/a")
    entry = store.get("https://ex.com/a")
    assert entry.status is CrawlStatus.COMPLETED
    assert entry.content == "body"

    fresh = store.upsert_pending("https://ex.com/b")
    assert fresh.status is CrawlStatus.PENDING
    assert fresh.content is None


def test_status_transitions_are_idempotent():
    store = CrawlStateStore()
    store.mark_fetching("https://ex.com/a")
    store.mark_fetching("https://ex.com/a")
    assert store.get("https://ex.com/a").status is CrawlStatus.FETCHING

    store.mark_error("https://ex.com/a")
    store.mark_error("https://ex.com/a")
    assert store.urls_with_status(CrawlStatus.ERROR) == ["https://ex.com/a"]
    assert len(store) == 1


def test_reset_to_pending_only_moves_error_entries():
    store = CrawlStateStore()
    store.mark_error("https://ex.com/err")
    store.mark_completed("https://ex.com/ok", "")
    assert store.reset_to_pending("https://ex.com/err") is True
    assert store.reset_to_pending("https://ex.com/ok") is False
    assert store.reset_to_pending("https://ex.com/unknown") is False
    assert store.get("https://ex.com/err").status is CrawlStatus.PENDING
    assert store.get("https://ex.com/ok").status is CrawlStatus.COMPLETED


def test_empty_page_is_distinct_from_unfetched():
    store = CrawlStateStore()
    store.mark_completed("https://ex.com/empty", "")
    store.upsert_pending("https://ex.com/later")
    assert store.get("https://ex.com/empty").content == ""
    assert store.get("https://ex.com/later").content is None


def test_snapshot_stats_counts_by_status():
    store = CrawlStateStore()
    store.mark_completed("https://ex.com/1", "a")
    store.mark_completed("https://ex.com/2", "b")
    store.upsert_pending("https://ex.com/3")
    store.mark_fetching("https://ex.com/4")
    store.mark_error("https://ex.com/5")
    assert store.snapshot_stats() == CrawlStats(total=5, completed=2, pending=1, fetching=1, error=1)

    store.mark_completed("https://ex.com/5", "c")
    assert store.snapshot_stats().error == 0
    assert [e.url for e in store.completed_entries()] == [
        "https://ex.com/1",
        "https://ex.com/2",
        "https://ex.com/5",
    ]


# --------------------------------------------------------------------------- #
#                                   Frontier                                  #
# --------------------------------------------------------------------------- #


def test_frontier_keeps_order_and_rejects_duplicates():
    frontier = Frontier()
    assert frontier.add("https://ex.com/b", "B") is True
    assert frontier.add("https://ex.com/a", "") is True
    assert frontier.add("https://ex.com/b", "Other label") is False
    assert [(c.url, c.text) for c in frontier] == [
        ("https://ex.com/b", "B"),
        ("https://ex.com/a", "https://ex.com/a"),
    ]


def test_frontier_selection_helpers():
    frontier = Frontier()
    for path in ("docs/intro", "docs/api", "blog/news"):
        frontier.add(f"https://ex.com/{path}", path.title())

    assert frontier.toggle(2).selected is True
    assert [c.url for c in frontier.selected()] == ["https://ex.com/blog/news"]

    assert frontier.select_matching("DOCS") == 2
    assert len(frontier.selected()) == 3

    frontier.select_all(False)
    assert frontier.selected() == []

    with pytest.raises(IndexError):
        frontier.toggle(3)


# --------------------------------------------------------------------------- #
#                                 SessionStore                                #
# --------------------------------------------------------------------------- #


def test_session_survives_save_and_load(tmp_path):
    session = CrawlSession(seed_url="https://ex.com/")
    session.state.mark_completed("https://ex.com/", "# Home")
    session.state.mark_error("https://ex.com/broken")
    session.frontier.add("https://ex.com/broken", "Broken")
    session.frontier.toggle(0)
    session.progress = 100
    session.is_crawling = True

    store = SessionStore(tmp_path / "nested" / "session.json")
    store.save(session)
    raw = json.loads(store.path.read_text(encoding="utf-8"))
    assert set(raw) == {"initial_url", "crawled_data", "extracted_urls", "progress"}

    loaded = store.load()
    assert loaded.seed_url == "https://ex.com/"
    assert loaded.state.get("https://ex.com/broken").status is CrawlStatus.ERROR
    assert loaded.state.get("https://ex.com/").content == "# Home"
    assert [c.url for c in loaded.frontier.selected()] == ["https://ex.com/broken"]
    assert loaded.progress == 100
    assert loaded.busy is False


def test_missing_session_file_gives_empty_session(tmp_path):
    session = SessionStore(tmp_path / "absent.json").load()
    assert session.seed_url is None
    assert len(session.state) == 0
    assert len(session.frontier) == 0


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"crawled_data": [{"url": "x", "status": "bogus"}]}'])
def test_corrupt_session_file_raises_persistence_error(tmp_path, content):
    path = tmp_path / "session.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(PersistenceError):
        SessionStore(path).load()


def test_clear_removes_session_file(tmp_path):
    store = SessionStore(tmp_path / "session.json")
    store.save(CrawlSession(seed_url="https://ex.com/"))
    store.clear()
    assert not store.path.exists()
    store.clear()


def test_session_reset_clears_everything():
    session = CrawlSession(seed_url="https://ex.com/", progress=40, is_retrying=True)
    session.state.mark_completed("https://ex.com/", "x")
    session.frontier.add("https://ex.com/a")
    session.reset()
    assert session.seed_url is None
    assert len(session.state) == 0
    assert len(session.frontier) == 0
    assert session.progress == 0
    assert not session.busy
