"""Tests for exporting stored pages."""
import json

import pytest

from reader_crawl.errors import CrawlValidationError
from reader_crawl.models import CrawlEntry, CrawlStatus
from reader_crawl.report import export_pages, render_markdown, render_text

ENTRIES = [
    CrawlEntry("https://ex.com/a", "# A\n\nbody <b>", CrawlStatus.COMPLETED),
    CrawlEntry("https://ex.com/b", "", CrawlStatus.COMPLETED),
    CrawlEntry("https://ex.com/c", None, CrawlStatus.ERROR),
]


def test_markdown_layout():
    assert render_markdown(ENTRIES[:2]) == (
        "# https://ex.com/a\n\n# A\n\nbody <b>\n\n---\n\n"
        "\n"
        "# https://ex.com/b\n\nContent could not be retrieved\n\n---\n\n"
    )


def test_text_layout():
    assert render_text(ENTRIES[:1]) == "URL: https://ex.com/a\n\n# A\n\nbody <b>\n\n==========\n\n"


def test_json_export_contains_only_completed(tmp_path):
    out = export_pages(ENTRIES, "json", tmp_path / "out" / "data.json")
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data == [
        {"url": "https://ex.com/a", "content": "# A\n\nbody <b>"},
        {"url": "https://ex.com/b", "content": ""},
    ]


def test_html_export_escapes_content(tmp_path):
    out = export_pages(ENTRIES, "html", tmp_path / "pages.html")
    html = out.read_text(encoding="utf-8")
    assert "Crawled pages (2)" in html
    assert "body &lt;b&gt;" in html
    assert "https://ex.com/c" not in html


def test_default_filename(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = export_pages(ENTRIES, "txt")
    assert out.name == "crawled_data.txt"
    assert (tmp_path / "crawled_data.txt").exists()


def test_nothing_to_export(tmp_path):
    with pytest.raises(CrawlValidationError):
        export_pages(ENTRIES[2:], "md", tmp_path / "x.md")


def test_unknown_format(tmp_path):
    with pytest.raises(CrawlValidationError):
        export_pages(ENTRIES, "pdf", tmp_path / "x.pdf")
