"""reader_crawl.report: экспорт сохранённых страниц в JSON, Markdown, текст и HTML."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Iterable, List, Union

from reader_crawl.errors import CrawlValidationError
from reader_crawl.models import CrawlEntry, CrawlStatus
from reader_crawl.report.html_report import render_html
from reader_crawl.report.text_report import render_json, render_markdown, render_text

EXPORT_FORMATS = ("json", "md", "txt", "html")

_RENDERERS: Dict[str, Callable[[List[CrawlEntry]], str]] = {
    "json": render_json,
    "md": render_markdown,
    "txt": render_text,
}


def default_filename(fmt: str) -> str:
    return f"crawled_data.{fmt}"


def export_pages(
    entries: Iterable[CrawlEntry],
    fmt: str,
    output_path: Union[str, Path, None] = None,
    template_dir: Union[str, Path, None] = None,
) -> Path:
    """Рендерит завершённые записи в формате *fmt* и сохраняет файл.

    Без *output_path* файл называется ``crawled_data.<fmt>`` в текущей папке.
    Если экспортировать нечего, бросает CrawlValidationError.
    """
    if fmt not in EXPORT_FORMATS:
        raise CrawlValidationError(f"Unsupported export format: {fmt}")
    completed = [e for e in entries if e.status is CrawlStatus.COMPLETED]
    if not completed:
        raise CrawlValidationError("No data available for download")

    output = Path(output_path) if output_path else Path(default_filename(fmt))
    output.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "html":
        text = render_html(completed, template_dir)
    else:
        text = _RENDERERS[fmt](completed)
    output.write_text(text, encoding="utf-8")
    return output


__all__ = [
    "EXPORT_FORMATS",
    "default_filename",
    "export_pages",
    "render_html",
    "render_json",
    "render_markdown",
    "render_text",
]
