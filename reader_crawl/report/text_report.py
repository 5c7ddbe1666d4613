# reader_crawl/report/text_report.py

"""
Текстовые форматы экспорта: JSON, Markdown и plain text.
"""
import json
from typing import List

from reader_crawl.models import CrawlEntry

MISSING_CONTENT = "Content could not be retrieved"


def render_json(entries: List[CrawlEntry]) -> str:
    """
    Сериализует записи в JSON-массив ``[{"url": ..., "content": ...}]``.

    Пример:
    ```python
    from reader_crawl.report.text_report import render_json
    print(render_json(entries))
    ```
    """
    data = [{"url": e.url, "content": e.content} for e in entries]
    return json.dumps(data, ensure_ascii=False, indent=2)


def render_markdown(entries: List[CrawlEntry]) -> str:
    """Каждая страница — заголовок с URL, содержимое и разделитель ``---``."""
    return "\n".join(
        f"# {e.url}\n\n{e.content or MISSING_CONTENT}\n\n---\n\n" for e in entries
    )


def render_text(entries: List[CrawlEntry]) -> str:
    return "\n".join(
        f"URL: {e.url}\n\n{e.content or MISSING_CONTENT}\n\n==========\n\n" for e in entries
    )
