"""reader_crawl.report.html_report: Генерация HTML-экспорта с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from reader_crawl.models import CrawlEntry
from reader_crawl.report.text_report import MISSING_CONTENT

TEMPLATE_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAME = "pages.html.j2"


def render_html(
    entries: List[CrawlEntry],
    template_dir: Optional[Union[Path, str]] = None,
) -> str:
    """Рендерит HTML-страницу со всеми записями.

    Args:
        entries: завершённые записи обхода.
        template_dir: директория с шаблоном ``pages.html.j2``;
            по умолчанию используется шаблон из пакета.

    Returns:
        Готовый HTML как строка.
    """
    env = Environment(
        loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "pages": entries,
        "missing": MISSING_CONTENT,
    }
    return template.render(**context)
