# reader_crawl/crawler/links.py
"""
Link extraction from rendered page content (markdown with embedded HTML).
"""
from __future__ import annotations

import re
from typing import List

from bs4 import BeautifulSoup
from bs4.element import Tag

from reader_crawl.models import ExtractedLink

__all__ = ("extract_links", "strip_fragment")

# [label](target) or [label](target "title"). Labels may span lines; targets may hold
# one level of balanced parens, e.g. /wiki/Foo_(bar).
_MARKDOWN_LINK_RE = re.compile(
    r'\[([^\[\]]+)\]\(\s*((?:[^()\[\]\s]|\([^()\s]*\))+)(?:\s+"[^"\n]*")?\s*\)'
)


def strip_fragment(url: str) -> str:
    """Drop everything from the first ``#`` and surrounding whitespace."""
    return url.split("#", 1)[0].strip()


def _markdown_links(text: str) -> List[ExtractedLink]:
    links: List[ExtractedLink] = []
    for match in _MARKDOWN_LINK_RE.finditer(text):
        url = strip_fragment(match.group(2))
        if url:
            links.append(ExtractedLink(url=url, text=match.group(1).strip()))
    return links


def _html_links(text: str) -> List[ExtractedLink]:
    if "<a" not in text and "<A" not in text:
        return []
    soup = BeautifulSoup(text, "html.parser")
    links: List[ExtractedLink] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        url = strip_fragment(href_val)
        if url:
            label = tag.get_text(" ", strip=True)
            links.append(ExtractedLink(url=url, text=label or url))
    return links


def extract_links(text: str) -> List[ExtractedLink]:
    """
    Extract outbound links from *text*.

    Markdown inline links are collected first, then HTML anchors, each in
    document order. Fragments are stripped, empty targets dropped and
    duplicates removed by exact URL (the first label wins).
    """
    if not text:
        return []
    unique: dict[str, ExtractedLink] = {}
    for link in _markdown_links(text) + _html_links(text):
        unique.setdefault(link.url, link)
    return list(unique.values())
