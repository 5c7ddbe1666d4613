# reader_crawl/crawler/urls.py
"""
URL resolution and domain policy helpers.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urljoin, urlsplit

from reader_crawl.errors import MalformedUrl

__all__ = ("resolve", "is_same_domain", "is_valid_http_url", "hostname")


def hostname(url: str) -> Optional[str]:
    """Return the lower-cased host of *url*, or None when it has none or cannot be parsed."""
    try:
        return urlsplit(url).hostname or None
    except ValueError:
        return None


def resolve(base: str, candidate: str) -> str:
    """
    Resolve *candidate* against *base*.

    Candidates that already start with ``http`` are returned unchanged;
    relative, absolute-path and protocol-relative links are joined the usual
    way. Raises :class:`MalformedUrl` when no absolute URL comes out.
    """
    if candidate.startswith("http"):
        return candidate
    try:
        absolute = urljoin(base, candidate)
        parts = urlsplit(absolute)
        host = parts.hostname
    except ValueError as exc:
        raise MalformedUrl(f"Cannot resolve {candidate!r} against {base!r}: {exc}") from exc
    if not parts.scheme or not host:
        raise MalformedUrl(f"Cannot resolve {candidate!r} against {base!r}")
    return absolute


def is_same_domain(a: str, b: str) -> bool:
    """True when both URLs parse and have the same hostname (ports and schemes ignored)."""
    host_a = hostname(a)
    host_b = hostname(b)
    return host_a is not None and host_a == host_b


def is_valid_http_url(value: str) -> bool:
    """True only for absolute ``http``/``https`` URLs with a host."""
    if not value:
        return False
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.netloc)
