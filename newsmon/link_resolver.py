"""Resolve scraped hrefs into canonical record links.

When a candidate has no usable href we synthesize a fallback link from the
page URL and a slug of the title, so the same title on the same page always
maps to the same link and url-based dedup still works.
"""
from __future__ import annotations

import hashlib
import re
from typing import Optional
from urllib.parse import urljoin, urlsplit

SLUG_MAX_LEN = 50

_NON_WORD = re.compile(r"[\W_]+")
_IGNORED_SCHEMES = {"javascript", "mailto", "tel", "data"}


def slugify(text: str) -> str:
    slug = _NON_WORD.sub("-", str(text or "").strip().lower()).strip("-")
    slug = slug[:SLUG_MAX_LEN].rstrip("-")
    if slug:
        return slug
    # Titles made only of punctuation/symbols still need a stable key
    return hashlib.sha1(str(text or "").encode("utf-8")).hexdigest()[:12]


def absolute_url(page_url: str, raw_href: Optional[str]) -> Optional[str]:
    """Return raw_href made absolute against page_url, or None if unusable."""
    href = (raw_href or "").strip()
    if not href or href == "#":
        return None
    try:
        resolved = urljoin(page_url, href)
        parts = urlsplit(resolved)
    except ValueError:
        return None
    if parts.scheme.lower() in _IGNORED_SCHEMES:
        return None
    if parts.scheme.lower() not in {"http", "https"} or not parts.netloc:
        return None
    return resolved


def fallback_link(page_url: str, seed: str) -> str:
    base = page_url.split("#", 1)[0]
    return f"{base}#{slugify(seed)}"


def anchor_link(page_url: str, element_id: Optional[str]) -> Optional[str]:
    element_id = (element_id or "").strip()
    if not element_id:
        return None
    return f"{page_url.split('#', 1)[0]}#{element_id}"


def resolve_link(page_url: str, raw_href: Optional[str], fallback_seed: str) -> str:
    """Resolve raw_href against page_url, falling back to a title-derived key.

    Never raises; malformed hrefs fall through to the synthesized link.
    """
    return absolute_url(page_url, raw_href) or fallback_link(page_url, fallback_seed)


def url_host(url: str) -> str:
    """Lower-cased host of url, or "" when it has none or does not parse."""
    try:
        return (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""
