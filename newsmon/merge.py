"""Duplicate detection and merge of scraped candidates into the news store.

A candidate is a duplicate when its normalized title matches (case-insensitive)
or its link matches (exact) any stored record or any candidate admitted earlier
in the same run. The merge is pure: it never touches the store file.
"""
from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from .logging_setup import LOGGER_NAME
from .types import NewsRecord, ScrapeCandidate

logger = logging.getLogger(LOGGER_NAME)

_WHITESPACE = re.compile(r"\s+")


def normalize_title(text: Optional[str]) -> str:
    return _WHITESPACE.sub(" ", text or "").strip()


def title_key(title: str) -> str:
    return normalize_title(title).casefold()


@dataclass
class DedupIndex:
    """Titles and urls already taken, by stored records or this run."""

    titles: set[str] = field(default_factory=set)
    urls: set[str] = field(default_factory=set)

    @classmethod
    def from_records(cls, records: Iterable[NewsRecord]) -> "DedupIndex":
        index = cls()
        for record in records:
            index.add(record.title, record.url)
        return index

    def contains(self, title: str, url: str) -> bool:
        return title_key(title) in self.titles or url in self.urls

    def add(self, title: str, url: str) -> None:
        self.titles.add(title_key(title))
        self.urls.add(url)


@dataclass
class MergeResult:
    admitted: list[NewsRecord] = field(default_factory=list)
    rejected: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.admitted)

    def snapshot(self, existing: list[NewsRecord]) -> list[NewsRecord]:
        return list(existing) + self.admitted


def utc_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def merge(
    existing: list[NewsRecord],
    candidates: Iterable[ScrapeCandidate],
    source_name: str,
    now: Optional[datetime] = None,
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    index: Optional[DedupIndex] = None,
) -> MergeResult:
    """Admit candidates in arrival order, rejecting duplicates.

    Pass an existing ``index`` to keep accumulating across several calls.
    """
    index = index if index is not None else DedupIndex.from_records(existing)
    result = MergeResult()
    stamp = utc_timestamp(now)

    for candidate in candidates:
        title = normalize_title(candidate.title)
        if not title:
            continue
        if index.contains(title, candidate.link):
            result.rejected += 1
            logger.info("Skipped duplicate: %r", title)
            continue

        record = NewsRecord(
            id=id_factory(),
            source=source_name,
            title=title,
            date=stamp,
            url=candidate.link,
        )
        index.add(record.title, record.url)
        result.admitted.append(record)
        logger.info("Added: %r from %s", title, source_name)

    return result
