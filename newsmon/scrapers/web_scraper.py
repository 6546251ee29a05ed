from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from ..link_resolver import absolute_url, anchor_link, fallback_link, url_host
from ..logging_setup import LOGGER_NAME
from ..merge import normalize_title
from ..scraper_observability import StepTimer, log_event
from ..types import SOURCE_WEB, ScrapeCandidate, Target
from .base import ExtractionStrategy
from .session import PageSession

logger = logging.getLogger(LOGGER_NAME)

# Host substring -> selector, used when no --selector is given.
DEFAULT_SELECTORS: dict[str, str] = {
    "openai.com": 'h3, a[href*="/news/"]',
    "anthropic.com": '[class*="title"], h3',
    "windsurf.com": "h2",
    "kiro.dev": "h2",
    "cursor.com": "h2",
    "antigravity.google": "h3",
    "developers.googleblog.com": ".post-title",
}

# Navigation chrome and banners that broad selectors like "h2" also match.
# Compared case-insensitively against the whitespace-normalized text.
BOILERPLATE_EXACT = frozenset(
    {
        "blog",
        "home",
        "latest news",
        "learn more",
        "load more",
        "menu",
        "news",
        "read more",
        "search",
        "see all",
        "view all",
    }
)
BOILERPLATE_SUBSTRINGS = (
    "skip to main content",
    "skip to content",
    "accept all cookies",
    "we use cookies",
    "cookie settings",
    "cookie preferences",
    "manage consent",
    "page not found",
    "404 not found",
    "404 error",
    "subscribe to our newsletter",
    "sign up for our newsletter",
    "enable javascript",
    "all rights reserved",
)

ANCHOR_SELECTOR = "a[href]"


def selector_for_url(url: str, explicit: Optional[str] = None) -> Optional[str]:
    """Explicit selector wins; otherwise look the host up in DEFAULT_SELECTORS."""
    if explicit and explicit.strip():
        return explicit.strip()
    host = url_host(url)
    haystack = host or url.lower()
    for domain, selector in DEFAULT_SELECTORS.items():
        if domain in haystack:
            return selector
    return None


def is_boilerplate(text: str) -> bool:
    lowered = text.lower()
    if lowered in BOILERPLATE_EXACT:
        return True
    return any(s in lowered for s in BOILERPLATE_SUBSTRINGS)


class WebStrategy(ExtractionStrategy):
    kind = SOURCE_WEB

    def extract(self, session: PageSession, target: Target) -> list[ScrapeCandidate]:
        if not target.selector:
            raise ValueError(f"web target without selector: {target.url}")

        fetch_timer = StepTimer()
        session.navigate(target.url, self.settings.request_timeout_ms)
        session.wait_for_selector(target.selector, self.settings.selector_timeout_ms)
        log_event(
            "FETCH",
            scraper=self.kind,
            url=target.url,
            selector=target.selector,
            latency_ms=fetch_timer.elapsed_ms(),
        )

        candidates: list[ScrapeCandidate] = []
        dropped = 0
        for handle in session.query_all(target.selector):
            title = normalize_title(session.element_text(handle))
            if not title:
                continue
            if is_boilerplate(title):
                dropped += 1
                logger.debug("Dropped boilerplate %r from %s", title, target.url)
                continue
            link = self._link_for(session, handle, target.url, title)
            candidates.append(
                ScrapeCandidate(title=title, link=link, source_url=target.url)
            )

        log_event(
            "PARSE",
            scraper=self.kind,
            url=target.url,
            items_found=len(candidates),
            boilerplate_dropped=dropped,
        )
        return candidates

    def _link_for(
        self, session: PageSession, handle: Any, page_url: str, title: str
    ) -> str:
        for href in self._candidate_hrefs(session, handle):
            link = absolute_url(page_url, href)
            if link:
                return link

        by_id = anchor_link(page_url, session.element_attribute(handle, "id"))
        if by_id:
            return by_id
        return fallback_link(page_url, title)

    @staticmethod
    def _candidate_hrefs(session: PageSession, handle: Any) -> Iterator[Optional[str]]:
        # Own href, then enclosing anchor, then nested anchor
        yield session.element_attribute(handle, "href")
        yield session.closest_attribute(handle, ANCHOR_SELECTOR, "href")
        nested = session.query_first(ANCHOR_SELECTOR, within=handle)
        if nested is not None:
            yield session.element_attribute(nested, "href")
