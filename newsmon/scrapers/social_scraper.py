from __future__ import annotations

import logging
from typing import Any, Optional

from ..errors import ExtractionError
from ..link_resolver import absolute_url
from ..logging_setup import LOGGER_NAME
from ..merge import normalize_title
from ..scraper_observability import StepTimer, log_event
from ..types import SOURCE_SOCIAL, ScrapeCandidate, Target
from .base import ExtractionStrategy
from .session import PageSession

logger = logging.getLogger(LOGGER_NAME)

SOCIAL_HOSTS = ("twitter.com", "x.com")
SOCIAL_BASE_URL = "https://x.com"

POST_SELECTOR = '[data-testid="tweet"]'
PINNED_POST_SELECTOR = '[data-testid="tweet"]:has([aria-label*="Pinned"])'
POST_TEXT_SELECTOR = '[data-testid="tweetText"]'
PERMALINK_SELECTOR = 'a[href*="/status/"]'

TITLE_MAX_LEN = 100


def truncate_title(text: str, limit: int = TITLE_MAX_LEN) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class SocialStrategy(ExtractionStrategy):
    """Pinned post if there is one, else the most recent post on the page."""

    kind = SOURCE_SOCIAL

    def extract(self, session: PageSession, target: Target) -> list[ScrapeCandidate]:
        fetch_timer = StepTimer()
        session.navigate(target.url, self.settings.request_timeout_ms)
        session.wait_for_selector(POST_SELECTOR, self.settings.social_timeout_ms)
        log_event(
            "FETCH",
            scraper=self.kind,
            url=target.url,
            latency_ms=fetch_timer.elapsed_ms(),
        )

        try:
            candidate = self._read_post(session, target.url)
        except ExtractionError:
            raise
        except Exception as exc:
            # The platform blocks automation often; not worth a retry
            logger.warning("Social scraping may be blocked for %s: %s", target.url, exc)
            return []

        log_event(
            "PARSE", scraper=self.kind, url=target.url, items_found=int(bool(candidate))
        )
        return [candidate] if candidate else []

    def _read_post(self, session: PageSession, url: str) -> Optional[ScrapeCandidate]:
        post = session.query_first(PINNED_POST_SELECTOR)
        if post is None:
            post = session.query_first(POST_SELECTOR)
        if post is None:
            return None

        text_handle = session.query_first(POST_TEXT_SELECTOR, within=post)
        text = normalize_title(session.element_text(text_handle)) if text_handle else ""
        if not text:
            return None

        link = self._permalink(session, post)
        if link is None:
            # Degrades url dedup to the profile URL; titles still dedup
            logger.info("No permalink found on %s; using requested URL", url)
            link = url
        return ScrapeCandidate(title=truncate_title(text), link=link, source_url=url)

    @staticmethod
    def _permalink(session: PageSession, post: Any) -> Optional[str]:
        anchor = session.query_first(PERMALINK_SELECTOR, within=post)
        if anchor is None:
            return None
        return absolute_url(SOCIAL_BASE_URL, session.element_attribute(anchor, "href"))
