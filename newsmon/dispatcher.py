from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Optional

from .config import Settings
from .link_resolver import url_host
from .logging_setup import LOGGER_NAME
from .retry import run_with_retry
from .scraper_observability import log_event
from .scrapers import strategy_for
from .scrapers.session import PageSession
from .scrapers.social_scraper import SOCIAL_HOSTS
from .scrapers.web_scraper import selector_for_url
from .types import (
    MODE_MIXED,
    MODE_TWITTER,
    MODE_WEB,
    SOURCE_SOCIAL,
    SOURCE_WEB,
    STATUS_EMPTY,
    STATUS_FAILED,
    STATUS_MISSING_SELECTOR,
    STATUS_SUCCEEDED,
    Target,
    TargetOutcome,
)

logger = logging.getLogger(LOGGER_NAME)


def is_social_url(url: str) -> bool:
    host = url_host(url)
    if not host:
        return any(h in url.lower() for h in SOCIAL_HOSTS)
    return any(host == h or host.endswith("." + h) for h in SOCIAL_HOSTS)


def classify_target(url: str, mode: str) -> str:
    if mode == MODE_TWITTER:
        return SOURCE_SOCIAL
    if mode == MODE_WEB:
        return SOURCE_WEB
    if mode == MODE_MIXED:
        return SOURCE_SOCIAL if is_social_url(url) else SOURCE_WEB
    raise ValueError(f"unknown run mode: {mode!r}")


def build_target(url: str, mode: str, selector: Optional[str] = None) -> Target:
    kind = classify_target(url, mode)
    if kind == SOURCE_WEB:
        return Target(url=url, source_kind=kind, selector=selector_for_url(url, selector))
    return Target(url=url, source_kind=kind)


def process_target(
    session: PageSession,
    target: Target,
    settings: Settings,
    sleep: Callable[[float], None] = time.sleep,
) -> TargetOutcome:
    outcome = TargetOutcome(url=target.url, source_kind=target.source_kind)

    if target.source_kind == SOURCE_WEB and not target.selector:
        logger.warning(
            "Skipping %s: no selector provided and no default found", target.url
        )
        outcome.status = STATUS_MISSING_SELECTOR
        outcome.error = "Missing selector"
        return outcome

    strategy = strategy_for(target.source_kind, settings)
    result = run_with_retry(
        lambda: strategy.extract(session, target),
        max_attempts=settings.max_retries,
        base_delay_s=settings.retry_delay_ms / 1000.0,
        sleep=sleep,
    )

    if result.value is None:
        outcome.status = STATUS_FAILED
        outcome.error = result.last_error or "no result"
        logger.error("Giving up on %s after %s attempts", target.url, result.attempts)
    elif result.value:
        outcome.status = STATUS_SUCCEEDED
        outcome.candidates = list(result.value)
    else:
        outcome.status = STATUS_EMPTY
    return outcome


def dispatch_targets(
    session: PageSession,
    urls: Iterable[str],
    mode: str,
    settings: Settings,
    selector: Optional[str] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[TargetOutcome]:
    """Scrape each URL in order through one shared session.

    A failing target never stops the ones after it, and the inter-target
    delay is observed whatever the outcome.
    """
    outcomes: list[TargetOutcome] = []
    for url in urls:
        try:
            target = build_target(url, mode, selector)
            outcome = process_target(session, target, settings, sleep=sleep)
        except Exception as exc:
            logger.exception("Error scraping %s", url)
            outcome = TargetOutcome(
                url=url,
                source_kind=SOURCE_SOCIAL if mode == MODE_TWITTER else SOURCE_WEB,
                status=STATUS_FAILED,
                error=f"{type(exc).__name__}: {exc}",
            )
        log_event(
            "TARGET",
            url=url,
            source=outcome.source_kind,
            status=outcome.status,
            items_found=len(outcome.candidates),
            error=outcome.error,
        )
        outcomes.append(outcome)
        sleep(settings.target_delay_ms / 1000.0)
    return outcomes
