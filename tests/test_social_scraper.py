import pytest

from fakes import FakeElement, FakeSession
from newsmon.config import Settings
from newsmon.errors import ExtractionError
from newsmon.scrapers.social_scraper import (
    PERMALINK_SELECTOR,
    PINNED_POST_SELECTOR,
    POST_SELECTOR,
    POST_TEXT_SELECTOR,
    SocialStrategy,
    truncate_title,
)
from newsmon.types import SOURCE_SOCIAL, Target

PROFILE = "https://x.com/acme"
TARGET = Target(url=PROFILE, source_kind=SOURCE_SOCIAL)


def _post(text, href=None):
    children = {POST_TEXT_SELECTOR: [FakeElement(text=text)]}
    if href:
        children[PERMALINK_SELECTOR] = [FakeElement(attrs={"href": href})]
    return FakeElement(children=children)


def _extract(page, **kwargs):
    session = FakeSession(pages={PROFILE: page}, **kwargs)
    return SocialStrategy(Settings()).extract(session, TARGET)


def test_pinned_post_is_preferred():
    latest = _post("Latest post", "/acme/status/2")
    pinned = _post("Pinned post", "/acme/status/1")
    [candidate] = _extract({POST_SELECTOR: [latest, pinned], PINNED_POST_SELECTOR: [pinned]})
    assert candidate.title == "Pinned post"
    assert candidate.link == "https://x.com/acme/status/1"


def test_first_post_when_nothing_pinned():
    page = {POST_SELECTOR: [_post("Newest", "/acme/status/9"), _post("Older", "/acme/status/8")]}
    [candidate] = _extract(page)
    assert candidate.title == "Newest"
    assert candidate.link == "https://x.com/acme/status/9"


def test_missing_permalink_falls_back_to_requested_url():
    [candidate] = _extract({POST_SELECTOR: [_post("No link here")]})
    assert candidate.link == PROFILE


def test_empty_text_yields_nothing():
    assert _extract({POST_SELECTOR: [_post("  \n ")]}) == []
    assert _extract({POST_SELECTOR: [FakeElement()]}) == []


def test_long_posts_are_truncated():
    text = "x" * 150
    [candidate] = _extract({POST_SELECTOR: [_post(text, "/acme/status/3")]})
    assert candidate.title == "x" * 100 + "..."
    assert truncate_title("short") == "short"


def test_container_timeout_is_retryable():
    with pytest.raises(ExtractionError):
        _extract({})


def test_other_failures_yield_nothing():
    class Hostile(FakeSession):
        def element_text(self, handle):
            raise RuntimeError("blocked")

    session = Hostile(pages={PROFILE: {POST_SELECTOR: [_post("text")]}})
    assert SocialStrategy(Settings()).extract(session, TARGET) == []
