from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from ..config import Settings
from ..errors import ExtractionError
from ..logging_setup import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

_CLOSEST_ATTRIBUTE_JS = """
(el, [selector, name]) => {
  const parent = el.parentElement;
  const match = parent ? parent.closest(selector) : null;
  return match ? match.getAttribute(name) : null;
}
"""


class PageSession:
    """Browser page capability used by extraction strategies.

    Handles returned by query_all are opaque to callers and only ever passed
    back into this session.
    """

    def navigate(self, url: str, timeout_ms: int) -> None:
        raise NotImplementedError

    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        raise NotImplementedError

    def query_all(self, selector: str, within: Any = None) -> list[Any]:
        raise NotImplementedError

    def element_text(self, handle: Any) -> str:
        raise NotImplementedError

    def element_attribute(self, handle: Any, name: str) -> Optional[str]:
        raise NotImplementedError

    def closest_attribute(
        self, handle: Any, selector: str, name: str
    ) -> Optional[str]:
        """Attribute of the nearest ancestor matching selector, if any."""
        raise NotImplementedError

    def query_first(self, selector: str, within: Any = None) -> Any:
        found = self.query_all(selector, within=within)
        return found[0] if found else None


class PlaywrightPageSession(PageSession):
    def __init__(self, page):
        self.page = page

    def navigate(self, url: str, timeout_ms: int) -> None:
        # domcontentloaded: long-polling trackers never reach network idle
        try:
            self.page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise ExtractionError(f"navigation timeout after {timeout_ms}ms: {url}") from exc
        except PlaywrightError as exc:
            raise ExtractionError(f"navigation failed: {exc.message}") from exc

    def wait_for_selector(self, selector: str, timeout_ms: int) -> None:
        try:
            self.page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError as exc:
            raise ExtractionError(
                f"selector {selector!r} not found within {timeout_ms}ms"
            ) from exc

    def query_all(self, selector: str, within: Any = None) -> list[Any]:
        root = within if within is not None else self.page
        return root.query_selector_all(selector)

    def element_text(self, handle: Any) -> str:
        return handle.inner_text() or ""

    def element_attribute(self, handle: Any, name: str) -> Optional[str]:
        return handle.get_attribute(name)

    def closest_attribute(
        self, handle: Any, selector: str, name: str
    ) -> Optional[str]:
        return handle.evaluate(_CLOSEST_ATTRIBUTE_JS, [selector, name])


@contextmanager
def open_browser_session(settings: Settings) -> Iterator[PlaywrightPageSession]:
    """Launch headless Chromium and yield one page shared by all targets."""
    with sync_playwright() as p:
        browser = p.chromium.launch(headless=settings.headless, args=BROWSER_ARGS)
        try:
            context = browser.new_context(user_agent=settings.user_agent)
            page = context.new_page()
            logger.info("Browser session opened (headless=%s)", settings.headless)
            yield PlaywrightPageSession(page)
        finally:
            browser.close()
