"""
Extraction strategies.

Strategies are designed to be:
- side-effect free (they only read the page, the merge step owns the store)
- fail-soft (one target failing should not kill the run)
"""
from __future__ import annotations

from ..types import SOURCE_SOCIAL, SOURCE_WEB
from .base import ExtractionStrategy
from .social_scraper import SocialStrategy
from .web_scraper import WebStrategy

_STRATEGIES: dict[str, type[ExtractionStrategy]] = {
    SOURCE_WEB: WebStrategy,
    SOURCE_SOCIAL: SocialStrategy,
}


def strategy_for(source_kind: str, settings) -> ExtractionStrategy:
    try:
        cls = _STRATEGIES[source_kind]
    except KeyError:
        raise ValueError(f"unknown source kind: {source_kind!r}") from None
    return cls(settings)
