from __future__ import annotations

from ..config import Settings
from ..types import ScrapeCandidate, Target
from .session import PageSession


class ExtractionStrategy:
    """Produce (title, link) candidates for one target from a page session.

    extract() raises ExtractionError only for conditions worth retrying.
    An empty list is a normal result.
    """

    kind: str = "base"

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()

    def extract(self, session: PageSession, target: Target) -> list[ScrapeCandidate]:
        raise NotImplementedError
