from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Optional


# Run modes accepted on the command line
MODE_WEB = "web"
MODE_TWITTER = "twitter"
MODE_MIXED = "mixed"
RUN_MODES = (MODE_WEB, MODE_TWITTER, MODE_MIXED)

# Resolved per-target source kinds
SOURCE_WEB = "web"
SOURCE_SOCIAL = "social"

# Terminal states of a target
STATUS_SUCCEEDED = "succeeded"
STATUS_EMPTY = "empty"
STATUS_FAILED = "failed"
STATUS_MISSING_SELECTOR = "missing_selector"

RECORD_FIELDS = ("id", "source", "title", "date", "url")


@dataclass(frozen=True)
class NewsRecord:
    id: str
    source: str
    title: str
    date: str
    url: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "NewsRecord":
        return cls(**{k: data[k] for k in RECORD_FIELDS})


@dataclass(frozen=True)
class ScrapeCandidate:
    title: str
    link: str
    source_url: str


@dataclass(frozen=True)
class Target:
    url: str
    source_kind: str
    selector: Optional[str] = None


@dataclass
class TargetOutcome:
    url: str
    source_kind: str
    status: str = STATUS_EMPTY
    candidates: list[ScrapeCandidate] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "url": self.url,
            "source": self.source_kind,
            "status": self.status,
            "candidates": len(self.candidates),
            "content": " | ".join(c.title for c in self.candidates) or None,
        }
        if self.error:
            data["error"] = self.error
        return data
