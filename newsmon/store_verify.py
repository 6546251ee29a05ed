from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from .errors import StoreError
from .merge import title_key
from .scraper_observability import utc_now_iso
from .store import read_raw
from .types import RECORD_FIELDS


@dataclass
class StoreReport:
    ok: bool
    checked_at: str
    path: str
    records: int = 0
    errors: list[str] = field(default_factory=list)


def _parse_date(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def verify_store(path: str | Path) -> StoreReport:
    """Schema and uniqueness checks over a store file.

    Unlike the monitor, a missing file is reported as an error here.
    """
    report = StoreReport(ok=False, checked_at=utc_now_iso(), path=str(path))
    if not Path(path).exists():
        report.errors.append(f"file not found: {path}")
        return report
    try:
        data = read_raw(path)
    except StoreError as exc:
        report.errors.append(str(exc))
        return report

    report.records = len(data)
    ids: set[str] = set()
    urls: set[str] = set()
    titles: set[str] = set()
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            report.errors.append(f"index {index}: record is not an object")
            continue
        missing = [k for k in RECORD_FIELDS if not item.get(k)]
        if missing:
            report.errors.append(f"index {index}: missing fields {', '.join(missing)}")
            continue
        if not all(isinstance(item[k], str) for k in RECORD_FIELDS):
            report.errors.append(f"index {index}: invalid field types")
            continue

        if _parse_date(item["date"]) is None:
            report.errors.append(f"index {index}: invalid date format {item['date']!r}")
        if item["id"] in ids:
            report.errors.append(f"index {index}: duplicate id {item['id']}")
        if item["url"] in urls:
            report.errors.append(f"index {index}: duplicate url {item['url']}")
        key = title_key(item["title"])
        if key in titles:
            report.errors.append(f"index {index}: duplicate title {item['title']!r}")
        ids.add(item["id"])
        urls.add(item["url"])
        titles.add(key)

    report.ok = len(report.errors) == 0
    return report
