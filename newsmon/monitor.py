from __future__ import annotations

import json
import logging
import time
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Any, Callable, ContextManager, Optional

from sqlalchemy.engine import Engine

from .config import Settings
from .dispatcher import dispatch_targets
from .errors import MonitorError
from .logging_setup import LOGGER_NAME
from .merge import merge
from .scraper_observability import (
    StepTimer,
    log_event,
    new_run_id,
    record_run_safely,
)
from .scrapers.session import PageSession, open_browser_session
from .store import load_records, save_records
from .types import STATUS_FAILED, STATUS_MISSING_SELECTOR, STATUS_SUCCEEDED, TargetOutcome

logger = logging.getLogger(LOGGER_NAME)

SCRAPER_NAME = "news_monitor"

SessionFactory = Callable[[Settings], ContextManager[PageSession]]


@dataclass
class RunSummary:
    run_id: str
    source_name: str
    added: int = 0
    skipped: int = 0
    total: int = 0
    written: bool = False
    dry_run: bool = False
    outcomes: list[TargetOutcome] = field(default_factory=list)

    @property
    def errors(self) -> dict[str, str]:
        return {o.url: o.error for o in self.outcomes if o.error}

    @property
    def status(self) -> str:
        if self.outcomes and all(
            o.status in (STATUS_FAILED, STATUS_MISSING_SELECTOR) for o in self.outcomes
        ):
            return "failed"
        return "partial" if self.errors else "success"

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "name": self.source_name,
            "targets": len(self.outcomes),
            "added": self.added,
            "skipped": self.skipped,
            "total": self.total,
            "written": self.written,
            "dry_run": self.dry_run,
            "results": [o.to_dict() for o in self.outcomes],
        }

    def render(self) -> str:
        lines = []
        if self.added:
            lines.append(
                f"Summary: Added {self.added} new items, skipped {self.skipped} duplicates"
            )
        else:
            lines.append(
                f"Summary: No new items added, skipped {self.skipped} duplicates"
            )
        if self.dry_run and self.added:
            lines.append("Dry-run: news store left unchanged")
        lines.append(f"Targets processed: {len(self.outcomes)}")
        for url, error in self.errors.items():
            lines.append(f"  error {url}: {error}")
        lines.append(f"Total items in store: {self.total}")
        lines.append("")
        lines.append("Scraping Results:")
        lines.append(json.dumps([o.to_dict() for o in self.outcomes], indent=2))
        return "\n".join(lines)


def _scrape_targets(
    session_factory: SessionFactory,
    urls: list[str],
    mode: str,
    settings: Settings,
    selector: Optional[str],
    sleep: Callable[[float], None],
) -> list[TargetOutcome]:
    stack = ExitStack()
    try:
        session = stack.enter_context(session_factory(settings))
    except Exception as exc:
        raise MonitorError(f"browser session failed to open: {exc}") from exc

    try:
        return dispatch_targets(
            session, urls, mode, settings, selector=selector, sleep=sleep
        )
    finally:
        try:
            stack.close()
        except Exception as exc:
            # Outcomes are already collected; a failed close must not drop them
            logger.warning("Browser session did not close cleanly: %s", exc)


def run_monitor(
    name: str,
    mode: str,
    urls: list[str],
    settings: Settings,
    selector: Optional[str] = None,
    session_factory: SessionFactory = open_browser_session,
    runs_engine: Optional[Engine] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunSummary:
    """One monitoring run: read store, scrape targets, merge, write at most once."""
    summary = RunSummary(run_id=new_run_id(), source_name=name, dry_run=settings.dry_run)
    ledger = dict(
        run_id=summary.run_id,
        scraper=SCRAPER_NAME,
        source_name=name,
        dry_run=settings.dry_run,
    )
    log_event(
        "START",
        scraper=SCRAPER_NAME,
        run_id=summary.run_id,
        name=name,
        mode=mode,
        targets=len(urls),
        dry_run=settings.dry_run,
    )
    record_run_safely(runs_engine, status="running", **ledger)

    try:
        existing = load_records(settings.store_path)
        summary.outcomes = _scrape_targets(
            session_factory, urls, mode, settings, selector, sleep
        )

        candidates = [
            c
            for o in summary.outcomes
            if o.status == STATUS_SUCCEEDED
            for c in o.candidates
        ]
        result = merge(existing, candidates, name)
        summary.added = len(result.admitted)
        summary.skipped = result.rejected
        summary.total = len(existing)

        if result.changed and not settings.dry_run:
            write_timer = StepTimer()
            snapshot = result.snapshot(existing)
            save_records(settings.store_path, snapshot)
            summary.written = True
            summary.total = len(snapshot)
            log_event(
                "WRITE",
                scraper=SCRAPER_NAME,
                run_id=summary.run_id,
                store=str(settings.store_path),
                rows_inserted=summary.added,
                duration_ms=write_timer.elapsed_ms(),
            )
        elif result.changed:
            logger.info("Dry-run: %s new items not written", summary.added)
            log_event(
                "WRITE",
                scraper=SCRAPER_NAME,
                run_id=summary.run_id,
                store=str(settings.store_path),
                rows_inserted=summary.added,
                mode="dry-run",
            )
    except Exception as exc:
        record_run_safely(
            runs_engine,
            status="failed",
            rows_inserted=0,
            fetch_count=len(summary.outcomes),
            last_error=f"{type(exc).__name__}: {exc}",
            **ledger,
        )
        log_event(
            "END",
            scraper=SCRAPER_NAME,
            run_id=summary.run_id,
            success=False,
            error_type=type(exc).__name__,
        )
        raise

    record_run_safely(
        runs_engine,
        status=summary.status,
        rows_inserted=summary.added if summary.written else 0,
        rows_skipped=summary.skipped,
        fetch_count=len(summary.outcomes),
        last_error="; ".join(f"{u}: {e}" for u, e in summary.errors.items()) or None,
        details={"targets": urls, "mode": mode, "written": summary.written},
        **ledger,
    )
    log_event(
        "END",
        scraper=SCRAPER_NAME,
        run_id=summary.run_id,
        success=True,
        rows_inserted=summary.added,
        rows_skipped=summary.skipped,
    )
    return summary
