from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text as sql_text
from sqlalchemy.engine import Engine

from .logging_setup import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

RUNS_TABLE = "scraper_runs"
TERMINAL_STATUSES = ("success", "partial", "failed", "skipped")


def new_run_id() -> str:
    return str(uuid.uuid4())


def log_event(event: str, **payload: Any) -> None:
    logger.info(
        "SCRAPER_%s %s", event, json.dumps(payload, default=str, sort_keys=True)
    )


def _ensure_runs_table(engine: Engine) -> None:
    with engine.begin() as conn:
        conn.execute(
            sql_text(
                f"""
                CREATE TABLE IF NOT EXISTS {RUNS_TABLE} (
                  run_id text NOT NULL,
                  scraper text NOT NULL,
                  source_name text,
                  started_at text NOT NULL,
                  finished_at text,
                  status text NOT NULL,
                  dry_run boolean NOT NULL DEFAULT false,
                  rows_inserted integer NOT NULL DEFAULT 0,
                  rows_skipped integer NOT NULL DEFAULT 0,
                  fetch_count integer NOT NULL DEFAULT 0,
                  last_error text,
                  details_json text NOT NULL DEFAULT '{{}}',
                  PRIMARY KEY (run_id, scraper)
                )
                """
            )
        )


def upsert_run(
    engine: Engine,
    *,
    run_id: str,
    scraper: str,
    source_name: str,
    status: str,
    dry_run: bool,
    rows_inserted: int = 0,
    rows_skipped: int = 0,
    fetch_count: int = 0,
    last_error: str | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    _ensure_runs_table(engine)
    now = utc_now_iso()
    with engine.begin() as conn:
        conn.execute(
            sql_text(
                f"""
                INSERT INTO {RUNS_TABLE}
                (run_id, scraper, source_name, started_at, finished_at, status, dry_run,
                 rows_inserted, rows_skipped, fetch_count, last_error, details_json)
                VALUES (:run_id, :scraper, :source_name, :now, :finished_at, :status, :dry_run,
                 :rows_inserted, :rows_skipped, :fetch_count, :last_error, :details)
                ON CONFLICT (run_id, scraper) DO UPDATE SET
                  finished_at = EXCLUDED.finished_at,
                  status = EXCLUDED.status,
                  dry_run = EXCLUDED.dry_run,
                  rows_inserted = EXCLUDED.rows_inserted,
                  rows_skipped = EXCLUDED.rows_skipped,
                  fetch_count = EXCLUDED.fetch_count,
                  last_error = EXCLUDED.last_error,
                  details_json = EXCLUDED.details_json
                """
            ),
            {
                "run_id": run_id,
                "scraper": scraper,
                "source_name": source_name,
                "now": now,
                "finished_at": now if status in TERMINAL_STATUSES else None,
                "status": status,
                "dry_run": dry_run,
                "rows_inserted": rows_inserted,
                "rows_skipped": rows_skipped,
                "fetch_count": fetch_count,
                "last_error": last_error,
                "details": json.dumps(details or {}, default=str),
            },
        )


def record_run_safely(engine: Engine | None, **kwargs: Any) -> None:
    """upsert_run that never fails the scrape; the ledger is optional."""
    if engine is None:
        return
    try:
        upsert_run(engine, **kwargs)
    except Exception as exc:
        logger.warning("Could not record scraper run %s: %s", kwargs.get("run_id"), exc)


def latest_status(engine: Engine) -> list[dict[str, Any]]:
    _ensure_runs_table(engine)
    with engine.begin() as conn:
        rows = (
            conn.execute(
                sql_text(
                    f"""
                SELECT
                  scraper,
                  run_id,
                  source_name,
                  started_at,
                  finished_at,
                  status,
                  dry_run,
                  rows_inserted,
                  rows_skipped,
                  fetch_count,
                  last_error,
                  details_json
                FROM {RUNS_TABLE}
                ORDER BY scraper, started_at DESC
                """
                )
            )
            .mappings()
            .all()
        )
    out: list[dict[str, Any]] = []
    seen: set[str] = set()
    for row in rows:
        if row["scraper"] in seen:
            continue
        seen.add(row["scraper"])
        data = dict(row)
        data["details"] = json.loads(data.pop("details_json") or "{}")
        data["last_success"] = (
            data["finished_at"] if data["status"] == "success" else None
        )
        out.append(data)
    return out


class StepTimer:
    def __init__(self) -> None:
        self.started = time.perf_counter()

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started) * 1000)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
