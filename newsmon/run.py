import argparse
import json
import logging
import os
import sys

from .config import Settings
from .db import check_db_connectivity, get_runs_engine
from .errors import ConfigurationError, MonitorError
from .logging_setup import LOGGER_NAME, setup_logging
from .types import RUN_MODES

logger = logging.getLogger(LOGGER_NAME)


def split_urls(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [u.strip() for u in raw.split(",") if u.strip()]


def cmd_monitor(args, settings: Settings) -> int:
    from .monitor import run_monitor

    summary = run_monitor(
        name=args.name,
        mode=args.source,
        urls=split_urls(args.url),
        settings=settings,
        selector=args.selector,
        runs_engine=get_runs_engine(),
    )
    print()
    print(summary.render())
    return 0


def cmd_verify(args, settings: Settings) -> int:
    from .store_verify import verify_store

    paths = [settings.store_path]
    if args.archive_store:
        paths.append(args.archive_store)

    ok = True
    for path in paths:
        print(f"Verifying {path}...")
        report = verify_store(path)
        for error in report.errors:
            print(f"Error in {path}: {error}")
        if report.ok:
            print(f"OK: {report.records} records")
        ok = ok and report.ok
    return 0 if ok else 1


def cmd_status(args, settings: Settings) -> int:
    from .scraper_observability import latest_status

    engine = get_runs_engine()
    if engine is None:
        raise ConfigurationError(
            "SCRAPER_RUNS_DB_URL is not set (checked aliases: SCRAPER_RUNS_DB_URL, DATABASE_URL)"
        )
    check_db_connectivity(engine)
    print(json.dumps(latest_status(engine), indent=2, default=str))
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="newsmon",
        description="Scrape news targets and append new items to the news store",
    )
    ap.add_argument(
        "command",
        nargs="?",
        default="monitor",
        choices=["monitor", "verify", "status"],
    )
    ap.add_argument("--source", choices=RUN_MODES, help="web, twitter or mixed")
    ap.add_argument(
        "--name", help="Source name stored on each record (required for monitor)"
    )
    ap.add_argument(
        "--url", help="Comma-separated target URLs (required for monitor)"
    )
    ap.add_argument(
        "--selector",
        default=None,
        help="CSS selector for web targets (default: per-domain table)",
    )
    ap.add_argument(
        "--store",
        default=None,
        help="News store JSON path (default: NEWS_JSON_PATH or src/data/news.json)",
    )
    ap.add_argument(
        "--archive-store",
        default=os.getenv("NEWS_ARCHIVE_JSON_PATH"),
        help="Archive store to verify alongside the news store",
    )
    ap.add_argument(
        "--dry-run",
        action="store_true",
        help="Scrape and merge but do not write the store",
    )
    return ap


def parse_args(argv=None):
    ap = build_parser()
    args = ap.parse_args(argv)
    if args.command == "monitor":
        # Fail before any network activity
        if not args.source:
            ap.error('--source must be "web", "twitter", or "mixed"')
        if not args.name or not args.name.strip():
            ap.error("--name is required")
        if not split_urls(args.url):
            ap.error("--url is required (comma-separated)")
    return args


def main(argv=None) -> int:
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))
    args = parse_args(argv)
    settings = Settings.from_env().with_overrides(
        store_path=args.store, dry_run=True if args.dry_run else None
    )

    commands = {
        "monitor": cmd_monitor,
        "verify": cmd_verify,
        "status": cmd_status,
    }
    try:
        return commands[args.command](args, settings)
    except MonitorError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
