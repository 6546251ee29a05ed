import os
from typing import Optional

from sqlalchemy import create_engine, text as sql_text
from sqlalchemy.engine import Engine, make_url

# The run ledger is optional; the news store itself is a JSON file.
_DB_URL_ALIASES = (
    "SCRAPER_RUNS_DB_URL",
    "DATABASE_URL",
)


def _resolve_database_url() -> Optional[str]:
    for key in _DB_URL_ALIASES:
        value = os.getenv(key)
        if value:
            return value
    return None


def get_runs_engine(db_url: Optional[str] = None) -> Optional[Engine]:
    db_url = db_url or _resolve_database_url()
    if not db_url:
        return None

    url = make_url(db_url)
    # Normalize to psycopg driver for SQLAlchemy (safe even if already present)
    if url.drivername == "postgresql":
        url = url.set(drivername="postgresql+psycopg")

    return create_engine(url, pool_pre_ping=True, future=True)


def check_db_connectivity(engine: Engine) -> None:
    with engine.begin() as conn:
        conn.execute(sql_text("SELECT 1"))
