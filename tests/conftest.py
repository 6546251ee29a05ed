import os
import sys

import pytest
from sqlalchemy import create_engine

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


@pytest.fixture()
def sqlite_engine():
    return create_engine("sqlite+pysqlite:///:memory:", future=True)


@pytest.fixture()
def settings(tmp_path):
    from newsmon.config import Settings

    return Settings(
        store_path=str(tmp_path / "data" / "news.json"),
        max_retries=3,
        retry_delay_ms=2000,
        target_delay_ms=1000,
    )


@pytest.fixture()
def sleeps():
    """Pass ``sleeps.append`` as the sleep function to record delays."""
    return []
