"""JSON news store: read once at the start of a run, replaced at most once at the end."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from .errors import StoreError
from .logging_setup import LOGGER_NAME
from .types import RECORD_FIELDS, NewsRecord

logger = logging.getLogger(LOGGER_NAME)


def read_raw(path: str | Path) -> list:
    """Parsed JSON array from path; missing or blank file is an empty store."""
    path = Path(path)
    if not path.exists():
        return []
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise StoreError(f"cannot read store {path}: {exc}") from exc
    if not content.strip():
        return []
    try:
        data = json.loads(content)
    except ValueError as exc:
        raise StoreError(f"store {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise StoreError(f"store {path} must hold a JSON array")
    return data


def load_records(path: str | Path) -> list[NewsRecord]:
    records: list[NewsRecord] = []
    for index, item in enumerate(read_raw(path)):
        if not isinstance(item, dict):
            raise StoreError(f"store {path} index {index}: record is not an object")
        missing = [k for k in RECORD_FIELDS if not isinstance(item.get(k), str)]
        if missing:
            raise StoreError(
                f"store {path} index {index}: missing fields {', '.join(missing)}"
            )
        records.append(NewsRecord.from_dict(item))
    logger.info("Loaded %s records from %s", len(records), path)
    return records


def save_records(path: str | Path, records: list[NewsRecord]) -> None:
    """Replace the store file with records via a same-directory temp file."""
    path = Path(path)
    payload = json.dumps([r.to_dict() for r in records], indent=2, ensure_ascii=False)
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as fh:
            tmp_name = fh.name
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise StoreError(f"cannot write store {path}: {exc}") from exc
    logger.info("Wrote %s records to %s", len(records), path)
