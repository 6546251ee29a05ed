import json

import pytest

import newsmon.monitor as monitor
from newsmon import run
from newsmon.monitor import RunSummary


@pytest.mark.parametrize(
    "argv",
    [
        ["--name", "Acme", "--url", "https://a.com"],
        ["--source", "web", "--url", "https://a.com"],
        ["--source", "web", "--name", "Acme"],
        ["--source", "web", "--name", "Acme", "--url", " , "],
        ["--source", "rss", "--name", "Acme", "--url", "https://a.com"],
    ],
)
def test_missing_or_bad_flags_exit_non_zero(argv):
    with pytest.raises(SystemExit) as exc:
        run.parse_args(argv)
    assert exc.value.code != 0


def test_split_urls():
    assert run.split_urls(" https://a.com , ,https://b.com ") == ["https://a.com", "https://b.com"]


def test_monitor_command_passes_flags(monkeypatch, tmp_path, capsys):
    captured = {}

    def fake_run_monitor(**kwargs):
        captured.update(kwargs)
        return RunSummary(run_id="r1", source_name=kwargs["name"])

    monkeypatch.delenv("SCRAPER_RUNS_DB_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(monitor, "run_monitor", fake_run_monitor)
    store = tmp_path / "news.json"

    code = run.main(
        [
            "--source", "mixed",
            "--name", "Acme",
            "--url", "https://a.com,https://x.com/acme",
            "--selector", "h2",
            "--store", str(store),
            "--dry-run",
        ]
    )

    assert code == 0
    assert captured["mode"] == "mixed"
    assert captured["urls"] == ["https://a.com", "https://x.com/acme"]
    assert captured["selector"] == "h2"
    assert captured["settings"].store_path == str(store)
    assert captured["settings"].dry_run is True
    assert "Summary: No new items added" in capsys.readouterr().out


def test_monitor_store_failure_exits_one(monkeypatch, tmp_path):
    store = tmp_path / "news.json"
    store.write_text("[oops", encoding="utf-8")
    monkeypatch.delenv("SCRAPER_RUNS_DB_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)

    code = run.main(
        ["--source", "web", "--name", "Acme", "--url", "https://a.com", "--store", str(store)]
    )
    assert code == 1


def test_verify_command(tmp_path, capsys):
    store = tmp_path / "news.json"
    store.write_text(
        json.dumps(
            [{"id": "1", "source": "A", "title": "T", "date": "2026-01-01", "url": "https://a.com"}]
        ),
        encoding="utf-8",
    )
    archive = tmp_path / "archive.json"
    archive.write_text("[]", encoding="utf-8")

    assert run.main(["verify", "--store", str(store), "--archive-store", str(archive)]) == 0
    assert "OK: 1 records" in capsys.readouterr().out

    assert run.main(["verify", "--store", str(tmp_path / "missing.json")]) == 1


def test_status_requires_database(monkeypatch):
    monkeypatch.delenv("SCRAPER_RUNS_DB_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert run.main(["status"]) == 1


def test_non_utf8_store_exits_one(monkeypatch, tmp_path):
    store = tmp_path / "news.json"
    store.write_bytes(b"[\xff\xfe]")
    monkeypatch.delenv("SCRAPER_RUNS_DB_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)

    code = run.main(
        ["--source", "web", "--name", "Acme", "--url", "https://a.com", "--store", str(store)]
    )
    assert code == 1
