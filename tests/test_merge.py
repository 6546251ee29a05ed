from datetime import datetime, timezone
from itertools import count

from newsmon.merge import DedupIndex, merge, normalize_title
from newsmon.types import NewsRecord, ScrapeCandidate

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _ids():
    counter = count(1)
    return lambda: f"id-{next(counter)}"


def _cand(title, link, page="https://a.com/"):
    return ScrapeCandidate(title=title, link=link, source_url=page)


def _record(title, url, rid="old-1"):
    return NewsRecord(id=rid, source="Acme", title=title, date="2026-01-01T00:00:00Z", url=url)


def test_normalize_title_collapses_whitespace():
    assert normalize_title("  Big\n\n  News\tToday ") == "Big News Today"
    assert normalize_title(None) == ""


def test_empty_store_admits_in_order():
    result = merge(
        [],
        [_cand("First", "https://a.com/1"), _cand("Second", "https://a.com/2")],
        "Acme",
        now=NOW,
        id_factory=_ids(),
    )
    assert [r.title for r in result.admitted] == ["First", "Second"]
    assert result.admitted[0] == NewsRecord(
        id="id-1",
        source="Acme",
        title="First",
        date="2026-03-01T12:00:00Z",
        url="https://a.com/1",
    )
    assert result.rejected == 0
    assert result.changed


def test_same_url_different_title_is_rejected():
    existing = [_record("Old title", "https://a.com/x")]
    result = merge(existing, [_cand("Brand new title", "https://a.com/x")], "Acme")
    assert result.admitted == []
    assert result.rejected == 1
    assert not result.changed
    assert result.snapshot(existing) == existing


def test_title_match_is_case_insensitive_and_whitespace_blind():
    existing = [_record("Launch Day", "https://a.com/launch")]
    result = merge(existing, [_cand("  launch   DAY ", "https://a.com/other")], "Acme")
    assert result.rejected == 1


def test_same_run_duplicates_admit_only_first():
    candidates = [
        _cand("Shared Story", "https://a.com/s", page="https://a.com/"),
        _cand("shared story", "https://b.com/s", page="https://b.com/"),
        _cand("Other", "https://a.com/s"),
    ]
    result = merge([], candidates, "Acme", id_factory=_ids())
    assert [r.url for r in result.admitted] == ["https://a.com/s"]
    assert result.rejected == 2


def test_rejected_candidate_does_not_block_later_ones():
    existing = [_record("Known", "https://a.com/known")]
    candidates = [
        _cand("Known", "https://a.com/fresh"),
        _cand("Fresh", "https://a.com/fresh"),
    ]
    result = merge(existing, candidates, "Acme")
    assert [r.title for r in result.admitted] == ["Fresh"]


def test_snapshot_appends_after_existing():
    existing = [_record("B", "https://a.com/b", "1"), _record("A", "https://a.com/a", "2")]
    result = merge(existing, [_cand("C", "https://a.com/c")], "Acme")
    assert [r.title for r in result.snapshot(existing)] == ["B", "A", "C"]


def test_result_never_violates_uniqueness():
    existing = [_record("Alpha", "https://a.com/1")]
    candidates = [
        _cand("ALPHA", "https://a.com/9"),
        _cand("Beta", "https://a.com/1"),
        _cand("Gamma", "https://a.com/3"),
        _cand("gamma", "https://a.com/4"),
        _cand("Delta", "https://a.com/3"),
        _cand("Epsilon", "https://a.com/5"),
    ]
    snapshot = merge(existing, candidates, "Acme").snapshot(existing)
    titles = [r.title.lower() for r in snapshot]
    urls = [r.url for r in snapshot]
    assert len(titles) == len(set(titles))
    assert len(urls) == len(set(urls))
    assert [r.title for r in snapshot] == ["Alpha", "Gamma", "Epsilon"]


def test_shared_index_accumulates_across_calls():
    index = DedupIndex()
    merge([], [_cand("One", "https://a.com/1")], "Acme", index=index)
    second = merge([], [_cand("one", "https://a.com/2")], "Acme", index=index)
    assert second.rejected == 1


def test_blank_titles_are_ignored():
    result = merge([], [_cand(" \n ", "https://a.com/1")], "Acme")
    assert result.admitted == []
    assert result.rejected == 0
