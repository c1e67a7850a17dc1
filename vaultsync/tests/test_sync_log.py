from __future__ import annotations

from pathlib import Path

from vaultsync.sync_log import format_sync_entry, get_sync_log_path, log_pass, read_sync_log


def _three_passes(root: Path) -> None:
    for operation in ("migrate", "sync", "full-sync"):
        log_pass(root, operation, counts={"created": 1})


def test_passes_are_appended_oldest_first(tmp_path: Path) -> None:
    _three_passes(tmp_path)
    assert [e.operation for e in read_sync_log(tmp_path)] == ["migrate", "sync", "full-sync"]
    assert [e.operation for e in read_sync_log(tmp_path, last_n=2)] == ["sync", "full-sync"]


def test_last_zero_returns_nothing(tmp_path: Path) -> None:
    _three_passes(tmp_path)
    assert read_sync_log(tmp_path, last_n=0) == []
    assert read_sync_log(tmp_path, last_n=-1) == []


def test_missing_log_is_empty(tmp_path: Path) -> None:
    assert read_sync_log(tmp_path) == []


def test_malformed_lines_are_skipped(tmp_path: Path) -> None:
    log_pass(tmp_path, "sync")
    with get_sync_log_path(tmp_path).open("a", encoding="utf-8") as f:
        f.write("{not json\n")
        f.write('{"operation": "no timestamp"}\n')
    log_pass(tmp_path, "migrate")

    assert [e.operation for e in read_sync_log(tmp_path)] == ["sync", "migrate"]


def test_format_shows_nonzero_counts_and_failures(tmp_path: Path) -> None:
    entry = log_pass(
        tmp_path,
        "sync",
        counts={"created": 2, "updated": 0, "failed": 1},
        failures=[("d1", "disk full")],
        metadata={"input": "export.json"},
    )
    text = format_sync_entry(entry)

    assert "2 created, 1 failed" in text
    assert "updated" not in text
    assert "failed: d1: disk full" in text
    assert "input: export.json" in text
