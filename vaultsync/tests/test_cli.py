from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from conftest import content_tree

from vaultsync.cli import cli
from vaultsync.sync_log import read_sync_log


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _export(tmp_path: Path) -> Path:
    path = tmp_path / "export.json"
    docs = [
        {
            "id": "d1",
            "title": "Standup",
            "created_at": "2024-01-15T09:00:00Z",
            "updated_at": "2024-01-15T10:00:00Z",
            "last_viewed_panel": {"content": content_tree("Roadmap.")},
        }
    ]
    path.write_text(json.dumps({"docs": docs}), encoding="utf-8")
    return path


def _vault(tmp_path: Path) -> Path:
    vault = tmp_path / "vault"
    _write(
        vault / "vaultsync.toml",
        """
[sync]
days_back = 0
timezone = "UTC"

[notes]
save_as_individual_files = true
""",
    )
    return vault


def test_sync_writes_note_and_logs_pass(tmp_path: Path) -> None:
    vault = _vault(tmp_path)
    result = CliRunner().invoke(cli, ["--store", str(vault), "sync", str(_export(tmp_path))])

    assert result.exit_code == 0, result.output
    assert (vault / "Meetings" / "Standup.md").exists()
    entries = read_sync_log(vault)
    assert entries[-1].operation == "sync"
    assert entries[-1].counts["created"] == 1


def test_second_sync_reports_unchanged(tmp_path: Path) -> None:
    vault = _vault(tmp_path)
    export = _export(tmp_path)
    runner = CliRunner()
    runner.invoke(cli, ["--store", str(vault), "sync", str(export)])
    result = runner.invoke(cli, ["--store", str(vault), "sync", str(export)])

    assert result.exit_code == 0
    assert read_sync_log(vault)[-1].counts["unchanged"] == 1
    assert read_sync_log(vault)[-1].counts["created"] == 0


def test_sync_migrates_legacy_files_first(tmp_path: Path) -> None:
    vault = _vault(tmp_path)
    _write(vault / "Old.md", "---\nsource_id: zzz-transcript\n---\n\n# Transcript for: Old\n")
    result = CliRunner().invoke(cli, ["--store", str(vault), "sync", str(_export(tmp_path))])

    assert result.exit_code == 0
    assert "kind: transcript" in (vault / "Old.md").read_text(encoding="utf-8")


def test_empty_export_fails_cleanly(tmp_path: Path) -> None:
    vault = _vault(tmp_path)
    export = tmp_path / "empty.json"
    export.write_text('{"docs": []}', encoding="utf-8")
    result = CliRunner().invoke(cli, ["--store", str(vault), "sync", str(export)])

    assert result.exit_code == 1
    assert not (vault / "Meetings").exists()


def test_invalid_config_is_reported(tmp_path: Path) -> None:
    vault = tmp_path / "vault"
    _write(vault / "vaultsync.toml", '[notes]\nfilename_pattern = "{nope}"\n')
    result = CliRunner().invoke(cli, ["--store", str(vault), "sync", str(_export(tmp_path))])

    assert result.exit_code != 0
    assert "notes.filename_pattern" in result.output


def test_migrate_command(tmp_path: Path) -> None:
    vault = tmp_path / "vault"
    _write(vault / "a.md", "---\nsource_id: a\n---\nbody\n")
    result = CliRunner().invoke(cli, ["--store", str(vault), "migrate"])

    assert result.exit_code == 0
    assert (vault / "a.md").read_text(encoding="utf-8").startswith("---\nsource_id: a\nkind: note\n")


def test_validate_pattern_command() -> None:
    runner = CliRunner()
    ok = runner.invoke(cli, ["validate-pattern", "{date} {title}"])
    bad = runner.invoke(cli, ["validate-pattern", "{author}"])
    sub = runner.invoke(cli, ["validate-pattern", "--subfolder", "{title}"])

    assert ok.exit_code == 0
    assert "2024-01-15 Weekly Standup" in ok.output
    assert bad.exit_code == 1
    assert "{author}" in bad.output
    assert sub.exit_code == 1


def test_log_command(tmp_path: Path) -> None:
    vault = _vault(tmp_path)
    runner = CliRunner()
    empty = runner.invoke(cli, ["--store", str(vault), "log"])
    assert "No sync passes recorded" in empty.output

    runner.invoke(cli, ["--store", str(vault), "sync", str(_export(tmp_path))])
    result = runner.invoke(cli, ["--store", str(vault), "log", "--last", "1"])
    assert result.exit_code == 0
    assert "sync" in result.output
    assert "1 created" in result.output
