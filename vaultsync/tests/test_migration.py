from __future__ import annotations

from vaultsync.markdown.sections import SectionEditor
from vaultsync.store.vault import FileStore
from vaultsync.sync.migration import SchemaMigrator, infer_kind, plan_migration, rewrite_block


def _migrator(store: FileStore) -> SchemaMigrator:
    return SchemaMigrator(SectionEditor(store))


def test_legacy_transcript_suffix_is_stripped(store: FileStore) -> None:
    store.write(
        "t.md",
        '---\nsource_id: x-transcript\ntitle: "Standup"\n---\n\n# Transcript for: Standup\n',
    )
    report = _migrator(store).migrate()

    assert report.migrated == ["t.md"]
    assert store.read("t.md") == (
        '---\nsource_id: x\nkind: transcript\ntitle: "Standup"\n---\n\n# Transcript for: Standup\n'
    )


def test_missing_kind_inferred_from_body(store: FileStore) -> None:
    store.write("t.md", "---\nsource_id: a\n---\n\n\n## Transcript for: Call\n")
    store.write("n.md", "---\nsource_id: b\ntitle: x\n---\n\nNotes.\n")
    _migrator(store).migrate()

    assert store.read("t.md").startswith("---\nsource_id: a\nkind: transcript\n---\n")
    assert store.read("n.md").startswith("---\nsource_id: b\nkind: note\ntitle: x\n---\n")


def test_conformant_files_are_not_written(store: FileStore) -> None:
    store.write("ok.md", "---\nsource_id: a\nkind: note\n---\n\nBody\n")
    store.write("plain.md", "No metadata.\n")
    store.write("other.md", "---\ntitle: no identity\n---\n")
    before = {p: (store.root / p).stat().st_mtime_ns for p in store.list_all()}

    report = _migrator(store).migrate()

    assert report.migrated == []
    assert report.scanned == 3
    assert {p: (store.root / p).stat().st_mtime_ns for p in store.list_all()} == before


def test_migration_is_idempotent(store: FileStore) -> None:
    store.write("t.md", "---\nsource_id: x-transcript\n---\nbody\n")
    migrator = _migrator(store)
    migrator.migrate()
    once = store.read("t.md")
    assert migrator.migrate().migrated == []
    assert store.read("t.md") == once


def test_bad_file_does_not_halt_batch(store: FileStore) -> None:
    store.write("a-bad.md", "---\nsource_id: [oops\n---\n")
    store.write("b-legacy.md", "---\nsource_id: y-transcript\n---\n")
    report = _migrator(store).migrate()

    assert [path for path, _ in report.failed] == ["a-bad.md"]
    assert report.migrated == ["b-legacy.md"]


def test_suffixed_identity_with_wrong_kind_gets_transcript_kind() -> None:
    plan = plan_migration({"source_id": "x-transcript", "kind": "note"}, "")
    block = "---\nsource_id: x-transcript\nkind: note\n---\n"
    assert rewrite_block(block, plan) == "---\nsource_id: x\nkind: transcript\n---\n"


def test_infer_kind() -> None:
    assert infer_kind("\n\n# Transcript for: A\n") == "transcript"
    assert infer_kind("Intro\n# Transcript for: A\n") == "note"
    assert infer_kind("") == "note"


def test_crlf_block_keeps_line_endings() -> None:
    plan = plan_migration({"source_id": "a"}, "body")
    assert rewrite_block("---\r\nsource_id: a\r\n---\r\n", plan) == "---\r\nsource_id: a\r\nkind: note\r\n---\r\n"
