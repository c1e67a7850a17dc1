from __future__ import annotations

from datetime import date, timezone

from conftest import FIXED_NOW, individual_config, make_doc

from vaultsync.config import DailyNoteSettings, NoteSettings, SyncConfig, TranscriptSettings
from vaultsync.models import ArtifactKind, effective_date
from vaultsync.paths.resolver import PathResolver, join_path, normalize_path, strip_extension


def _resolver(config: SyncConfig) -> PathResolver:
    return PathResolver(config, FIXED_NOW)


def test_standup_filename() -> None:
    resolver = _resolver(individual_config())
    assert resolver.resolve_filename(make_doc(), "{title}") == "Standup.md"


def test_custom_base_folder_with_subfolder() -> None:
    resolver = _resolver(
        individual_config(custom_base_folder="Meetings/", subfolder_pattern="year-month")
    )
    assert resolver.resolve_path(make_doc(), ArtifactKind.NOTE) == "Meetings/2024/01/Standup.md"


def test_daily_notes_policy_uses_folder_segments_of_format() -> None:
    config = SyncConfig(
        notes=NoteSettings(save_as_individual_files=True, base_folder_type="daily-notes"),
        daily_notes=DailyNoteSettings(folder="Journal", format="%Y/%m/%Y-%m-%d"),
        timezone="UTC",
    )
    resolver = _resolver(config)
    assert resolver.resolve_folder(make_doc()) == "Journal/2024/01"
    assert resolver.daily_note_path(date(2024, 1, 15)) == "Journal/2024/01/2024-01-15.md"


def test_daily_notes_policy_flat_format() -> None:
    config = SyncConfig(
        notes=NoteSettings(save_as_individual_files=True, base_folder_type="daily-notes"),
        daily_notes=DailyNoteSettings(folder="Journal"),
        timezone="UTC",
    )
    assert _resolver(config).resolve_folder(make_doc()) == "Journal"


def test_source_hierarchy_sanitizes_hint() -> None:
    resolver = _resolver(
        individual_config(base_folder_type="source-hierarchy", custom_base_folder="Granola")
    )
    doc = make_doc(folder_path="/Clients\\Acme: Inc/Weekly/")
    assert resolver.resolve_folder(doc) == "Granola/Clients/Acme Inc/Weekly"


def test_source_hierarchy_without_hint_falls_back_to_base() -> None:
    resolver = _resolver(
        individual_config(base_folder_type="source-hierarchy", custom_base_folder="Granola")
    )
    assert resolver.resolve_folder(make_doc()) == "Granola"


def test_transcripts_custom_location() -> None:
    config = SyncConfig(
        notes=NoteSettings(save_as_individual_files=True),
        transcripts=TranscriptSettings(
            enabled=True, custom_base_folder="Transcripts", subfolder_pattern="day"
        ),
        timezone="UTC",
    )
    path = _resolver(config).resolve_path(make_doc(), ArtifactKind.TRANSCRIPT)
    assert path == "Transcripts/2024-01-15/Standup-transcript.md"


def test_transcripts_same_location_follow_notes() -> None:
    config = SyncConfig(
        notes=NoteSettings(save_as_individual_files=True, custom_base_folder="Notes"),
        transcripts=TranscriptSettings(enabled=True, handling="same-location"),
        timezone="UTC",
    )
    path = _resolver(config).resolve_path(make_doc(), ArtifactKind.TRANSCRIPT)
    assert path == "Notes/Standup-transcript.md"


def test_missing_title_uses_stable_fallback() -> None:
    resolver = _resolver(individual_config())
    doc = make_doc(title=None)
    first = resolver.resolve_filename(doc, "{title}")
    assert first == "Untitled Note at 2024-01-15 09-00.md"
    assert PathResolver(individual_config(), FIXED_NOW).resolve_filename(doc, "{title}") == first


def test_title_of_only_invalid_characters_falls_back() -> None:
    resolver = _resolver(individual_config())
    assert resolver.resolve_filename(make_doc(title="???"), "{title}") == (
        "Untitled Note at 2024-01-15 09-00.md"
    )


def test_effective_date_chain() -> None:
    created = make_doc()
    updated_only = make_doc(created_at=None)
    neither = make_doc(created_at=None, updated_at=None)
    assert effective_date(created, FIXED_NOW, timezone.utc).hour == 9
    assert effective_date(updated_only, FIXED_NOW, timezone.utc).hour == 10
    assert effective_date(neither, FIXED_NOW, timezone.utc) == FIXED_NOW


def test_timezone_shifts_calendar_day() -> None:
    config = SyncConfig(timezone="America/Los_Angeles")
    doc = make_doc(created_at="2024-01-15T03:00:00Z")
    assert PathResolver(config, FIXED_NOW).note_date(doc).date() == date(2024, 1, 14)


def test_path_helpers() -> None:
    assert normalize_path("/a//b\\c/./d.md") == "a/b/c/d.md"
    assert join_path("Meetings", "", "2024/01", "x.md") == "Meetings/2024/01/x.md"
    assert strip_extension("Meetings/x.md") == "Meetings/x"
    assert strip_extension("Meetings/x.txt") == "Meetings/x.txt"
