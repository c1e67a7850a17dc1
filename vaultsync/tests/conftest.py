"""Pytest configuration and fixtures."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from vaultsync.config import DailyNoteSettings, NoteSettings, SyncConfig, TranscriptSettings
from vaultsync.models import SourceDocument, TranscriptEntry
from vaultsync.store.vault import FileStore

FIXED_NOW = datetime(2024, 1, 20, 12, 0, tzinfo=timezone.utc)


def content_tree(*paragraphs: str) -> dict[str, Any]:
    """A minimal doc-rooted content tree with one paragraph per argument."""
    return {
        "type": "doc",
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": text}]} for text in paragraphs
        ],
    }


def make_doc(doc_id: str = "d1", **kwargs: Any) -> SourceDocument:
    kwargs.setdefault("title", "Standup")
    kwargs.setdefault("created_at", "2024-01-15T09:00:00Z")
    kwargs.setdefault("updated_at", "2024-01-15T10:00:00Z")
    kwargs.setdefault("content", content_tree("Discussed the roadmap."))
    return SourceDocument(id=doc_id, **kwargs)


def make_transcript(doc_id: str = "d1") -> list[TranscriptEntry]:
    return [
        TranscriptEntry(doc_id, "09:00:01", "Morning all.", "microphone"),
        TranscriptEntry(doc_id, "09:00:05", "Let's start.", "microphone"),
        TranscriptEntry(doc_id, "09:00:09", "Sounds good.", "system"),
    ]


def individual_config(**notes: Any) -> SyncConfig:
    """Individual note files under Meetings/, UTC."""
    settings = {"save_as_individual_files": True, **notes}
    return SyncConfig(notes=NoteSettings(**settings), timezone="UTC", days_back=0)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def store(tmp_path: Path) -> FileStore:
    root = tmp_path / "vault"
    root.mkdir()
    return FileStore(root)


@pytest.fixture
def config() -> SyncConfig:
    return individual_config()


@pytest.fixture
def daily_config() -> SyncConfig:
    """Notes merged into daily notes under Journal/YYYY-MM-DD.md."""
    return SyncConfig(
        notes=NoteSettings(save_as_individual_files=False),
        transcripts=TranscriptSettings(enabled=False),
        daily_notes=DailyNoteSettings(folder="Journal", format="%Y-%m-%d"),
        timezone="UTC",
        days_back=0,
    )
