"""Data models for synced documents and the artifacts built from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Any


class ArtifactKind(str, Enum):
    """Artifact category; governs metadata and body shape."""

    NOTE = "note"
    TRANSCRIPT = "transcript"
    COMBINED = "combined"
    DAY_FRAGMENT = "day-fragment"


@dataclass
class TranscriptEntry:
    """One utterance from a meeting transcript."""

    document_id: str
    start_timestamp: str
    text: str
    source: str
    id: str = ""
    is_final: bool = True
    end_timestamp: str = ""

    @property
    def speaker(self) -> str:
        return "You" if self.source == "microphone" else "Guest"

    @classmethod
    def from_dict(cls, data: dict) -> "TranscriptEntry":
        return cls(
            document_id=str(data.get("document_id", "")),
            start_timestamp=str(data.get("start_timestamp", "")),
            text=str(data.get("text", "")),
            source=str(data.get("source", "")),
            id=str(data.get("id", "")),
            is_final=bool(data.get("is_final", True)),
            end_timestamp=str(data.get("end_timestamp", "")),
        )


@dataclass
class SourceDocument:
    """A document as supplied by the upstream source for one pass."""

    id: str
    title: str | None = None
    created_at: str | None = None  # ISO-8601, as received
    updated_at: str | None = None
    content: Any = None  # content tree; {"type": "doc", "content": [...]}
    private_notes: str | None = None
    attendees: list[str] = field(default_factory=list)
    folder_path: str | None = None  # grouping hint, "/"-separated
    transcript: list[TranscriptEntry] | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "SourceDocument":
        """Build a document from a raw API payload."""
        panel = data.get("last_viewed_panel") or {}
        content = panel.get("content") if isinstance(panel, dict) else None
        if content is None:
            content = data.get("content")

        attendees = data.get("attendees")
        if not isinstance(attendees, list):
            attendees = []
            people = data.get("people") or {}
            for person in people.get("attendees") or []:
                if not isinstance(person, dict):
                    continue
                attendees.append(person.get("name") or person.get("email") or "Unknown")

        folder_path = None
        for key in ("folder_path", "folder", "collection", "workspace"):
            if data.get(key):
                folder_path = str(data[key])
                break

        transcript = data.get("transcript")
        entries = None
        if isinstance(transcript, list):
            entries = [TranscriptEntry.from_dict(e) for e in transcript if isinstance(e, dict)]

        return cls(
            id=str(data["id"]),
            title=data.get("title") or None,
            created_at=data.get("created_at") or None,
            updated_at=data.get("updated_at") or None,
            content=content,
            private_notes=data.get("notes_markdown") or data.get("private_notes") or None,
            attendees=[str(a) for a in attendees],
            folder_path=folder_path,
            transcript=entries,
        )


@dataclass(frozen=True)
class Artifact:
    """Computed file content for one document; never persisted on its own."""

    kind: ArtifactKind
    filename: str
    content: str


@dataclass(frozen=True)
class MetadataRecord:
    """Ordered metadata fields written at the top of every synced file."""

    identity: str
    title: str
    kind: ArtifactKind
    created: str | None = None
    updated: str | None = None
    attendees: tuple[str, ...] = ()
    backlink: str | None = None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string (or a datetime read back from YAML).

    Naive values are taken as UTC. Returns None for anything unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def effective_date(doc: SourceDocument, now: datetime, tz: tzinfo | None = None) -> datetime:
    """The single date used for every date-dependent computation on `doc`.

    created_at, else updated_at, else `now`; expressed in `tz` (system local
    time when None).
    """
    dt = parse_timestamp(doc.created_at) or parse_timestamp(doc.updated_at) or now
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)
