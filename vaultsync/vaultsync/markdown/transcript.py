"""Transcript formatting: speaker-grouped markdown."""

from __future__ import annotations

from collections.abc import Sequence

from ..models import ArtifactKind, MetadataRecord, TranscriptEntry
from .metadata import render_metadata
from .parser import to_heading

TRANSCRIPT_HEADING_PREFIX = "Transcript for:"


def format_transcript_body(entries: Sequence[TranscriptEntry], heading_level: int = 2) -> str:
    """Group consecutive entries by speaker into `## Speaker (start)` blocks."""
    blocks: list[str] = []
    speaker: str | None = None
    start = ""
    texts: list[str] = []

    for entry in entries:
        if speaker is not None and entry.speaker == speaker:
            texts.append(entry.text)
            continue
        if speaker is not None:
            blocks.append(_block(speaker, start, texts, heading_level))
        speaker, start, texts = entry.speaker, entry.start_timestamp, [entry.text]

    if speaker is not None:
        blocks.append(_block(speaker, start, texts, heading_level))
    return "".join(blocks)


def _block(speaker: str, start: str, texts: list[str], level: int) -> str:
    return f"{to_heading(f'{speaker} ({start})', level)}\n\n{' '.join(texts)}\n\n"


def format_transcript_document(
    entries: Sequence[TranscriptEntry],
    title: str,
    identity: str,
    created: str | None = None,
    updated: str | None = None,
    attendees: Sequence[str] = (),
    backlink_path: str | None = None,
) -> str:
    """Standalone transcript file: metadata, `# Transcript for:` heading, body."""
    record = MetadataRecord(
        identity=identity,
        title=title,
        kind=ArtifactKind.TRANSCRIPT,
        created=created,
        updated=updated,
        attendees=tuple(attendees),
        backlink=backlink_path,
    )
    heading = to_heading(f"{TRANSCRIPT_HEADING_PREFIX} {title}", 1)
    return f"{render_metadata(record)}\n{heading}\n\n{format_transcript_body(entries)}"
