"""Artifact construction: metadata block plus body for each artifact shape."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from ..config import SyncConfig
from ..errors import ContentMissing
from ..markdown.metadata import render_metadata
from ..markdown.parser import MAX_HEADING_LEVEL, nest_headings, to_heading
from ..markdown.prosemirror import convert_prosemirror_to_markdown, is_content_tree
from ..markdown.transcript import format_transcript_body, format_transcript_document
from ..models import Artifact, ArtifactKind, MetadataRecord, SourceDocument, TranscriptEntry
from ..paths.resolver import PathResolver

logger = logging.getLogger(__name__)

UNKNOWN_ATTENDEE = "Unknown"


@dataclass(frozen=True)
class DayNote:
    """A document's contribution to a day section."""

    title: str
    doc_id: str
    created_at: str | None
    updated_at: str | None
    markdown: str


class DocumentProcessor:
    """Builds file content for notes, transcripts, combined files and day fragments."""

    def __init__(
        self,
        config: SyncConfig,
        paths: PathResolver,
        convert: Callable[[Any], str] = convert_prosemirror_to_markdown,
    ):
        self.config = config
        self.paths = paths
        self.convert = convert

    def _markdown(self, doc: SourceDocument) -> str:
        if doc.content is None:
            raise ContentMissing(doc.id)
        if not is_content_tree(doc.content):
            raise ContentMissing(doc.id, "content that is not a document tree")
        return self.convert(doc.content)

    def attendees_for(self, doc: SourceDocument) -> tuple[str, ...]:
        seen: list[str] = []
        for name in doc.attendees:
            name = name.strip()
            if not name or name == UNKNOWN_ATTENDEE or name in seen:
                continue
            seen.append(name)
        return tuple(seen)

    def links_to_transcript(self) -> bool:
        transcripts = self.config.transcripts
        return transcripts.enabled and transcripts.link_from_note and not self.config.combined_transcripts

    def build_metadata(
        self, doc: SourceDocument, kind: ArtifactKind, backlink: str | None = None
    ) -> MetadataRecord:
        if kind != ArtifactKind.NOTE or not self.links_to_transcript():
            backlink = None
        return MetadataRecord(
            identity=doc.id,
            title=self.paths.title_for(doc),
            kind=kind,
            created=doc.created_at,
            updated=doc.updated_at,
            attendees=self.attendees_for(doc),
            backlink=backlink,
        )

    def build_body(self, doc: SourceDocument, heading_level: int = 2) -> str:
        """Converted body, preceded by private notes when those are enabled.

        Raises ContentMissing when the document has no content tree.
        """
        markdown = self._markdown(doc)
        private = doc.private_notes or ""
        if not self.config.notes.include_private_notes or not private.strip():
            return markdown
        return (
            f"{to_heading('Private Notes', heading_level)}\n\n"
            f"{private.rstrip()}\n\n"
            f"{to_heading('Enhanced Notes', heading_level)}\n\n"
            f"{markdown}"
        )

    def prepare_note(self, doc: SourceDocument, transcript_path: str | None = None) -> Artifact:
        body = self.build_body(doc)
        record = self.build_metadata(doc, ArtifactKind.NOTE, backlink=transcript_path)
        return Artifact(
            kind=ArtifactKind.NOTE,
            filename=self.paths.filename_for(doc, ArtifactKind.NOTE),
            content=f"{render_metadata(record)}\n{body}",
        )

    def prepare_transcript(self, doc: SourceDocument, entries: Sequence[TranscriptEntry]) -> Artifact:
        self._markdown(doc)
        record = self.build_metadata(doc, ArtifactKind.TRANSCRIPT)
        content = format_transcript_document(
            entries,
            title=record.title,
            identity=record.identity,
            created=record.created,
            updated=record.updated,
            attendees=record.attendees,
        )
        return Artifact(
            kind=ArtifactKind.TRANSCRIPT,
            filename=self.paths.filename_for(doc, ArtifactKind.TRANSCRIPT),
            content=content,
        )

    def prepare_combined(self, doc: SourceDocument, entries: Sequence[TranscriptEntry]) -> Artifact:
        """Note and transcript in one file; never carries a backlink."""
        body = self.build_body(doc)
        record = self.build_metadata(doc, ArtifactKind.COMBINED)
        content = f"{render_metadata(record)}\n{body}"
        if entries:
            content += f"\n{to_heading('Transcript', 2)}\n\n{format_transcript_body(entries, heading_level=3)}"
        return Artifact(
            kind=ArtifactKind.COMBINED,
            filename=self.paths.filename_for(doc, ArtifactKind.NOTE),
            content=content,
        )

    def extract_for_day_fragment(self, doc: SourceDocument, section_level: int = 1) -> DayNote:
        """Note data for a day section whose heading is at `section_level`."""
        body_level = min(section_level + 2, MAX_HEADING_LEVEL)
        return DayNote(
            title=self.paths.title_for(doc),
            doc_id=doc.id,
            created_at=doc.created_at,
            updated_at=doc.updated_at,
            markdown=nest_headings(self.build_body(doc, heading_level=body_level), body_level),
        )
