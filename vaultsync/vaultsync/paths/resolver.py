"""Folder and filename computation for notes, transcripts and daily notes."""

from __future__ import annotations

import posixpath
import re
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from ..models import ArtifactKind, SourceDocument, effective_date
from .patterns import (
    pattern_variables,
    resolve_pattern,
    resolve_subfolder,
    sanitize_filename,
    title_or_default,
)

if TYPE_CHECKING:
    from ..config import SyncConfig


def normalize_path(path: str) -> str:
    """Vault-relative POSIX path: forward slashes, no empty or leading segments."""
    parts = [p for p in re.split(r"[/\\]+", path.strip()) if p and p != "."]
    return "/".join(parts)


def join_path(*parts: str) -> str:
    return normalize_path("/".join(p for p in parts if p))


class PathResolver:
    """Resolves where each artifact lives inside the store.

    Three mutually exclusive base-folder policies, picked by
    `notes.base_folder_type`:

    - ``daily-notes``: folder part of the daily-note path for the date
    - ``custom``: a fixed base folder plus an optional date subfolder
    - ``source-hierarchy``: the document's own folder hint under the base folder
    """

    def __init__(self, config: SyncConfig, now: datetime | None = None):
        self.config = config
        self.tz = config.tz
        self.now = now or datetime.now(timezone.utc)

    def note_date(self, doc: SourceDocument) -> datetime:
        return effective_date(doc, self.now, self.tz)

    def title_for(self, doc: SourceDocument) -> str:
        return title_or_default(doc.title, self.note_date(doc))

    # -- folders ---------------------------------------------------------

    def daily_note_path(self, day: date) -> str:
        """Path of the daily note for `day`, including the `.md` extension."""
        daily = self.config.daily_notes
        formatted = day.strftime(daily.format or "%Y-%m-%d")
        return join_path(daily.folder, formatted) + ".md"

    def daily_note_folder(self, day: date) -> str:
        """Every segment of the formatted daily-note path except the last."""
        daily = self.config.daily_notes
        formatted = day.strftime(daily.format or "%Y-%m-%d")
        folder_parts = formatted.split("/")[:-1]
        return join_path(daily.folder, *folder_parts)

    def source_hierarchy_folder(self, doc: SourceDocument, base_folder: str) -> str:
        """Base folder joined with the document's sanitized grouping hint."""
        if not doc.folder_path:
            return normalize_path(base_folder)
        hint = doc.folder_path.replace("\\", "/").strip("/")
        segments = [sanitize_filename(s) for s in hint.split("/")]
        return join_path(base_folder, *[s for s in segments if s])

    def resolve_folder(self, doc: SourceDocument, kind: ArtifactKind = ArtifactKind.NOTE) -> str:
        """Folder for a note/combined file, or for a transcript file."""
        note_date = self.note_date(doc)
        notes = self.config.notes
        transcripts = self.config.transcripts

        if kind == ArtifactKind.TRANSCRIPT and transcripts.handling == "custom-location":
            subfolder = resolve_subfolder(
                transcripts.subfolder_pattern, note_date, transcripts.custom_subfolder_pattern
            )
            return join_path(transcripts.custom_base_folder, subfolder)

        if notes.base_folder_type == "daily-notes":
            return self.daily_note_folder(note_date)
        if notes.base_folder_type == "source-hierarchy":
            return self.source_hierarchy_folder(doc, notes.custom_base_folder)
        subfolder = resolve_subfolder(notes.subfolder_pattern, note_date, notes.custom_subfolder_pattern)
        return join_path(notes.custom_base_folder, subfolder)

    # -- filenames -------------------------------------------------------

    def resolve_filename(self, doc: SourceDocument, pattern: str) -> str:
        """Filename (with `.md`) for `doc` under `pattern`."""
        note_date = self.note_date(doc)
        title = title_or_default(doc.title, note_date)
        stem = resolve_pattern(pattern, pattern_variables(note_date, title))
        if not stem:
            # Title was entirely path-invalid characters.
            fallback = title_or_default(None, note_date)
            stem = resolve_pattern(pattern, pattern_variables(note_date, fallback))
        return f"{stem}.md"

    def filename_for(self, doc: SourceDocument, kind: ArtifactKind) -> str:
        if kind == ArtifactKind.TRANSCRIPT:
            return self.resolve_filename(doc, self.config.transcripts.filename_pattern)
        return self.resolve_filename(doc, self.config.notes.filename_pattern)

    def resolve_path(self, doc: SourceDocument, kind: ArtifactKind) -> str:
        """Full vault-relative path for an individual artifact file."""
        return join_path(self.resolve_folder(doc, kind), self.filename_for(doc, kind))


def strip_extension(path: str) -> str:
    root, ext = posixpath.splitext(path)
    return root if ext == ".md" else path
