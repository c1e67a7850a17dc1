"""
Day aggregation into daily notes.

Documents are grouped by the calendar day of their effective date. Each day's
section is rebuilt from the complete set of that day's documents and replaced
in one edit, so repeated syncs never accumulate duplicate or stale entries.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from ..config import SyncConfig
from ..errors import ContentMissing
from ..markdown.parser import MAX_HEADING_LEVEL, heading_level
from ..markdown.sections import SectionEditor
from ..models import SourceDocument
from ..paths.resolver import PathResolver, strip_extension
from .processor import DayNote, DocumentProcessor

logger = logging.getLogger(__name__)

_LINK_TEXT_REPLACEMENTS = str.maketrans({"|": "-", "[": "(", "]": ")"})


@dataclass(frozen=True)
class NoteLink:
    """A link from a daily note to an individual note file."""

    title: str
    file_path: str
    time: str | None = None  # HH:MM


@dataclass
class DaySectionResult:
    day: date
    path: str
    entries: int
    written: bool = False
    error: str | None = None


def one_line(text: str) -> str:
    return " ".join(text.split())


def link_text(title: str) -> str:
    """Display text that cannot end a `[[target|text]]` link early."""
    return one_line(title).translate(_LINK_TEXT_REPLACEMENTS)


def build_content_fragment(notes: Sequence[DayNote], section_heading: str) -> str:
    """Section text: the heading, then one sub-section per note."""
    section_heading = section_heading.strip()
    if not notes:
        return section_heading

    level = heading_level(section_heading) or 1
    prefix = "#" * min(level + 1, MAX_HEADING_LEVEL)

    content = section_heading
    for note in notes:
        content += f"\n{prefix} {one_line(note.title)}\n"
        content += f"**ID:** {note.doc_id}\n"
        if note.created_at:
            content += f"**Created:** {note.created_at}\n"
        if note.updated_at:
            content += f"**Updated:** {note.updated_at}\n"
        content += f"\n{note.markdown.rstrip()}\n"
    return content.strip() + "\n"


def build_link_fragment(links: Sequence[NoteLink], section_heading: str) -> str:
    """Section text: the heading, then one bullet link per note."""
    section_heading = section_heading.strip()
    if not links:
        return section_heading

    content = section_heading
    for link in links:
        time_prefix = f"{link.time} - " if link.time else ""
        content += f"\n- {time_prefix}[[{strip_extension(link.file_path)}|{link_text(link.title)}]]"
    return content.strip() + "\n"


class DailyNoteBuilder:
    """Merges day fragments into date-keyed daily note files."""

    def __init__(
        self,
        config: SyncConfig,
        paths: PathResolver,
        processor: DocumentProcessor,
        editor: SectionEditor,
    ):
        self.config = config
        self.paths = paths
        self.processor = processor
        self.editor = editor

    def day_of(self, doc: SourceDocument) -> date:
        return self.paths.note_date(doc).date()

    def group_by_day(self, documents: Iterable[SourceDocument], section_level: int = 1) -> dict[date, list[DayNote]]:
        """Day -> notes, in document order. Documents without content are left out."""
        days: dict[date, list[DayNote]] = {}
        for doc in documents:
            try:
                note = self.processor.extract_for_day_fragment(doc, section_level)
            except ContentMissing as e:
                logger.debug("Leaving %s out of its day section: %s", doc.id, e)
                continue
            days.setdefault(self.day_of(doc), []).append(note)
        return days

    def build_links_map(self, notes_with_paths: Iterable[tuple[SourceDocument, str]]) -> dict[date, list[NoteLink]]:
        """Day -> links, sorted by time within each day."""
        links: dict[date, list[NoteLink]] = {}
        for doc, note_path in notes_with_paths:
            note_date = self.paths.note_date(doc)
            link = NoteLink(
                title=self.paths.title_for(doc),
                file_path=note_path,
                time=note_date.strftime("%H:%M"),
            )
            links.setdefault(note_date.date(), []).append(link)
        for day_links in links.values():
            day_links.sort(key=lambda link: link.time or "")
        return links

    def get_or_create_daily_note(self, day: date) -> str:
        path = self.paths.daily_note_path(day)
        store = self.editor.store
        if self.editor.buffers.try_get_live_handle(path) is None and not store.exists(path):
            store.write(path, "")
            logger.info("Created daily note %s", path)
        return path

    def _merge(self, day: date, heading: str, content: str, entries: int, force: bool) -> DaySectionResult:
        path = self.paths.daily_note_path(day)
        result = DaySectionResult(day=day, path=path, entries=entries)
        try:
            path = self.get_or_create_daily_note(day)
            result.written = self.editor.replace_section(path, heading, content, force_overwrite=force)
        except OSError as e:
            logger.error("Error updating section %r in %s: %s", heading, path, e)
            result.error = str(e)
        return result

    def sync_day_sections(
        self, documents: Sequence[SourceDocument], force: bool = False
    ) -> list[DaySectionResult]:
        """Write each day's note section (content mode)."""
        heading = self.config.notes.daily_note_section_heading.strip()
        level = heading_level(heading) or 1
        results = []
        for day, notes in self.group_by_day(documents, level).items():
            content = build_content_fragment(notes, heading)
            results.append(self._merge(day, heading, content, len(notes), force))
        return results

    def add_links_to_daily_notes(
        self, notes_with_paths: Sequence[tuple[SourceDocument, str]], force: bool = False
    ) -> list[DaySectionResult]:
        """Write each day's link section pointing at individual note files."""
        heading = self.config.notes.daily_note_link_heading.strip()
        results = []
        for day, links in self.build_links_map(notes_with_paths).items():
            content = build_link_fragment(links, heading)
            result = self._merge(day, heading, content, len(links), force)
            if result.error is None:
                logger.debug("Linked %d note(s) from daily note for %s", len(links), day)
            results.append(result)
        return results
