"""
Sync pass driver.

One pass:

1. date-filter the batch (an empty batch aborts before any write)
2. rebuild the identity index from the store
3. transcripts first, so notes can link to them (skipped when combined)
4. notes: individual files, combined files, or day sections
5. daily-note links to individual note files, when enabled

Per-document failures are isolated and reported; they never abort the pass.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..config import SyncConfig
from ..errors import ContentMissing, SetupFailure, WriteFailure
from ..markdown.sections import SectionEditor
from ..models import ArtifactKind, SourceDocument
from ..paths.resolver import PathResolver, strip_extension
from ..store.buffers import BufferHost
from ..store.vault import FileStore
from .cache import IdentityIndex, UpsertOutcome, UpsertResult
from .daily import DailyNoteBuilder, DaySectionResult
from .processor import DocumentProcessor
from .sources import filter_documents_by_date

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    """Outcome of one pass."""

    documents: int = 0
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    moved: list[tuple[str, str]] = field(default_factory=list)
    unchanged: int = 0
    skipped: list[tuple[str, str]] = field(default_factory=list)  # (identity, reason)
    failed: list[tuple[str, str]] = field(default_factory=list)
    day_sections: list[DaySectionResult] = field(default_factory=list)

    @property
    def writes(self) -> int:
        sections = sum(1 for s in self.day_sections if s.written)
        return len(self.created) + len(self.updated) + sections

    def record(self, result: UpsertResult) -> None:
        if result.outcome == UpsertOutcome.CREATED:
            self.created.append(result.path)
        elif result.outcome == UpsertOutcome.UPDATED:
            self.updated.append(result.path)
        else:
            self.unchanged += 1
        if result.moved_from:
            self.moved.append((result.moved_from, result.path))

    def record_sections(self, results: Sequence[DaySectionResult]) -> None:
        for result in results:
            self.day_sections.append(result)
            if result.error:
                self.failed.append((result.path, result.error))

    def summary(self) -> dict[str, int]:
        return {
            "documents": self.documents,
            "created": len(self.created),
            "updated": len(self.updated),
            "moved": len(self.moved),
            "unchanged": self.unchanged,
            "sections": sum(1 for s in self.day_sections if s.written),
            "skipped": len(self.skipped),
            "failed": len(self.failed),
        }


class SyncEngine:
    """Wires the components of a pass around one config, store and clock."""

    def __init__(
        self,
        config: SyncConfig,
        store: FileStore,
        buffers: BufferHost | None = None,
        now: datetime | None = None,
    ):
        self.config = config
        self.store = store
        # One clock reading per pass keeps every effective date consistent.
        self.now = now or datetime.now(timezone.utc)
        self.paths = PathResolver(config, self.now)
        self.processor = DocumentProcessor(config, self.paths)
        self.editor = SectionEditor(store, buffers)
        self.daily = DailyNoteBuilder(config, self.paths, self.processor, self.editor)
        self.index = IdentityIndex(store, self.now, config.tz)

    def run(self, documents: Sequence[SourceDocument], full: bool = False) -> SyncReport:
        """Run one pass. `full` forces every write, even for unchanged content.

        Raises SetupFailure before any write when there is nothing to sync.
        """
        if not documents:
            raise SetupFailure("No documents to sync")

        report = SyncReport()
        batch = filter_documents_by_date(documents, self.config.days_back, self.now, self.config.tz)
        report.documents = len(batch)
        if not batch:
            logger.info("No documents within the last %d day(s)", self.config.days_back)
            return report

        self.index.build()

        transcript_paths: dict[str, str] = {}
        if self.config.transcripts.enabled and not self.config.combined_transcripts:
            transcript_paths = self.sync_transcripts(batch, report, full)

        notes = self.config.notes
        if notes.enabled:
            if notes.save_as_individual_files:
                written = self.sync_note_files(batch, transcript_paths, report, full)
                if notes.link_from_daily_notes and written:
                    report.record_sections(self.daily.add_links_to_daily_notes(written, force=full))
            else:
                report.record_sections(self.daily.sync_day_sections(batch, force=full))

        logger.info(
            "Sync finished: %s",
            ", ".join(f"{k}={v}" for k, v in report.summary().items()),
        )
        return report

    def _upsert(
        self,
        doc: SourceDocument,
        kind: ArtifactKind,
        content,
        report: SyncReport,
        full: bool,
    ) -> UpsertResult | None:
        """Upsert one artifact, recording skips and failures in `report`."""
        try:
            result = self.index.upsert(
                doc,
                kind,
                compute_path=lambda: self.paths.resolve_path(doc, kind),
                compute_content=content,
                force=full,
            )
        except ContentMissing as e:
            logger.warning("Skipping %s %s: %s", kind.value, doc.id, e)
            report.skipped.append((doc.id, str(e)))
            return None
        except OSError as e:
            failure = WriteFailure(self.paths.resolve_path(doc, kind), e)
            logger.error("%s (%s)", failure, doc.id)
            report.failed.append((doc.id, str(failure)))
            return None
        report.record(result)
        return result

    def sync_transcripts(
        self, documents: Sequence[SourceDocument], report: SyncReport, full: bool = False
    ) -> dict[str, str]:
        """Standalone transcript files; returns identity -> transcript path."""
        paths: dict[str, str] = {}
        for doc in documents:
            entries = doc.transcript
            if not entries:
                continue
            result = self._upsert(
                doc,
                ArtifactKind.TRANSCRIPT,
                lambda doc=doc, entries=entries: self.processor.prepare_transcript(doc, entries).content,
                report,
                full,
            )
            if result is not None:
                paths[doc.id] = result.path
        return paths

    def sync_note_files(
        self,
        documents: Sequence[SourceDocument],
        transcript_paths: dict[str, str],
        report: SyncReport,
        full: bool = False,
    ) -> list[tuple[SourceDocument, str]]:
        """Individual note (or combined) files; returns (document, path) pairs."""
        written: list[tuple[SourceDocument, str]] = []
        combined = self.config.combined_transcripts
        for doc in documents:
            if combined:
                kind = ArtifactKind.COMBINED
                content = lambda doc=doc: self.processor.prepare_combined(doc, doc.transcript or []).content
            else:
                kind = ArtifactKind.NOTE
                backlink = transcript_paths.get(doc.id)
                if backlink is not None:
                    backlink = strip_extension(backlink)
                content = lambda doc=doc, backlink=backlink: self.processor.prepare_note(doc, backlink).content
            result = self._upsert(doc, kind, content, report, full)
            if result is not None:
                written.append((doc, result.path))
        return written
