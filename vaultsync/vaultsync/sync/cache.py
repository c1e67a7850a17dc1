"""
Identity-keyed index of synced files.

The index maps (source identity, kind) to the file that holds it. It is
rebuilt from the files' own metadata blocks at the start of every pass and
never persisted; the metadata block is the ground truth.

Upsert rules:

- identity not indexed: create the file (suffixing the name when an unrelated
  file already holds the path)
- indexed and the remote `updated` timestamp is not newer: no write
- indexed and newer (or forced): move the file if its computed path changed
  and the new path is free, then write the new content
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from ..models import ArtifactKind, SourceDocument, effective_date, parse_timestamp
from ..paths.patterns import format_date_for_filename
from ..store.loader import load_store
from ..store.vault import FileStore

logger = logging.getLogger(__name__)


class UpsertOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass
class IndexEntry:
    path: str
    updated: datetime | None = None  # last known remote `updated`


@dataclass(frozen=True)
class UpsertResult:
    outcome: UpsertOutcome
    path: str
    moved_from: str | None = None

    @property
    def written(self) -> bool:
        return self.outcome != UpsertOutcome.UNCHANGED


class IdentityIndex:
    """Identity -> file index, rebuilt once per pass."""

    def __init__(
        self,
        store: FileStore,
        now: datetime | None = None,
        tz=None,
    ):
        self.store = store
        self.now = now or datetime.now(timezone.utc)
        self.tz = tz
        self._entries: dict[tuple[str, str], IndexEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def build(self) -> None:
        """Index every persisted file whose metadata carries an identity."""
        self._entries.clear()
        for note in load_store(self.store):
            key = (note.identity, note.kind)
            if key in self._entries:
                logger.warning(
                    "Duplicate %s for %s: %s and %s; keeping the first",
                    note.kind,
                    note.identity,
                    self._entries[key].path,
                    note.path,
                )
                continue
            self._entries[key] = IndexEntry(path=note.path, updated=note.updated)
        logger.debug("Indexed %d synced file(s)", len(self._entries))

    def find(self, identity: str, kind: ArtifactKind | str) -> IndexEntry | None:
        return self._entries.get((identity, _kind_value(kind)))

    def record(self, identity: str, kind: ArtifactKind | str, path: str, updated: datetime | None) -> None:
        self._entries[(identity, _kind_value(kind))] = IndexEntry(path=path, updated=updated)

    def paths(self) -> set[str]:
        return {entry.path for entry in self._entries.values()}

    def is_remote_newer(self, entry: IndexEntry, remote_updated: str | None) -> bool:
        """True unless both timestamps are known and remote <= local."""
        remote = parse_timestamp(remote_updated)
        if remote is None or entry.updated is None:
            return True
        return remote > entry.updated

    def collision_path(self, path: str, doc: SourceDocument) -> str:
        """A free path next to `path`, suffixed with the document date."""
        root, ext = posixpath.splitext(path)
        suffix = format_date_for_filename(effective_date(doc, self.now, self.tz)).replace(" ", "_")
        candidate = f"{root}-{suffix}{ext}"
        counter = 2
        while self.store.exists(candidate):
            candidate = f"{root}-{suffix}-{counter}{ext}"
            counter += 1
        return candidate

    def upsert(
        self,
        doc: SourceDocument,
        kind: ArtifactKind,
        compute_path: Callable[[], str],
        compute_content: Callable[[], str],
        force: bool = False,
    ) -> UpsertResult:
        """Create or update the single file for (doc.id, kind).

        `compute_content` may raise ContentMissing; store errors propagate as
        OSError. Both leave the index unchanged.
        """
        remote_updated = parse_timestamp(doc.updated_at)
        entry = self.find(doc.id, kind)

        # Files of other kinds never match: after switching transcripts to
        # combined, the old note file stays and the combined file gets a new path.
        if entry is None:
            path = compute_path()
            content = compute_content()
            if self.store.exists(path):
                taken = path
                path = self.collision_path(path, doc)
                logger.info("%s is taken by another file; creating %s instead", taken, path)
            self.store.write(path, content)
            self.record(doc.id, kind, path, remote_updated)
            logger.debug("Created %s for %s", path, doc.id)
            return UpsertResult(UpsertOutcome.CREATED, path)

        if not force and not self.is_remote_newer(entry, doc.updated_at):
            logger.debug("%s (%s) is up to date", entry.path, doc.id)
            return UpsertResult(UpsertOutcome.UNCHANGED, entry.path)

        content = compute_content()
        current = entry.path
        target = compute_path()
        moved_from = None
        if target != current:
            if self.store.exists(target):
                logger.info(
                    "Not moving %s to %s: target belongs to another file", current, target
                )
            else:
                self.store.move(current, target)
                moved_from, current = current, target
                # Keep the index consistent even if the write below fails.
                self.record(doc.id, kind, current, entry.updated)
                logger.info("Moved %s to %s", moved_from, current)

        if moved_from is None and not force and self.store.read(current) == content:
            self.record(doc.id, kind, current, remote_updated)
            return UpsertResult(UpsertOutcome.UNCHANGED, current)

        self.store.write(current, content)
        self.record(doc.id, kind, current, remote_updated)
        return UpsertResult(UpsertOutcome.UPDATED, current, moved_from)


def _kind_value(kind: ArtifactKind | str) -> str:
    return kind.value if isinstance(kind, ArtifactKind) else str(kind)
