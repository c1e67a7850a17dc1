"""Store scanning: every persisted document that carries a source identity."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..errors import MetadataError
from ..markdown.metadata import ID_KEY, KIND_KEY, UPDATED_KEY
from ..models import parse_timestamp
from .vault import FileStore

logger = logging.getLogger(__name__)


@dataclass
class StoredNote:
    """A persisted file and its parsed metadata block."""

    path: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def identity(self) -> str | None:
        value = self.metadata.get(ID_KEY)
        if value is None or value == "":
            return None
        return str(value)

    @property
    def kind(self) -> str:
        # Files written before kinds existed are notes.
        return str(self.metadata.get(KIND_KEY) or "note")

    @property
    def updated(self) -> datetime | None:
        return parse_timestamp(self.metadata.get(UPDATED_KEY))


def load_store(store: FileStore) -> list[StoredNote]:
    """Load every file whose metadata block has an identity.

    Files without a block, without an identity, or with an unreadable block
    are skipped; unreadable ones are logged.
    """
    notes: list[StoredNote] = []
    for path in store.list_all():
        try:
            metadata = store.read_metadata(path)
        except (MetadataError, OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping %s: %s", path, e)
            continue
        if not metadata:
            continue
        note = StoredNote(path=path, metadata=metadata)
        if note.identity is None:
            continue
        notes.append(note)
    return notes
