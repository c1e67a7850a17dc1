"""Sync pipeline: artifact building, identity index, day aggregation, migration."""

from .cache import IdentityIndex, UpsertOutcome, UpsertResult
from .daily import DailyNoteBuilder, DaySectionResult, NoteLink, build_content_fragment, build_link_fragment
from .engine import SyncEngine, SyncReport
from .migration import MigrationReport, SchemaMigrator
from .processor import DayNote, DocumentProcessor
from .sources import filter_documents_by_date, load_documents, parse_documents

__all__ = [
    "DailyNoteBuilder",
    "DayNote",
    "DaySectionResult",
    "DocumentProcessor",
    "IdentityIndex",
    "MigrationReport",
    "NoteLink",
    "SchemaMigrator",
    "SyncEngine",
    "SyncReport",
    "UpsertOutcome",
    "UpsertResult",
    "build_content_fragment",
    "build_link_fragment",
    "filter_documents_by_date",
    "load_documents",
    "parse_documents",
]
