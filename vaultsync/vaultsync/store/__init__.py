"""Persisted-store primitives and the live-buffer capability."""

from .buffers import BufferHost, BufferRange, NullBufferHost, range_from_offsets
from .loader import StoredNote, load_store
from .vault import FileStore

__all__ = [
    "BufferHost",
    "BufferRange",
    "FileStore",
    "NullBufferHost",
    "StoredNote",
    "load_store",
    "range_from_offsets",
]
