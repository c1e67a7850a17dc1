"""Live-buffer capability.

A file may be attached to an interactive view ("live") in which case edits go
to that buffer instead of to persisted storage. Hosts expose:

- `try_get_live_handle(path)`: handle for an open buffer, or None
- `read_live(handle)`: current buffer text
- `apply_range_edit(handle, range, text)`: replace a range in the buffer

Ranges use LSP conventions: zero-based lines, characters counted in UTF-16
code units, lines split the way `str.splitlines` splits them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class BufferRange:
    start_line: int
    start_character: int
    end_line: int
    end_character: int


class BufferHost(Protocol):
    def try_get_live_handle(self, path: str) -> Any | None: ...

    def read_live(self, handle: Any) -> str: ...

    def apply_range_edit(self, handle: Any, edit_range: BufferRange, text: str) -> None: ...


class NullBufferHost:
    """No live buffers: every edit takes the persisted-storage path."""

    def try_get_live_handle(self, path: str) -> None:
        return None

    def read_live(self, handle: Any) -> str:
        raise LookupError("no live buffers")

    def apply_range_edit(self, handle: Any, edit_range: BufferRange, text: str) -> None:
        raise LookupError("no live buffers")


def utf16_length(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def _position(lines: list[str], offset: int) -> tuple[int, int]:
    consumed = 0
    for index, line in enumerate(lines):
        if offset < consumed + len(line):
            return index, utf16_length(line[: offset - consumed])
        consumed += len(line)
    # At end of text.
    if lines and not lines[-1].endswith(("\n", "\r")):
        return len(lines) - 1, utf16_length(lines[-1])
    return len(lines), 0


def range_from_offsets(text: str, start: int, end: int) -> BufferRange:
    """Convert string offsets in `text` to a line/character range."""
    lines = text.splitlines(keepends=True)
    start_line, start_char = _position(lines, start)
    end_line, end_char = _position(lines, end)
    return BufferRange(start_line, start_char, end_line, end_char)
