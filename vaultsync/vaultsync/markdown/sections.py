"""
Heading-scoped section editing.

A section starts at a heading line and runs to the next heading of equal or
shallower level (or end of file). Edits are planned as a single offset
range over the current text, so the same plan can be applied to a live
buffer (as a range edit) or to the persisted text (as a string splice) with
identical results. Everything outside the planned range is left untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..store.buffers import BufferHost, NullBufferHost, range_from_offsets
from .parser import heading_level, leading_block_span

if TYPE_CHECKING:
    from ..store.vault import FileStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TextEdit:
    """Replace `text[start:end]` with `replacement`."""

    start: int
    end: int
    replacement: str

    def apply(self, text: str) -> str:
        return text[: self.start] + self.replacement + text[self.end :]


def locate_section(text: str, heading: str) -> tuple[int, int] | None:
    """Offsets `(start, end)` of the section under `heading`, or None."""
    heading = heading.strip()
    level = heading_level(heading)
    if level is None:
        raise ValueError(f"Not a markdown heading: {heading!r}")

    start: int | None = None
    offset = 0
    for line in text.splitlines(keepends=True):
        if start is None:
            if heading_level(line) == level and line.rstrip() == heading:
                start = offset
        else:
            line_level = heading_level(line)
            if line_level is not None and line_level <= level:
                return start, offset
        offset += len(line)
    if start is None:
        return None
    return start, len(text)


def plan_section_edit(text: str, heading: str, content: str) -> TextEdit:
    """Replace the section under `heading` with `content`, or append it."""
    span = locate_section(text, heading)
    if span is None:
        if not text:
            return TextEdit(0, 0, content)
        separator = "\n" if text.endswith("\n") else "\n\n"
        return TextEdit(len(text), len(text), separator + content)

    start, end = span
    if end < len(text):
        # Another heading follows; keep one blank line before it.
        return TextEdit(start, end, content.rstrip("\n") + "\n\n")
    return TextEdit(start, end, content)


def plan_leading_block_edit(text: str, block: str) -> TextEdit:
    """Replace the delimited block at offset 0, or prepend `block`."""
    if not block.endswith("\n"):
        block += "\n"
    span = leading_block_span(text)
    if span is not None:
        return TextEdit(0, span, block)
    if not text:
        return TextEdit(0, 0, block)
    return TextEdit(0, 0, block + "\n")


def replace_section(text: str, heading: str, content: str) -> str:
    return plan_section_edit(text, heading, content).apply(text)


def replace_leading_block(text: str, block: str) -> str:
    return plan_leading_block_edit(text, block).apply(text)


class SectionEditor:
    """Applies planned edits to live buffers or to the store."""

    def __init__(self, store: FileStore, buffers: BufferHost | None = None):
        self.store = store
        self.buffers = buffers or NullBufferHost()

    def read(self, path: str) -> str:
        """Current text of `path`: the live buffer when one is open."""
        handle = self.buffers.try_get_live_handle(path)
        if handle is not None:
            return self.buffers.read_live(handle)
        return self.store.read(path)

    def replace_section(
        self, path: str, heading: str, content: str, force_overwrite: bool = False
    ) -> bool:
        """Rebuild the section under `heading` in `path`.

        Returns True when a write happened. `force_overwrite` writes even when
        the resulting text equals the current text.
        """
        return self._edit(path, lambda text: plan_section_edit(text, heading, content), force_overwrite)

    def replace_leading_block(self, path: str, block: str, force_overwrite: bool = False) -> bool:
        return self._edit(path, lambda text: plan_leading_block_edit(text, block), force_overwrite)

    def _edit(self, path: str, plan: Callable[[str], TextEdit], force_overwrite: bool) -> bool:
        handle = self.buffers.try_get_live_handle(path)
        if handle is not None:
            text = self.buffers.read_live(handle)
            edit = plan(text)
            if edit.apply(text) == text and not force_overwrite:
                logger.debug("Live buffer %s already up to date", path)
                return False
            self.buffers.apply_range_edit(handle, range_from_offsets(text, edit.start, edit.end), edit.replacement)
            logger.debug("Edited live buffer %s", path)
            return True

        text = self.store.read(path)
        edit = plan(text)
        updated = edit.apply(text)
        if updated == text and not force_overwrite:
            logger.debug("%s already up to date", path)
            return False
        self.store.write(path, updated)
        return True
