"""Markdown line parsing: headings and the leading metadata block."""

from __future__ import annotations

import re

from .metadata import DELIMITER

MAX_HEADING_LEVEL = 6

# "## Title": 1-6 hashes, exactly one space, then some non-space text.
HEADING_PATTERN = re.compile(r"^(#{1,6}) ")


def heading_level(line: str) -> int | None:
    """Heading level of `line`, or None if it is not a markdown heading.

    `###` and `## ` are not headings; neither is anything indented.
    """
    line = line.rstrip("\r\n")
    match = HEADING_PATTERN.match(line)
    if not match or not line[match.end():].strip():
        return None
    return len(match.group(1))


def to_heading(title: str, level: int) -> str:
    level = max(1, min(level, MAX_HEADING_LEVEL))
    return f"{'#' * level} {title}"


def leading_block_span(text: str) -> int | None:
    """End offset of a `---`-delimited block starting at offset 0, if any."""
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != DELIMITER:
        return None
    offset = len(lines[0])
    for line in lines[1:]:
        offset += len(line)
        if line.rstrip("\r\n") == DELIMITER:
            return offset
    return None


def split_leading_block(text: str) -> tuple[str | None, str]:
    """(block text including delimiters, rest) or (None, text)."""
    span = leading_block_span(text)
    if span is None:
        return None, text
    return text[:span], text[span:]


def first_nonblank_line(text: str) -> str | None:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return None


def nest_headings(markdown: str, min_level: int) -> str:
    """Shift every heading down so the shallowest one sits at `min_level`.

    Levels are capped at 6. Text that is already deep enough is returned as is.
    """
    levels = [lvl for lvl in (heading_level(line) for line in markdown.splitlines()) if lvl]
    if not levels or min(levels) >= min_level:
        return markdown
    shift = min_level - min(levels)
    out = []
    for line in markdown.splitlines(keepends=True):
        level = heading_level(line)
        if level is not None:
            line = "#" * min(level + shift, MAX_HEADING_LEVEL) + line[level:]
        out.append(line)
    return "".join(out)
