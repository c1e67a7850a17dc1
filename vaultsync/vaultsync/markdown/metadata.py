"""Metadata block rendering and YAML scalar escaping."""

from __future__ import annotations

import re
from collections.abc import Iterable

from ..models import MetadataRecord

DELIMITER = "---"

# Metadata keys, in the order they are written.
ID_KEY = "source_id"
TITLE_KEY = "title"
KIND_KEY = "kind"
CREATED_KEY = "created"
UPDATED_KEY = "updated"
ATTENDEES_KEY = "attendees"
BACKLINK_KEY = "transcript"

# Starts with a letter so YAML never reads it back as a number or date.
_PLAIN_SCALAR = re.compile(r"^[A-Za-z][A-Za-z0-9_.\-]*$")


def escape_yaml_string(value: str) -> str:
    """Double-quoted YAML scalar with backslashes and quotes escaped."""
    if value == "":
        return '""'
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    escaped = escaped.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
    return f'"{escaped}"'


def format_yaml_scalar(value: str) -> str:
    """Plain scalar when it is safe to leave unquoted, else escaped."""
    if _PLAIN_SCALAR.match(value) and value.lower() not in _YAML_KEYWORDS:
        return value
    return escape_yaml_string(value)


_YAML_KEYWORDS = {"true", "false", "yes", "no", "on", "off", "null", "none", "~"}


def format_attendees_as_yaml(attendees: Iterable[str]) -> str:
    """`[]` when empty, else a newline followed by one `  - "name"` per attendee."""
    names = list(attendees)
    if not names:
        return "[]"
    return "\n" + "\n".join(f"  - {escape_yaml_string(name)}" for name in names)


def metadata_lines(record: MetadataRecord) -> list[str]:
    """Field lines for `record`, in the fixed order."""
    lines = [
        f"{ID_KEY}: {format_yaml_scalar(record.identity)}",
        f"{TITLE_KEY}: {escape_yaml_string(record.title)}",
        f"{KIND_KEY}: {record.kind.value}",
    ]
    if record.created:
        lines.append(f"{CREATED_KEY}: {record.created}")
    if record.updated:
        lines.append(f"{UPDATED_KEY}: {record.updated}")
    lines.append(f"{ATTENDEES_KEY}: {format_attendees_as_yaml(record.attendees)}")
    if record.backlink:
        lines.append(f"{BACKLINK_KEY}: {escape_yaml_string(f'[[{record.backlink}]]')}")
    return lines


def render_metadata(record: MetadataRecord) -> str:
    """Delimited metadata block, ending with a newline."""
    return "\n".join([DELIMITER, *metadata_lines(record), DELIMITER]) + "\n"
