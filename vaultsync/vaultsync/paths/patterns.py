"""Pattern variable substitution and filename sanitization."""

from __future__ import annotations

import re
from datetime import datetime

from ..errors import PatternValidationError

PATTERN_VARIABLES: tuple[str, ...] = ("title", "date", "time", "year", "month", "day", "quarter")

# Subfolder templates only see date components.
DATE_VARIABLES: tuple[str, ...] = ("date", "year", "month", "day", "quarter")

SUBFOLDER_MODES = ("none", "day", "month", "year-month", "year-quarter", "custom")

MAX_FILENAME_LENGTH = 200

_TOKEN_PATTERN = re.compile(r"\{([^{}]*)\}")
# Path-invalid characters, control characters, and template braces.
_INVALID_CHARS = re.compile(r'[<>:"/\\|?*{}\x00-\x1f\x7f]')
_WHITESPACE = re.compile(r"\s+")


def sanitize_filename(text: str) -> str:
    """Make `text` safe to use as a single path segment.

    Strips invalid characters, collapses whitespace runs to one space, caps
    the length and trims. Idempotent.
    """
    cleaned = _INVALID_CHARS.sub("", text)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned[:MAX_FILENAME_LENGTH].strip()


def format_date_for_filename(date: datetime) -> str:
    """Minute-precision, filename-safe date: `2024-01-15 10-30`."""
    return date.strftime("%Y-%m-%d %H-%M")


def title_or_default(title: str | None, date: datetime) -> str:
    """Document title, or a synthetic one stable for the same effective date."""
    if title:
        return title
    return f"Untitled Note at {format_date_for_filename(date)}"


def validate_pattern(pattern: str, allowed: tuple[str, ...] = PATTERN_VARIABLES) -> None:
    """Raise PatternValidationError for the first unknown `{token}` in `pattern`."""
    for match in _TOKEN_PATTERN.finditer(pattern):
        token = match.group(1)
        if token not in allowed:
            raise PatternValidationError(token, allowed)


def pattern_variables(date: datetime, title: str | None = None) -> dict[str, str]:
    """Variable values for `date` (and optionally a title)."""
    values = {
        "date": date.strftime("%Y-%m-%d"),
        "time": date.strftime("%H-%M"),
        "year": date.strftime("%Y"),
        "month": date.strftime("%m"),
        "day": date.strftime("%d"),
        "quarter": f"Q{(date.month - 1) // 3 + 1}",
    }
    if title is not None:
        values["title"] = sanitize_filename(title)
    return values


def resolve_pattern(
    pattern: str,
    values: dict[str, str],
    allowed: tuple[str, ...] = PATTERN_VARIABLES,
) -> str:
    """Substitute every `{variable}` in `pattern` and sanitize the result.

    Substitution is single-pass, so values are never re-expanded.
    """
    validate_pattern(pattern, allowed)
    resolved = _TOKEN_PATTERN.sub(lambda m: values.get(m.group(1), ""), pattern)
    return sanitize_filename(resolved)


def resolve_subfolder(mode: str, date: datetime, custom_pattern: str | None = None) -> str:
    """Subfolder (possibly nested, "/"-separated) for a subfolder mode.

    Returns "" for mode "none" or an empty custom pattern.
    """
    values = pattern_variables(date)
    if mode == "none":
        return ""
    if mode == "day":
        return values["date"]
    if mode == "month":
        return f"{values['year']}-{values['month']}"
    if mode == "year-month":
        return f"{values['year']}/{values['month']}"
    if mode == "year-quarter":
        return f"{values['year']}/{values['quarter']}"
    if mode == "custom":
        if not custom_pattern:
            return ""
        validate_pattern(custom_pattern, DATE_VARIABLES)
        segments = []
        for segment in re.split(r"[/\\]+", custom_pattern):
            resolved = resolve_pattern(segment, values, DATE_VARIABLES)
            if resolved:
                segments.append(resolved)
        return "/".join(segments)
    raise ValueError(f"Unknown subfolder mode: {mode}")
