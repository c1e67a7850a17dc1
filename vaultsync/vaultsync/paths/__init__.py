"""Filename pattern handling and folder resolution."""

from .patterns import (
    DATE_VARIABLES,
    PATTERN_VARIABLES,
    format_date_for_filename,
    pattern_variables,
    resolve_pattern,
    resolve_subfolder,
    sanitize_filename,
    title_or_default,
    validate_pattern,
)
from .resolver import PathResolver, join_path, normalize_path, strip_extension

__all__ = [
    "DATE_VARIABLES",
    "PATTERN_VARIABLES",
    "PathResolver",
    "join_path",
    "normalize_path",
    "strip_extension",
    "format_date_for_filename",
    "pattern_variables",
    "resolve_pattern",
    "resolve_subfolder",
    "sanitize_filename",
    "title_or_default",
    "validate_pattern",
]
