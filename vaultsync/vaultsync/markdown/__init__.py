"""Markdown rendering and editing helpers."""

from .metadata import escape_yaml_string, format_attendees_as_yaml, render_metadata
from .parser import heading_level, leading_block_span, to_heading
from .sections import SectionEditor, TextEdit, locate_section, replace_leading_block, replace_section
from .prosemirror import convert_prosemirror_to_markdown, is_content_tree
from .transcript import format_transcript_body, format_transcript_document

__all__ = [
    "SectionEditor",
    "TextEdit",
    "convert_prosemirror_to_markdown",
    "escape_yaml_string",
    "format_attendees_as_yaml",
    "format_transcript_body",
    "format_transcript_document",
    "heading_level",
    "is_content_tree",
    "leading_block_span",
    "locate_section",
    "render_metadata",
    "replace_leading_block",
    "replace_section",
    "to_heading",
]
