"""
Live buffers backed by a pygls workspace.

Documents the client has open are live: section edits are applied to the
open text instead of the file on disk. When the server is attached to a
client, edits are forwarded as `workspace/applyEdit` requests and tracked in
a per-pass shadow copy until the client echoes them back via didChange.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from urllib.parse import unquote, urlparse

from lsprotocol import types as lsp
from pygls.workspace import TextDocument, Workspace

from ..paths.resolver import normalize_path
from ..store.buffers import BufferRange

logger = logging.getLogger(__name__)

EditCallback = Callable[[str, lsp.Range, str], None]


def uri_to_path(uri: str) -> Path:
    """Convert a file URI to a Path."""
    parsed = urlparse(uri)
    path = unquote(parsed.path)
    if path.startswith("/") and len(path) > 2 and path[2] == ":":
        path = path[1:]  # Windows drive letter
    return Path(path)


def to_lsp_range(edit_range: BufferRange) -> lsp.Range:
    return lsp.Range(
        start=lsp.Position(line=edit_range.start_line, character=edit_range.start_character),
        end=lsp.Position(line=edit_range.end_line, character=edit_range.end_character),
    )


class WorkspaceBufferHost:
    """BufferHost over the open documents of a pygls Workspace.

    Handles are document URIs. Without `on_edit` the workspace documents are
    edited in place; with it, edits go to the callback and to a shadow copy.
    """

    def __init__(self, workspace: Workspace, root: Path, on_edit: EditCallback | None = None):
        self.workspace = workspace
        self.root = root
        self.on_edit = on_edit
        self._shadow: dict[str, TextDocument] = {}

    def try_get_live_handle(self, path: str) -> str | None:
        target = self.root / normalize_path(path)
        for uri in self.workspace.text_documents:
            if uri_to_path(uri) == target:
                return uri
        return None

    def read_live(self, handle: str) -> str:
        shadow = self._shadow.get(handle)
        if shadow is not None:
            return shadow.source
        return self.workspace.text_documents[handle].source

    def apply_range_edit(self, handle: str, edit_range: BufferRange, text: str) -> None:
        change = lsp.TextDocumentContentChangePartial(range=to_lsp_range(edit_range), text=text)
        if self.on_edit is None:
            self.workspace.text_documents[handle].apply_change(change)
            return

        shadow = self._shadow.get(handle)
        if shadow is None:
            shadow = TextDocument(handle, source=self.read_live(handle))
            self._shadow[handle] = shadow
        shadow.apply_change(change)
        self.on_edit(handle, change.range, text)
        logger.debug("Sent edit for %s", handle)
