"""
LSP server that runs sync passes against the client's open buffers.

Provides:
- `vaultsync.sync` command: run a pass over a JSON export; sections of
  open documents are edited through `workspace/applyEdit`
- `vaultsync.migrate` command: normalize legacy metadata blocks
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from .. import __version__
from ..config import CONFIG_FILENAME, load_config
from ..errors import VaultSyncError
from ..markdown.sections import SectionEditor
from ..store.vault import FileStore
from ..sync.engine import SyncEngine
from ..sync.migration import SchemaMigrator
from ..sync.sources import load_documents
from ..sync_log import log_pass
from .buffers import WorkspaceBufferHost, uri_to_path

logger = logging.getLogger(__name__)

SYNC_COMMAND = "vaultsync.sync"
MIGRATE_COMMAND = "vaultsync.migrate"


class VaultSyncLanguageServer(LanguageServer):
    """Language server whose workspace documents are the live buffers."""

    def __init__(self, store_root: Path | None = None, config_path: Path | None = None):
        super().__init__(name="vaultsync-lsp", version=__version__)
        self.store_root = store_root
        self.config_path = config_path

    def set_store_root(self, path: Path) -> None:
        self.store_root = path

    def _root(self) -> Path:
        if self.store_root is None:
            raise VaultSyncError("No store root: open a workspace folder or pass --store")
        return self.store_root

    def buffer_host(self) -> WorkspaceBufferHost:
        return WorkspaceBufferHost(self.workspace, self._root(), on_edit=self.send_edit)

    def send_edit(self, uri: str, edit_range: lsp.Range, text: str) -> None:
        """Ask the client to apply one range edit to an open document."""
        edit = lsp.WorkspaceEdit(
            document_changes=[
                lsp.TextDocumentEdit(
                    text_document=lsp.OptionalVersionedTextDocumentIdentifier(uri=uri, version=None),
                    edits=[lsp.TextEdit(range=edit_range, new_text=text)],
                )
            ]
        )
        self.workspace_apply_edit(lsp.ApplyWorkspaceEditParams(edit=edit, label="vaultsync"))

    def _config(self):
        path = self.config_path or self._root() / CONFIG_FILENAME
        return load_config(path)

    def run_sync(self, input_path: Path, full: bool = False) -> dict[str, Any]:
        root = self._root()
        store = FileStore(root)
        engine = SyncEngine(self._config(), store, buffers=self.buffer_host())
        report = engine.run(load_documents(input_path), full=full)
        log_pass(
            root,
            "full-sync" if full else "sync",
            counts=report.summary(),
            failures=report.failed,
            metadata={"input": str(input_path), "via": "lsp"},
        )
        return report.summary()

    def run_migration(self) -> dict[str, Any]:
        root = self._root()
        editor = SectionEditor(FileStore(root), self.buffer_host())
        report = SchemaMigrator(editor).migrate()
        log_pass(
            root,
            "migrate",
            counts={"scanned": report.scanned, "migrated": len(report.migrated), "failed": len(report.failed)},
            failures=report.failed,
        )
        return {"migrated": report.migrated, "failed": len(report.failed)}


def _command_args(args: tuple[Any, ...]) -> list[Any]:
    # Arguments may arrive unpacked or as a single list.
    if len(args) == 1 and isinstance(args[0], list):
        return args[0]
    return list(args)


def _parse_sync_args(args: list[Any]) -> tuple[Path, bool]:
    """`[path, full?]` or `[{"input": path, "full": bool}]`."""
    if not args:
        raise VaultSyncError(f"{SYNC_COMMAND} needs the path of a document export")
    first = args[0]
    if isinstance(first, dict):
        if not first.get("input"):
            raise VaultSyncError(f"{SYNC_COMMAND} needs an \"input\" export path")
        return Path(str(first["input"])), bool(first.get("full", False))
    full = bool(args[1]) if len(args) > 1 else False
    return Path(str(first)), full


def create_server(store_root: Path | None = None, config_path: Path | None = None) -> VaultSyncLanguageServer:
    """Create and configure the LSP server."""
    server = VaultSyncLanguageServer(store_root, config_path)

    @server.feature(lsp.INITIALIZED)
    def initialized(params: lsp.InitializedParams) -> None:
        """Default the store root to the workspace root."""
        if server.store_root is None and server.workspace.root_uri:
            server.set_store_root(uri_to_path(server.workspace.root_uri))
            logger.info("Store root: %s", server.store_root)

    @server.command(SYNC_COMMAND)
    def sync_command(*args: Any) -> dict[str, Any]:
        try:
            input_path, full = _parse_sync_args(_command_args(args))
            summary = server.run_sync(input_path, full=full)
        except VaultSyncError as e:
            server.window_show_message(
                lsp.ShowMessageParams(type=lsp.MessageType.Error, message=f"vaultsync: {e}")
            )
            raise
        server.window_show_message(
            lsp.ShowMessageParams(
                type=lsp.MessageType.Info,
                message=f"vaultsync: {summary['created']} created, {summary['updated']} updated, "
                f"{summary['failed']} failed",
            )
        )
        return summary

    @server.command(MIGRATE_COMMAND)
    def migrate_command(*args: Any) -> dict[str, Any]:
        return server.run_migration()

    return server


def start_server(
    store_root: Path | None = None,
    config_path: Path | None = None,
    transport: str = "stdio",
) -> None:
    """Start the LSP server.

    Args:
        store_root: Store directory; defaults to the client's workspace root
        config_path: Config file; defaults to vaultsync.toml in the store root
        transport: Transport method ("stdio" or "tcp")
    """
    server = create_server(store_root, config_path)

    if transport == "stdio":
        server.start_io()
    else:
        # TCP transport for debugging
        server.start_tcp("localhost", 2087)
