"""
Language server integration.

Documents open in the client are live buffers: a sync pass started through
the server edits them in place instead of rewriting the files underneath.
"""

from .buffers import WorkspaceBufferHost, uri_to_path
from .server import create_server, start_server

__all__ = ["WorkspaceBufferHost", "create_server", "start_server", "uri_to_path"]
