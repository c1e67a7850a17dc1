"""Directory-backed document store.

Paths handed to and returned from the store are vault-relative POSIX strings
(`Meetings/2024/Standup.md`). Every write is a single atomic replace.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import frontmatter
import yaml

from ..errors import MetadataError
from ..markdown.parser import leading_block_span
from ..paths.resolver import normalize_path

logger = logging.getLogger(__name__)


class FileStore:
    """Markdown files under a root directory."""

    def __init__(self, root: Path):
        self.root = root

    def _abs(self, path: str) -> Path:
        return self.root / normalize_path(path)

    def read(self, path: str) -> str:
        with self._abs(path).open("r", encoding="utf-8", newline="") as f:
            return f.read()

    def write(self, path: str, text: str) -> None:
        target = self._abs(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".vaultsync-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(text)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def move(self, old_path: str, new_path: str) -> None:
        """Rename a file; refuses to overwrite an existing target."""
        source = self._abs(old_path)
        target = self._abs(new_path)
        if target.exists():
            raise FileExistsError(f"{new_path} already exists")
        target.parent.mkdir(parents=True, exist_ok=True)
        source.rename(target)

    def exists(self, path: str) -> bool:
        return self._abs(path).is_file()

    def list_all(self) -> list[str]:
        """All markdown files, skipping hidden files and directories."""
        if not self.root.is_dir():
            return []
        paths = []
        for md_file in self.root.rglob("*.md"):
            if not md_file.is_file():
                continue
            rel = md_file.relative_to(self.root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            paths.append(rel.as_posix())
        return sorted(paths)

    def read_metadata(self, path: str) -> dict[str, Any] | None:
        """Parsed metadata block of `path`; None when the file has none.

        Raises MetadataError when the block is present but not valid YAML.
        """
        text = self.read(path)
        return parse_metadata(text, path)


def parse_metadata(text: str, path: str = "<text>") -> dict[str, Any] | None:
    if leading_block_span(text) is None:
        return None
    try:
        post = frontmatter.loads(text)
    except yaml.YAMLError as e:
        raise MetadataError(f"{path}: unreadable metadata block: {e}") from e
    return dict(post.metadata)
