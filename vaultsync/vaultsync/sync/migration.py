"""
One-shot normalization of legacy metadata blocks.

Older files encode "this is a transcript" by suffixing the identity with
`-transcript` and carry no `kind` field. Migration rewrites only the
metadata block; bodies and unrelated fields are left as they are.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from ..errors import MetadataError, MigrationFailure
from ..markdown.metadata import DELIMITER, ID_KEY, KIND_KEY, format_yaml_scalar
from ..markdown.parser import first_nonblank_line, split_leading_block
from ..markdown.sections import SectionEditor
from ..markdown.transcript import TRANSCRIPT_HEADING_PREFIX
from ..models import ArtifactKind
from ..store.vault import parse_metadata

logger = logging.getLogger(__name__)

LEGACY_TRANSCRIPT_SUFFIX = "-transcript"

TRANSCRIPT_HEADING_PATTERN = re.compile(rf"^#{{1,6}} {re.escape(TRANSCRIPT_HEADING_PREFIX)}")


@dataclass
class MigrationReport:
    scanned: int = 0
    migrated: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class MigrationPlan:
    """What a file's identity and kind should become."""

    identity: str
    kind: str
    rename_identity: bool
    set_kind: bool

    @property
    def needed(self) -> bool:
        return self.rename_identity or self.set_kind


def infer_kind(body: str) -> str:
    """`transcript` when the body opens with a transcript heading, else `note`."""
    line = first_nonblank_line(body)
    if line is not None and TRANSCRIPT_HEADING_PATTERN.match(line):
        return ArtifactKind.TRANSCRIPT.value
    return ArtifactKind.NOTE.value


def plan_migration(metadata: dict, body: str) -> MigrationPlan | None:
    """None when the metadata carries no identity."""
    raw_identity = metadata.get(ID_KEY)
    if raw_identity is None or raw_identity == "":
        return None
    identity = str(raw_identity)
    kind = metadata.get(KIND_KEY)

    if identity.endswith(LEGACY_TRANSCRIPT_SUFFIX) and len(identity) > len(LEGACY_TRANSCRIPT_SUFFIX):
        return MigrationPlan(
            identity=identity[: -len(LEGACY_TRANSCRIPT_SUFFIX)],
            kind=ArtifactKind.TRANSCRIPT.value,
            rename_identity=True,
            set_kind=kind != ArtifactKind.TRANSCRIPT.value,
        )
    if not kind:
        return MigrationPlan(identity, infer_kind(body), rename_identity=False, set_kind=True)
    return MigrationPlan(identity, str(kind), rename_identity=False, set_kind=False)


def _is_key_line(line: str, key: str) -> bool:
    return line.startswith(f"{key}:")


def rewrite_block(block: str, plan: MigrationPlan) -> str:
    """Apply `plan` to the raw block text, keeping every other line as is.

    `kind` is rewritten in place when present, otherwise inserted directly
    after the identity line.
    """
    lines = block.splitlines(keepends=True)
    kind_line = f"{KIND_KEY}: {plan.kind}"
    out: list[str] = []
    has_kind = any(_is_key_line(line, KIND_KEY) for line in lines)

    for line in lines:
        newline = line[len(line.rstrip("\r\n")):] or "\n"
        if _is_key_line(line, ID_KEY):
            if plan.rename_identity:
                line = f"{ID_KEY}: {format_yaml_scalar(plan.identity)}{newline}"
            out.append(line)
            if plan.set_kind and not has_kind:
                out.append(f"{kind_line}{newline}")
            continue
        if plan.set_kind and has_kind and _is_key_line(line, KIND_KEY):
            out.append(f"{kind_line}{newline}")
            continue
        out.append(line)
    return "".join(out)


class SchemaMigrator:
    """Rewrites legacy metadata blocks across the whole store."""

    def __init__(self, editor: SectionEditor):
        self.editor = editor
        self.store = editor.store

    def migrate_file(self, path: str) -> bool:
        """Migrate one file; True when it was rewritten.

        Raises MigrationFailure for read, parse or write errors.
        """
        try:
            text = self.editor.read(path)
            metadata = parse_metadata(text, path)
        except (OSError, UnicodeDecodeError, MetadataError) as e:
            raise MigrationFailure(f"{path}: {e}") from e
        if not metadata:
            return False

        block, body = split_leading_block(text)
        plan = plan_migration(metadata, body)
        if plan is None or not plan.needed or block is None:
            return False

        new_block = rewrite_block(block, plan)
        if not new_block.rstrip().endswith(DELIMITER):
            raise MigrationFailure(f"{path}: metadata block is not terminated")
        try:
            self.editor.replace_leading_block(path, new_block)
        except OSError as e:
            raise MigrationFailure(f"{path}: {e}") from e
        logger.info("Migrated %s (%s, kind=%s)", path, plan.identity, plan.kind)
        return True

    def migrate(self) -> MigrationReport:
        report = MigrationReport()
        for path in self.store.list_all():
            report.scanned += 1
            try:
                if self.migrate_file(path):
                    report.migrated.append(path)
            except MigrationFailure as e:
                logger.error("Migration skipped %s: %s", path, e)
                report.failed.append((path, str(e)))
        logger.info(
            "Migration: %d file(s) scanned, %d migrated, %d failed",
            report.scanned,
            len(report.migrated),
            len(report.failed),
        )
        return report
