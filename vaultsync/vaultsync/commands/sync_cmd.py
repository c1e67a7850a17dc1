"""Sync, migration and log commands."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..config import SyncConfig
from ..errors import PatternValidationError, SetupFailure
from ..markdown.sections import SectionEditor
from ..paths.patterns import DATE_VARIABLES, PATTERN_VARIABLES, pattern_variables, resolve_pattern, validate_pattern
from ..store.vault import FileStore
from ..sync.engine import SyncEngine, SyncReport
from ..sync.migration import MigrationReport, SchemaMigrator
from ..sync.sources import load_documents
from ..sync_log import format_sync_entry, log_pass, read_sync_log

logger = logging.getLogger(__name__)


def _report_table(report: SyncReport) -> Table:
    table = Table(title="Sync summary")
    table.add_column("outcome", style="cyan")
    table.add_column("count", justify="right")
    for key, value in report.summary().items():
        style = "red" if key == "failed" and value else None
        table.add_row(key, str(value), style=style)
    return table


def run_migrate(store_root: Path, console: Console | None = None) -> MigrationReport:
    console = console or Console(stderr=True)
    report = SchemaMigrator(SectionEditor(FileStore(store_root))).migrate()
    if report.migrated:
        console.print(f"Migrated {len(report.migrated)} file(s)", style="green")
    for path, reason in report.failed:
        console.print(f"Could not migrate {path}: {reason}", style="yellow")
    if report.migrated or report.failed:
        log_pass(
            store_root,
            "migrate",
            counts={
                "scanned": report.scanned,
                "migrated": len(report.migrated),
                "failed": len(report.failed),
            },
            failures=report.failed,
        )
    return report


def run_sync(
    store_root: Path,
    config: SyncConfig,
    input_path: Path,
    *,
    full: bool = False,
    skip_migration: bool = False,
) -> int:
    """Run one pass over a document export. Returns an exit code."""
    console = Console(stderr=True)

    try:
        documents = load_documents(input_path)
        if not documents:
            raise SetupFailure(f"No documents in {input_path}")
    except SetupFailure as e:
        console.print(str(e), style="red")
        return 1

    if not skip_migration:
        run_migrate(store_root, console)

    engine = SyncEngine(config, FileStore(store_root))
    report = engine.run(documents, full=full)

    log_pass(
        store_root,
        "full-sync" if full else "sync",
        counts=report.summary(),
        failures=report.failed,
        metadata={"input": str(input_path)},
    )

    console.print(_report_table(report))
    for identity, reason in report.skipped:
        console.print(f"Skipped {identity}: {reason}", style="dim")
    for target, reason in report.failed:
        console.print(f"Failed {target}: {reason}", style="red")
    return 1 if report.failed else 0


def run_validate_pattern(pattern: str, subfolder: bool = False) -> int:
    """Validate a pattern and show what it resolves to for a sample title."""
    from datetime import datetime

    console = Console()
    allowed = DATE_VARIABLES if subfolder else PATTERN_VARIABLES
    try:
        validate_pattern(pattern, allowed)
    except PatternValidationError as e:
        console.print(str(e), style="red")
        return 1

    sample = datetime(2024, 1, 15, 9, 30)
    example = resolve_pattern(pattern, pattern_variables(sample, "Weekly Standup"), allowed)
    console.print("Pattern is valid", style="green")
    console.print(f"Example: [cyan]{example}[/cyan]")
    return 0


def run_log(store_root: Path, last_n: int | None = None) -> int:
    console = Console()
    entries = read_sync_log(store_root, last_n=last_n)
    if not entries:
        console.print("No sync passes recorded", style="dim")
        return 0
    for entry in entries:
        console.print(format_sync_entry(entry), highlight=False)
    return 0
