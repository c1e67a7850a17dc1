"""CLI entrypoint for vaultsync."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import CONFIG_FILENAME, load_config
from .errors import ConfigError


def _configure_logging(verbose: bool) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(__version__, prog_name="vaultsync")
@click.option(
    "--store",
    "-s",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory holding the synced markdown files",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help=f"Config file (defaults to <store>/{CONFIG_FILENAME})",
)
@click.option("--verbose", is_flag=True, help="Log every skip and write")
@click.pass_context
def cli(ctx: click.Context, store: Path, config_path: Path | None, verbose: bool) -> None:
    """vaultsync - Sync meeting notes and transcripts into a markdown vault.

    Notes land as individual files or as sections of daily notes; every file
    is tracked by its source identity, so re-running a sync never duplicates.
    """
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["store"] = store.resolve()
    ctx.obj["config_path"] = config_path


def _load_config(ctx: click.Context):
    path = ctx.obj["config_path"] or ctx.obj["store"] / CONFIG_FILENAME
    if ctx.obj["config_path"] is not None and not path.exists():
        raise click.BadParameter(f"File '{path}' does not exist.", param_hint="--config")
    try:
        return load_config(path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--full", is_flag=True, help="Rewrite every file, even when nothing changed upstream")
@click.option("--skip-migration", is_flag=True, help="Do not normalize legacy metadata first")
@click.pass_context
def sync(ctx: click.Context, input_path: Path, full: bool, skip_migration: bool) -> None:
    """Sync documents from a JSON export into the store.

    INPUT_PATH is a JSON file holding {"docs": [...]} or a bare list of
    documents, each optionally carrying its "transcript" entries.

    Examples:

        vaultsync --store ~/Vault sync export.json

        vaultsync --store ~/Vault sync export.json --full
    """
    from .commands.sync_cmd import run_sync

    config = _load_config(ctx)
    store = ctx.obj["store"]
    if not store.is_dir():
        raise click.BadParameter(f"Directory '{store}' does not exist.", param_hint="--store / -s")

    exit_code = run_sync(store, config, input_path, full=full, skip_migration=skip_migration)
    sys.exit(exit_code)


@cli.command()
@click.pass_context
def migrate(ctx: click.Context) -> None:
    """Normalize legacy metadata blocks (identity suffixes, missing kind)."""
    from .commands.sync_cmd import run_migrate

    report = run_migrate(ctx.obj["store"])
    sys.exit(1 if report.failed else 0)


@cli.command("validate-pattern")
@click.argument("pattern")
@click.option("--subfolder", is_flag=True, help="Validate as a subfolder pattern (date variables only)")
def validate_pattern_cmd(pattern: str, subfolder: bool) -> None:
    """Check a filename or subfolder pattern for unknown variables.

    Examples:

        vaultsync validate-pattern "{date} {title}"

        vaultsync validate-pattern "{year}/{quarter}" --subfolder
    """
    from .commands.sync_cmd import run_validate_pattern

    sys.exit(run_validate_pattern(pattern, subfolder=subfolder))


@cli.command("log")
@click.option("--last", "last_n", type=int, default=None, help="Show only the last N passes")
@click.pass_context
def log_cmd(ctx: click.Context, last_n: int | None) -> None:
    """Show the recorded sync passes."""
    from .commands.sync_cmd import run_log

    sys.exit(run_log(ctx.obj["store"], last_n=last_n))


@cli.command("lsp")
@click.option(
    "--transport",
    type=click.Choice(["stdio", "tcp"]),
    default="stdio",
    show_default=True,
    help="Transport method (stdio for editors, tcp for debugging)",
)
@click.pass_context
def lsp(ctx: click.Context, transport: str) -> None:
    """Start the LSP server so syncs edit open documents in place.

    The client runs the `vaultsync.sync` command with the path of an export;
    sections of daily notes that are open in the editor are updated through
    workspace edits instead of being rewritten on disk.

    Examples:

        vaultsync --store ~/Vault lsp

        vaultsync --store ~/Vault lsp --transport tcp
    """
    from .lsp import start_server

    start_server(store_root=ctx.obj["store"], config_path=ctx.obj["config_path"], transport=transport)


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
