"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from kape_bins import __version__
from kape_bins.core.promoter import promote_binaries
from kape_bins.core.scanner import find_module_files, read_module_references
from kape_bins.core.sync_manager import SyncManager
from kape_bins.exceptions import KapeBinsError
from kape_bins.models.config import SyncConfig
from kape_bins.models.report import ItemStatus, RunReport
from kape_bins.storage.config_manager import ConfigManager

from .formatters import print_config, print_scan_table, print_summary_panel

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("kape_bins")

app = typer.Typer(
    name="kape-bins",
    help=(
        "Download the binaries referenced by KAPE module files into a local 'bin'"
        " directory. Runs 'sync' when no command is given."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)

ROOT_ARGUMENT = typer.Argument(
    Path("."),
    help="Directory to scan recursively for .mkape module files.",
    file_okay=False,
    resolve_path=True,
)
CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="INI configuration file (default: kape-bins.ini in the root directory).",
    dir_okay=False,
)
CACHE_DIR_OPTION = typer.Option(
    None,
    "--cache-dir",
    help="Name of the cache directory below the root (default: bin).",
)


def _load_config(
    root: Path, config_file: Path | None, cli_options: dict | None = None
) -> SyncConfig:
    """Loads the effective configuration, exiting with code 1 when it is invalid."""
    if config_file is not None:
        manager = ConfigManager(config_file)
    else:
        manager = ConfigManager.for_root(root)
    options = {k: v for k, v in (cli_options or {}).items() if v is not None}
    try:
        return manager.load_config(root, options, required=config_file is not None)
    except KapeBinsError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e


def _run_sync(
    root: Path,
    config_file: Path | None = None,
    cache_dir: str | None = None,
    dry_run: bool = False,
    promote: bool | None = None,
) -> RunReport:
    config = _load_config(
        root,
        config_file,
        {"cache_dir_name": cache_dir, "dry_run": dry_run, "promote": promote},
    )
    manager = SyncManager(config)

    if config.dry_run:
        console.print("[bold cyan]Starting dry run...[/bold cyan]")
    else:
        console.print(
            f"[bold cyan]Syncing binaries into [/bold cyan][dim]{config.cache_dir}[/dim]"
        )

    report = asyncio.run(manager.execute())
    print_summary_panel(report, console)
    return report


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """KAPE module binary downloader"""
    if version:
        console.print(f"[bold]kape-bins[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("kape_bins").setLevel(log_level)

    if ctx.invoked_subcommand is None:
        _run_sync(Path.cwd())


@app.command(name="sync")
def sync_command(
    root: Path = ROOT_ARGUMENT,
    config_file: Path | None = CONFIG_OPTION,
    cache_dir: str | None = CACHE_DIR_OPTION,
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="List what would be downloaded without touching the network or disk.",
    ),
    promote: bool | None = typer.Option(
        None,
        "--promote/--no-promote",
        help="Copy known executables from extracted folders to the cache root.",
    ),
):
    """Download, extract and promote every referenced binary."""
    _run_sync(root, config_file, cache_dir, dry_run, promote)


@app.command(name="scan")
def scan_command(
    root: Path = ROOT_ARGUMENT,
    config_file: Path | None = CONFIG_OPTION,
    cache_dir: str | None = CACHE_DIR_OPTION,
):
    """List module files and the binaries they reference."""
    config = _load_config(root, config_file, {"cache_dir_name": cache_dir})

    modules = []
    for module_path in find_module_files(config.root_dir, config.module_extension):
        references = read_module_references(module_path, config.url_prefix)
        if references:
            modules.append((module_path, references))

    if not modules:
        console.print("[yellow]No binary references found.[/yellow]")
        return
    print_scan_table(config.cache_dir, modules, console)


@app.command(name="promote")
def promote_command(
    root: Path = ROOT_ARGUMENT,
    config_file: Path | None = CONFIG_OPTION,
    cache_dir: str | None = CACHE_DIR_OPTION,
):
    """Copy known executables from extracted folders to the cache root."""
    config = _load_config(root, config_file, {"cache_dir_name": cache_dir})
    if not config.cache_dir.is_dir():
        console.print(
            f"[yellow]Cache directory does not exist yet:[/] {config.cache_dir}"
        )
        return

    results = promote_binaries(config.cache_dir, config.copy_mappings)
    copied = sum(1 for r in results if r.status is ItemStatus.COPIED)
    console.print(f"[green]✓ Promoted {copied} of {len(results)} executables.[/green]")


@app.command(name="config")
def config_command(
    root: Path = ROOT_ARGUMENT,
    config_file: Path | None = CONFIG_OPTION,
):
    """Display the effective configuration."""
    print_config(_load_config(root, config_file), console)


@app.command()
def init(
    root: Path = ROOT_ARGUMENT,
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration file."
    ),
):
    """Write a configuration file with the default settings."""
    config_manager = ConfigManager.for_root(root)
    if (
        config_manager.config_file_path.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    try:
        config_manager.save_new_config()
    except KapeBinsError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e
    console.print(
        f"[bold green]✓ Configuration saved to "
        f"'{config_manager.config_file_path}'[/bold green]"
    )
