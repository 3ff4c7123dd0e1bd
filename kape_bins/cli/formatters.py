"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from kape_bins.models.config import SyncConfig
from kape_bins.models.report import DownloadReference, ItemStatus, RunReport
from kape_bins.utils.formatting import format_duration, format_size

STATUS_STYLES = {
    ItemStatus.DOWNLOADED: "green",
    ItemStatus.EXTRACTED: "green",
    ItemStatus.COPIED: "green",
    ItemStatus.SKIPPED: "yellow",
    ItemStatus.PLANNED: "cyan",
    ItemStatus.NOT_FOUND: "dim",
    ItemStatus.FAILED: "red",
}


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Check the values in your kape-bins.ini file.",
            "• Run `kape-bins init --force` to write a fresh default configuration.",
        ],
        "FetchError": [
            "• Check your internet connection.",
            "• The download location may have moved; check the module's BinaryUrl.",
        ],
        "PermissionError": [
            "• Make sure you can write to the cache directory.",
            "• A promoted executable may be in use by another process.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_summary_panel(report: RunReport, console: Console | None = None):
    """Displays the final summary of a sync run."""
    console = console or Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Module files:", str(report.module_files))
    table.add_row("References:", str(len(report.downloads)))
    if report.dry_run:
        table.add_row(
            "Would download:", f"[cyan]{report.count(ItemStatus.PLANNED)}[/cyan]"
        )
    else:
        table.add_row(
            "Downloaded:", f"[green]{report.count(ItemStatus.DOWNLOADED)}[/green]"
        )
        table.add_row(
            "Extracted:", f"[green]{report.count(ItemStatus.EXTRACTED)}[/green]"
        )
    table.add_row(
        "Already present:", f"[yellow]{report.count(ItemStatus.SKIPPED)}[/yellow]"
    )
    table.add_row("Failed:", f"[red]{report.count(ItemStatus.FAILED)}[/red]")
    if report.promotions:
        table.add_row(
            "Promoted:",
            f"{report.count(ItemStatus.COPIED, promotions=True)}"
            f" of {len(report.promotions)}",
        )
    table.add_row("Total size:", format_size(report.total_size_downloaded))
    table.add_row("Duration:", format_duration(report.duration))

    failures = report.failures
    border = "yellow" if failures else "green"
    title = "Dry Run Summary" if report.dry_run else "Sync Summary"
    console.print(Panel(table, title=f"[bold]{title}[/bold]", border_style=border))

    if failures:
        fail_table = Table(title="Failures", box=box.SIMPLE)
        fail_table.add_column("Item", style="cyan", overflow="fold")
        fail_table.add_column("Reason", style="red")
        for item in failures:
            fail_table.add_row(item.subject, item.message)
        console.print(fail_table)


def print_scan_table(
    cache_dir: Path,
    modules: list[tuple[Path, list[DownloadReference]]],
    console: Console | None = None,
):
    """Displays every module file with the binaries it declares."""
    console = console or Console()
    table = Table(title="Binary references", box=box.SIMPLE_HEAVY)
    table.add_column("Module", style="dim")
    table.add_column("File", style="cyan")
    table.add_column("Cached", justify="center")
    table.add_column("URL", overflow="fold")

    for module_path, references in modules:
        for reference in references:
            cached = bool(reference.filename) and (
                cache_dir / reference.filename
            ).exists()
            table.add_row(
                module_path.name,
                reference.filename or "[red]?[/red]",
                "[green]✓[/green]" if cached else "[yellow]✗[/yellow]",
                reference.url,
            )

    console.print(table)


def print_config(config: SyncConfig, console: Console | None = None):
    """Displays the effective configuration."""
    console = console or Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Root:", str(config.root_dir))
    table.add_row("Cache directory:", str(config.cache_dir))
    table.add_row("Module extension:", config.module_extension)
    table.add_row("URL prefix:", config.url_prefix)
    table.add_row(
        "Timeouts:",
        f"connect {config.connect_timeout:g}s, read {config.read_timeout:g}s",
    )
    table.add_row("Promote:", "✓ Enabled" if config.promote else "✗ Disabled")
    table.add_row(
        "Copy mappings:", "\n".join(m.source for m in config.copy_mappings) or "-"
    )

    console.print(
        Panel(
            table,
            title=f"Configuration ([dim]{config.config_path}[/dim])",
            border_style="cyan",
        )
    )
