"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import SniffConfig, load_config
from ..logging_config import setup_logging
from ..models import SpectrumReport
from ..pipeline.coordinator import PipelineStats

console = Console()


def resolve_config(
    config: Optional[Path] = None,
    watch_dir: Optional[Path] = None,
    file_filter: Optional[str] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> SniffConfig:
    """Build configuration from CLI options and set up logging."""
    overrides = {
        "watch_directory": str(watch_dir) if watch_dir is not None else None,
        "file_filter": file_filter,
        "verbose": verbose,
        "quiet": quiet,
    }
    settings = load_config(config_file=config, **overrides)
    setup_logging(
        verbose=settings.verbosity == "verbose",
        quiet=settings.verbosity == "quiet",
        log_file=settings.log_file,
    )
    return settings


def fail(message: str) -> None:
    console.print(f"[red]{escape(message)}[/red]")


def stats_table(title: str, stats: PipelineStats) -> Table:
    table = Table(title=title, show_header=False, box=None, padding=(0, 1))
    table.add_column("outcome", style="bold")
    table.add_column("count", justify="right")
    table.add_row("Imported", f"[green]{stats.imported}[/green]")
    table.add_row("Already imported", str(stats.duplicate))
    table.add_row("Vanished", str(stats.missing))
    table.add_row("Failed", f"[red]{stats.failed}[/red]" if stats.failed else "0")
    return table


def report_tables(report: SpectrumReport) -> tuple[Table, Table]:
    """Metadata and results tables for one report."""
    meta = Table(show_header=False, box=None, padding=(0, 1))
    meta.add_column("field", style="bold")
    meta.add_column("value")
    for key, value in report.to_dict().items():
        if key == "results" or value in ("", None):
            continue
        meta.add_row(key.replace("_", " ").capitalize(), escape(str(value)))

    results = Table(title="Results")
    results.add_column("Nuclide", style="cyan")
    results.add_column("Activity", justify="right")
    results.add_column("Uncertainty", justify="right")
    results.add_column("MDA", justify="right")
    for r in report.results:
        results.add_row(
            r.nuclide_name,
            f"{r.activity:.4g}",
            f"{r.activity_uncertainty:.4g}",
            f"{r.mda:.4g}",
        )
    return meta, results
