"""``spectrum-sniff reports``: list stored reports."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import ConfigurationError, StorageError
from ..persistence.reports import SqliteReportStore
from . import app
from ._common import console, fail, resolve_config


@app.command()
def reports(
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Config file"),
    limit: int = typer.Option(
        20, "-n", "--limit", min=1, help="Show the most recent N reports"
    ),
) -> None:
    """Show the most recently stored reports."""
    try:
        settings = resolve_config(config, quiet=True)
        stored = SqliteReportStore(settings.ledger_path).load_reports()
    except (ConfigurationError, StorageError) as exc:
        fail(str(exc))
        raise typer.Exit(1)

    if not stored:
        console.print("[yellow]No reports stored yet[/yellow]")
        return

    table = Table(title=f"Stored reports ({len(stored)})")
    table.add_column("Sample", style="cyan")
    table.add_column("Type")
    table.add_column("Acquired")
    table.add_column("Live time", justify="right")
    table.add_column("Nuclides", justify="right")
    for report in stored[-limit:]:
        table.add_row(
            report.sample_identification or report.sample_title or "-",
            report.sample_type or "-",
            report.acquisition_time.isoformat(sep=" ") if report.acquisition_time else "-",
            f"{report.livetime:g}",
            str(len(report.results)),
        )
    console.print(table)
