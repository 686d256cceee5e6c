"""``spectrum-sniff run`` and ``spectrum-sniff scan``."""

from pathlib import Path
from typing import Optional

import typer

from ..exceptions import ConfigurationError, InstanceAlreadyRunningError, LedgerError
from ..instance import InstanceLock
from ..service import SniffService
from . import app
from ._common import console, fail, resolve_config, stats_table


@app.command()
def run(
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Config file"),
    watch_dir: Optional[Path] = typer.Option(None, "--watch-dir", help="Directory to watch"),
    file_filter: Optional[str] = typer.Option(None, "--filter", help="Spectrum file glob"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
    quiet: bool = typer.Option(False, "-q", "--quiet", help="Only log errors"),
) -> None:
    """Import existing spectra, then watch for new ones until Ctrl+C."""
    try:
        settings = resolve_config(config, watch_dir, file_filter, verbose, quiet)
        service = SniffService(settings)
        with InstanceLock(settings.lock_path):
            console.print(
                f"[bold]Watching[/bold] {settings.watch_directory} for {settings.file_filter}"
            )
            console.print("[dim]Press Ctrl+C to stop[/dim]")
            service.run_forever()
    except (ConfigurationError, InstanceAlreadyRunningError, LedgerError) as exc:
        fail(str(exc))
        raise typer.Exit(1)

    console.print("[dim]Stopped.[/dim]")


@app.command()
def scan(
    config: Optional[Path] = typer.Option(None, "-c", "--config", help="Config file"),
    watch_dir: Optional[Path] = typer.Option(None, "--watch-dir", help="Directory to scan"),
    file_filter: Optional[str] = typer.Option(None, "--filter", help="Spectrum file glob"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
    quiet: bool = typer.Option(False, "-q", "--quiet", help="Only log errors"),
) -> None:
    """Import every spectrum not yet imported, then exit."""
    try:
        settings = resolve_config(config, watch_dir, file_filter, verbose, quiet)
        with InstanceLock(settings.lock_path):
            stats = SniffService(settings).scan()
    except (ConfigurationError, InstanceAlreadyRunningError, LedgerError) as exc:
        fail(str(exc))
        raise typer.Exit(1)

    console.print(stats_table(f"Scan of {settings.watch_directory}", stats))
    if stats.failed:
        raise typer.Exit(2)
