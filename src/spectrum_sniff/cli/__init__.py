"""CLI entry point: registers all subcommands."""

import typer

app = typer.Typer(
    name="spectrum-sniff",
    help="Spectrum Sniff - import gamma spectrum reports from a watched directory",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .run import run as _run, scan as _scan  # noqa: F401, E402
from .parse import parse as _parse  # noqa: F401, E402
from .reports import reports as _reports  # noqa: F401, E402


def main() -> None:
    app()
