"""``spectrum-sniff parse``: inspect a generated report without importing it."""

import json
from pathlib import Path

import typer

from ..exceptions import FileAccessError, ReportParseError
from ..reports.parser import parse_report_file
from . import app
from ._common import console, fail, report_tables


@app.command()
def parse(
    report: Path = typer.Argument(..., help="Report file produced by the report tool"),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
) -> None:
    """Parse a report file and print what would be stored."""
    try:
        parsed = parse_report_file(report)
    except (FileAccessError, ReportParseError) as exc:
        fail(str(exc))
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(parsed.to_dict(), indent=2))
        return

    meta, results = report_tables(parsed)
    console.print(meta)
    console.print(results)
