"""Status command -- resolved version of every module."""

import json

import typer
from rich.table import Table

from ..exceptions import HistverError
from . import app
from ._common import console, fail, open_session


@app.command()
def status(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Show the resolved version of every module of the project.

    [bold cyan]Examples:[/bold cyan]

      histver status

      histver status --json
    """
    try:
        session = open_session(ctx)
        statuses = [session.status(module) for module in session.modules]
    except HistverError as e:
        raise fail(e)

    if json_output:
        print(
            json.dumps(
                {s.module.coordinates: s.as_properties() for s in statuses},
                indent=2,
            )
        )
        return

    table = Table(title="Module Versions", show_lines=False, pad_edge=True)
    table.add_column("Module", style="bold")
    table.add_column("Version", style="green")
    table.add_column("Last tag", style="cyan")
    table.add_column("Last change", style="yellow")
    table.add_column("", style="dim")

    for s in statuses:
        props = s.as_properties()
        table.add_row(
            s.module.coordinates,
            props["version"],
            props["refName"] or "-",
            "HEAD" if s.last_modification.is_dirty else props["lastCommitShort"],
            "snapshot" if s.snapshot else "pristine",
        )

    console.print()
    console.print(table)
    console.print()
