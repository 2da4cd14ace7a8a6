"""Tags command -- release tags of one module."""

import typer
from rich.table import Table

from ..exceptions import HistverError
from . import app
from ._common import console, fail, open_session


@app.command()
def tags(
    ctx: typer.Context,
    module: str = typer.Argument(..., help="Module name or group:name"),
):
    """
    List the release tags of a module, newest version first.

    Tags whose version doesn't parse are listed with an ILLEGAL version.
    """
    try:
        found = open_session(ctx).tags(module)
    except HistverError as e:
        raise fail(e)

    if not found:
        console.print(f"[yellow]No tags for {module}.[/yellow]")
        raise typer.Exit(0)

    table = Table(show_lines=False, pad_edge=True)
    table.add_column("Tag", style="bold")
    table.add_column("Version", style="green")
    table.add_column("Commit", style="cyan")

    for tag, tag_version in found:
        table.add_row(tag.short_name, str(tag_version), tag.target[:7])

    console.print(table)
