"""Changes command -- modifying commits of a module, grouped by release."""

import json
from typing import Optional

import typer
from rich.markup import escape

from ..exceptions import HistverError
from . import app
from ._common import console, fail, open_session


@app.command()
def changes(
    ctx: typer.Context,
    module: str = typer.Argument(..., help="Module name or group:name"),
    from_ref: Optional[str] = typer.Option(
        None,
        "--from",
        help="Stop at this revision, tag version or 'root' (default: second last tag)",
    ),
    to_ref: str = typer.Option(
        "HEAD",
        "--to",
        help="Start from this revision or tag version",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Show the commits modifying a module or its dependencies, grouped by release.

    [bold cyan]Examples:[/bold cyan]

      histver changes alpha

      histver changes alpha --from root

      histver changes alpha --from 1.0.0 --to 1.2.0 --json
    """
    try:
        releases = open_session(ctx).releases(module, from_ref, to_ref)
    except HistverError as e:
        raise fail(e)

    if json_output:
        print(json.dumps([r.as_dict() for r in releases], indent=2))
        return

    for release in releases:
        title = release.tag_name if release.released else "Unreleased"
        console.print(f"[bold cyan]{title}[/bold cyan]")
        if not release.commits:
            console.print("  [dim]no changes[/dim]")
        for commit in reversed(release.commits):
            console.print(
                f"  [yellow]{commit.short}[/yellow] {escape(commit.subject)} "
                f"[dim]({commit.timestamp:%Y-%m-%d})[/dim]",
                highlight=False,
            )
        console.print()
