"""Version command -- resolved version of one module."""

import typer

from ..exceptions import HistverError
from . import app
from ._common import fail, open_session


@app.command()
def version(
    ctx: typer.Context,
    module: str = typer.Argument(..., help="Module name or group:name"),
):
    """
    Print the resolved version of a module, nothing else.

    [bold cyan]Examples:[/bold cyan]

      histver version alpha

      histver version acme:alpha
    """
    try:
        resolved = open_session(ctx).resolve_version(module)
    except HistverError as e:
        raise fail(e)

    print(resolved)
