"""Files command -- observed files of one module."""

import typer

from ..exceptions import HistverError
from . import app
from ._common import fail, open_session


@app.command()
def files(
    ctx: typer.Context,
    module: str = typer.Argument(..., help="Module name or group:name"),
):
    """
    List the files of a module whose changes make a new version.

    Paths are relative to the module directory.
    """
    try:
        observed = open_session(ctx).observed_files(module)
    except HistverError as e:
        raise fail(e)

    for path in observed:
        print(path)
