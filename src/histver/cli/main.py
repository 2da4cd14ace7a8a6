"""Global options shared by every command."""

from pathlib import Path
from typing import List, Optional

import typer

from ..config import parse_define
from ..exceptions import HistverError
from ..logging_config import setup_logging
from . import app
from ._common import console, fail


@app.callback(invoke_without_command=True, no_args_is_help=False)
def main(
    ctx: typer.Context,
    path: Optional[Path] = typer.Option(
        None,
        "-C",
        "--path",
        help="Project root holding the root pyproject.toml (default: current directory)",
        exists=True,
        file_okay=False,
        dir_okay=True,
        readable=True,
    ),
    defines: Optional[List[str]] = typer.Option(
        None,
        "-D",
        "--define",
        help="Override a setting, e.g. -D increment=patch (repeatable)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Trace every history decision",
    ),
    trace: Optional[List[str]] = typer.Option(
        None,
        "--trace",
        help="Trace the history decisions about this module only (repeatable)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only log errors",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also write logs to this file",
        hidden=True,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit",
    ),
):
    """
    Derive module versions from the git history instead of manifests.

    A module keeps its last tagged version while neither its observed files
    nor its dependencies changed; otherwise it gets the next SNAPSHOT version.

    [bold cyan]Examples:[/bold cyan]

      histver status

      histver -C /path/to/project version alpha

      histver -D increment=patch status --json
    """
    if version:
        from .. import __version__

        console.print(f"[bold cyan]histver[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)

    setup_logging(
        verbose=verbose,
        quiet=quiet,
        log_file=str(log_file) if log_file else None,
        trace=trace,
    )

    try:
        overrides = dict(parse_define(d) for d in defines or [])
    except HistverError as e:
        raise fail(e)

    # Store global options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["path"] = Path(path) if path else Path.cwd()
    ctx.obj["defines"] = overrides

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)
