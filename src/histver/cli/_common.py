"""Shared CLI helpers."""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from ..session import ResolutionSession

console = Console()


def open_session(ctx: typer.Context) -> ResolutionSession:
    """Build the session of the project selected by the global options."""
    obj = ctx.obj or {}
    return ResolutionSession.open(obj.get("path", Path.cwd()), overrides=obj.get("defines"))


def fail(error: Exception) -> typer.Exit:
    """Report a library error; the caller raises the returned ``Exit``."""
    console.print(f"[red]Error:[/red] {escape(str(error))}", highlight=False)
    return typer.Exit(1)
