"""CLI entry point — registers all subcommands."""

import typer

app = typer.Typer(
    name="histver",
    help="histver - History-based semantic versioning for multi-module projects",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .main import main as _main_callback  # noqa: F401, E402
from .status import status as _status  # noqa: F401, E402
from .version import version as _version  # noqa: F401, E402
from .tags import tags as _tags  # noqa: F401, E402
from .changes import changes as _changes  # noqa: F401, E402
from .files import files as _files  # noqa: F401, E402
