"""
Logging configuration for histver.

History decisions are logged at DEBUG level through per-module adapters
(``module_logger``), so a trace can be narrowed to the modules being
investigated with ``setup_logging(trace=[...])``.
"""

import logging
from typing import Any, Iterable, Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "histver"

# LogRecord attribute holding the coordinates of the module a record is about
MODULE_ATTR = "histver_module"


class ModuleTraceFilter(logging.Filter):
    """Drops DEBUG records about modules outside ``modules``.

    Modules are named by name or by ``group:name``. Records not tagged with
    a module, and records above DEBUG, always pass. An empty selection lets
    everything through.
    """

    def __init__(self, modules: Iterable[str] = ()):
        super().__init__()
        self.modules = frozenset(m.strip() for m in modules if m.strip())

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.modules or record.levelno > logging.DEBUG:
            return True
        coordinates = getattr(record, MODULE_ATTR, None)
        if coordinates is None:
            return True
        return coordinates in self.modules or coordinates.partition(":")[2] in self.modules


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[str] = None,
    trace: Optional[Iterable[str]] = None,
) -> logging.Logger:
    """
    Configure logging with rich handler for colored output.

    Args:
        verbose: Enable DEBUG level logging (every history decision is traced)
        quiet: Suppress all but ERROR level logging
        log_file: Optional file path to write logs to
        trace: Module names whose history decisions are traced; implies
            verbose and hides the decisions about other modules

    Returns:
        Configured logger instance for histver
    """
    selected = list(trace or ())
    if quiet:
        level = logging.ERROR
    elif verbose or selected:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    console = Console(stderr=True)

    handlers: list[logging.Handler] = [
        RichHandler(
            console=console,
            rich_tracebacks=True,
            tracebacks_show_locals=level == logging.DEBUG,
            markup=False,
            show_time=True,
            show_path=level == logging.DEBUG,
        )
    ]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        handlers.append(file_handler)

    trace_filter = ModuleTraceFilter(selected)
    for handler in handlers:
        handler.addFilter(trace_filter)

    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Logger of a histver module, the root histver logger for None."""
    if name is None:
        return logging.getLogger(ROOT_LOGGER)

    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"

    return logging.getLogger(name)


def module_logger(logger: logging.Logger, module: Any) -> logging.LoggerAdapter:
    """Adapter tagging the records of ``logger`` with a module's coordinates.

    ``module`` is a ModuleId or anything with an ``id`` attribute holding one.
    """
    module_id = getattr(module, "id", module)
    return logging.LoggerAdapter(logger, {MODULE_ATTR: module_id.coordinates})
