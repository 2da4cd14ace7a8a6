"""Exception hierarchy for histver."""

from .base import HistverError
from .config import (
    ConfigurationError,
    CyclicDependencyError,
    HistoryBoundaryError,
    InvalidConfigError,
    UnknownModuleError,
)
from .repository import ManifestError, RepositoryError

__all__ = [
    "HistverError",
    "ConfigurationError",
    "InvalidConfigError",
    "UnknownModuleError",
    "CyclicDependencyError",
    "HistoryBoundaryError",
    "RepositoryError",
    "ManifestError",
]
