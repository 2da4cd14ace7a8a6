"""
histver - History-based semantic versioning for multi-module projects

Module versions are not stored in manifests: they are derived from the git
history. A module whose observed files (and dependencies) did not change
since its last release tag keeps the tagged version; any other module gets
the next ``SNAPSHOT`` version.
"""

__version__ = "0.1.0"

from .config import ConfigLoader, ModuleConfig
from .history.models import HistoryState, LastModification, LastTag, ResolvedStatus
from .history.releases import Release
from .pathfilter import PathFilter, PathFilterResult
from .project import Module, ModuleGraph, ModuleId
from .semver import IncrementPart, SemVer, compare_versions, parse_version
from .session import ResolutionSession

__all__ = [
    "ResolutionSession",  # Main entry point
    "SemVer",
    "IncrementPart",
    "parse_version",
    "compare_versions",
    "PathFilter",
    "PathFilterResult",
    "ModuleId",
    "Module",
    "ModuleGraph",
    "ModuleConfig",
    "ConfigLoader",
    "HistoryState",
    "LastModification",
    "LastTag",
    "ResolvedStatus",
    "Release",
]
