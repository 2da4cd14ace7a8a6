"""History engine: change detection, history scan and version resolution."""

from .cache import MemoTable
from .checker import ModificationChecker
from .git import GitRepository
from .models import (
    Commit,
    FileChange,
    HistoryState,
    LastModification,
    LastTag,
    ResolvedStatus,
    TagRef,
)
from .releases import Release, collect_releases
from .resolver import VersionResolver, protect_branch_name
from .scanner import HistoryScanner

__all__ = [
    "Commit",
    "FileChange",
    "TagRef",
    "LastModification",
    "LastTag",
    "HistoryState",
    "ResolvedStatus",
    "GitRepository",
    "MemoTable",
    "ModificationChecker",
    "HistoryScanner",
    "VersionResolver",
    "protect_branch_name",
    "Release",
    "collect_releases",
]
