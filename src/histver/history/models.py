"""Data models for history-based version resolution."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..project.models import ModuleId
from ..semver import SemVer

ZERO_ID = "0" * 40
SHORT_ID_LENGTH = 7


@dataclass(frozen=True)
class Commit:
    sha: str
    parents: tuple[str, ...]
    timestamp: datetime  # committer date, timezone aware
    subject: str = ""

    @property
    def short(self) -> str:
        return self.sha[:SHORT_ID_LENGTH]

    @property
    def first_parent(self) -> Optional[str]:
        return self.parents[0] if self.parents else None

    def __str__(self) -> str:
        return self.short


@dataclass(frozen=True)
class FileChange:
    """One entry of a raw tree diff. Blob ids are ZERO_ID when absent."""

    status: str  # "A"dded, "D"eleted, "M"odified, "T"ype changed, "?" untracked
    path: str  # relative to the repository root
    old_mode: str = "000000"
    new_mode: str = "000000"
    old_blob: str = ZERO_ID
    new_blob: str = ZERO_ID

    @property
    def is_add_or_delete(self) -> bool:
        return self.status in ("A", "D", "?")


@dataclass(frozen=True)
class TagRef:
    name: str  # complete ref name, refs/tags/...
    target: str  # commit id, annotated tags peeled

    @property
    def short_name(self) -> str:
        return self.name[len("refs/tags/"):] if self.name.startswith("refs/tags/") else self.name


@dataclass(frozen=True)
class LastModification:
    """Most recent point in history that changed a module.

    Attributes:
        seniority: first-parent distance from HEAD, 0 for the working tree
        commit: modifying commit, None when dirty
        timestamp: commit date, or the session start when dirty
        module: module whose content changed; a dependency when inherited
    """

    seniority: int
    commit: Optional[Commit]
    timestamp: datetime
    module: ModuleId

    @classmethod
    def dirty(cls, module: ModuleId, timestamp: datetime) -> "LastModification":
        return cls(0, None, timestamp, module)

    @classmethod
    def at(cls, seniority: int, commit: Commit, module: ModuleId) -> "LastModification":
        return cls(seniority, commit, commit.timestamp, module)

    @property
    def is_dirty(self) -> bool:
        return self.commit is None

    @property
    def sha(self) -> str:
        return ZERO_ID if self.commit is None else self.commit.sha

    @property
    def ref_name(self) -> str:
        return "HEAD" if self.commit is None else self.commit.short


@dataclass(frozen=True)
class LastTag:
    commit: Optional[Commit]
    ref_name: str  # short ref name, e.g. alpha/1.0.0; "" when never tagged
    version: SemVer

    @classmethod
    def never_tagged(cls, init_version: SemVer) -> "LastTag":
        return cls(None, "", init_version)

    @property
    def is_tagged(self) -> bool:
        return self.commit is not None

    @property
    def sha(self) -> str:
        return ZERO_ID if self.commit is None else self.commit.sha


@dataclass(frozen=True)
class HistoryState:
    last_modification: LastModification
    last_tag: LastTag

    @property
    def is_tagged(self) -> bool:
        return self.last_tag.is_tagged


@dataclass(frozen=True)
class ResolvedStatus:
    """Final versioning status of a module."""

    module: ModuleId
    last_modification: LastModification
    last_tag: LastTag
    base_version: SemVer
    snapshot: bool
    version: SemVer

    @property
    def pristine(self) -> bool:
        return not self.snapshot

    def as_properties(self) -> dict[str, str]:
        """String properties for build tooling and templates."""
        last_commit = self.last_modification.sha
        tag_commit = self.last_tag.sha
        return {
            "lastCommit": last_commit,
            "lastCommitShort": last_commit[:SHORT_ID_LENGTH],
            "lastModification": self.last_modification.timestamp.isoformat(timespec="seconds"),
            "tagCommit": tag_commit,
            "tagCommitShort": tag_commit[:SHORT_ID_LENGTH],
            "refName": self.last_tag.ref_name,
            "baseVersion": str(self.base_version),
            "snapshot": str(self.snapshot).lower(),
            "pristine": str(self.pristine).lower(),
            "version": str(self.version),
        }
