"""Module identities and definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from ..exceptions import InvalidConfigError


@dataclass(frozen=True, order=True)
class ModuleId:
    """(group, name) identity of a module, ordered by group then name."""

    group: str
    name: str

    def __str__(self) -> str:
        return self.name

    @property
    def coordinates(self) -> str:
        return f"{self.group}:{self.name}"

    @classmethod
    def parse(cls, value: str) -> "ModuleId":
        """Parse ``group:name``."""
        group, sep, name = value.partition(":")
        if not sep or not group.strip() or not name.strip() or ":" in name:
            raise InvalidConfigError("module", value, "expected group:name")
        return cls(group.strip(), name.strip())


@dataclass(frozen=True)
class Module:
    """A versioned unit of the project.

    Attributes:
        id: identity of the module
        packaging: "aggregate" for a module listing sub-modules, "package" otherwise
        working_dir: absolute directory holding the manifest
        manifest: absolute path of the manifest file
        parent_id: enclosing aggregator module, if any
        dependency_ids: modules of the project this module depends on
        submodules: sub-module directories declared by the manifest
    """

    id: ModuleId
    packaging: str
    working_dir: Path
    manifest: Path
    parent_id: Optional[ModuleId] = None
    dependency_ids: frozenset[ModuleId] = field(default_factory=frozenset)
    submodules: frozenset[str] = field(default_factory=frozenset)

    @property
    def group(self) -> str:
        return self.id.group

    @property
    def name(self) -> str:
        return self.id.name

    def __str__(self) -> str:
        return str(self.id)


def format_ids(ids: Iterable[ModuleId]) -> str:
    return ",".join(i.coordinates for i in ids)
