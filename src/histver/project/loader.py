"""Multi-module project discovery from a tree of ``pyproject.toml`` files.

The root manifest may aggregate sub-directories::

    [tool.histver]
    group = "acme"
    modules = ["libs/alpha", "libs/beta"]

Every manifest with a ``[project] name`` is a module. Requirements naming
another module of the project become dependencies, matched by their
canonical (PEP 503) name.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from ..exceptions import ConfigurationError, ManifestError
from ..logging_config import get_logger
from .graph import ModuleGraph
from .manifest import MANIFEST_NAME, read_manifest
from .models import Module, ModuleId

logger = get_logger(__name__)

DEFAULT_GROUP = "default"


@dataclass
class _Entry:
    """A module found while walking manifests, dependencies still unresolved."""

    id: ModuleId
    working_dir: Path
    manifest: Path
    parent_id: Optional[ModuleId]
    requirements: list[str] = field(default_factory=list)
    explicit: list[ModuleId] = field(default_factory=list)
    submodules: list[str] = field(default_factory=list)


def load_project(root: Path) -> ModuleGraph:
    """Build the module graph of the project rooted at ``root``.

    Raises:
        ManifestError: If a manifest is missing or invalid
        ConfigurationError: If dependencies are ambiguous or the graph is cyclic
    """
    root = Path(root).resolve()
    entries: list[_Entry] = []
    _visit(root, DEFAULT_GROUP, None, entries, set())

    by_name: dict[str, list[ModuleId]] = defaultdict(list)
    for entry in entries:
        by_name[canonicalize_name(entry.id.name)].append(entry.id)

    modules = [_resolve(entry, by_name) for entry in entries]
    graph = ModuleGraph(modules)
    logger.debug("Loaded %d modules from %s", len(graph), root)
    return graph


def _visit(
    directory: Path,
    inherited_group: str,
    parent_id: Optional[ModuleId],
    entries: list[_Entry],
    visited: set[Path],
) -> None:
    manifest = directory / MANIFEST_NAME
    if manifest in visited:
        raise ManifestError(manifest, "manifest is aggregated twice")
    visited.add(manifest)

    if not manifest.is_file():
        raise ManifestError(manifest, "no such file")
    document = read_manifest(manifest)

    project = document.get("project", {})
    settings = document.get("tool", {}).get("histver", {})
    if not isinstance(project, dict) or not isinstance(settings, dict):
        raise ManifestError(manifest, "[project] and [tool.histver] must be tables")

    group = settings.get("group", inherited_group)
    submodules = _string_list(settings, "modules", manifest)

    entry = None
    name = project.get("name")
    if name:
        entry = _Entry(
            id=ModuleId(str(group), str(name)),
            working_dir=directory,
            manifest=manifest,
            parent_id=parent_id,
            requirements=_requirements(project, manifest),
            explicit=[ModuleId.parse(d) for d in _string_list(settings, "dependencies", manifest)],
            submodules=submodules,
        )
        entries.append(entry)
        logger.debug("Module %s in %s", entry.id.coordinates, directory)

    child_parent = entry.id if entry is not None else parent_id
    for sub in submodules:
        sub_dir = (directory / sub).resolve()
        _visit(sub_dir, str(group), child_parent, entries, visited)


def _resolve(entry: _Entry, by_name: dict[str, list[ModuleId]]) -> Module:
    dependencies: set[ModuleId] = set(entry.explicit)
    for requirement in entry.requirements:
        candidates = by_name.get(canonicalize_name(requirement), [])
        if len(candidates) > 1:
            raise ConfigurationError(
                f"Dependency {requirement} of {entry.id.coordinates} matches several modules",
                details={"candidates": ",".join(c.coordinates for c in sorted(candidates))},
            )
        if candidates and candidates[0] != entry.id:
            dependencies.add(candidates[0])

    return Module(
        id=entry.id,
        packaging="aggregate" if entry.submodules else "package",
        working_dir=entry.working_dir,
        manifest=entry.manifest,
        parent_id=entry.parent_id,
        dependency_ids=frozenset(dependencies),
        submodules=frozenset(entry.submodules),
    )


def _requirements(project: dict, manifest: Path) -> list[str]:
    """Distribution names required by ``[project]``, optional ones included."""
    specs = list(project.get("dependencies", []))
    for group_specs in project.get("optional-dependencies", {}).values():
        specs.extend(group_specs)

    names = []
    for spec in specs:
        try:
            names.append(Requirement(spec).name)
        except InvalidRequirement as e:
            raise ManifestError(manifest, f"invalid requirement {spec!r}: {e}")
    return names


def _string_list(table: dict, key: str, manifest: Path) -> list[str]:
    value = table.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ManifestError(manifest, f"tool.histver.{key} must be a list of strings")
    return value
