"""Resolution session: the single source of truth for one versioning run.

A session holds the module graph, the repository and every memo table of
the run. Nothing is shared between sessions, so a new session sees a new
state of the repository.

Example:
    >>> from histver.session import ResolutionSession
    >>>
    >>> session = ResolutionSession.open("/path/to/project")
    >>> str(session.resolve_version("alpha"))
    '1.1.0-SNAPSHOT'
    >>> session.status("acme:alpha").pristine
    False
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from .config import ConfigLoader, ModuleConfig
from .history.git import GitRepository
from .history.models import HistoryState, ResolvedStatus, TagRef
from .history.releases import Release, collect_releases
from .history.resolver import VersionResolver
from .history.scanner import HistoryScanner
from .logging_config import get_logger
from .pathfilter import iter_observed_files
from .project.graph import ModuleGraph, ModuleRef
from .project.loader import load_project
from .project.models import Module
from .project.tags import short_tag
from .semver import SemVer

logger = get_logger(__name__)


class ResolutionSession:
    """Resolves versions of the modules of one project.

    Attributes:
        graph: modules of the project
        repository: git work tree holding the project
        configs: per-directory configuration
        scanner: history states, memoized per module
        resolver: resolved statuses, memoized per module
    """

    def __init__(
        self,
        graph: ModuleGraph,
        repository: GitRepository,
        configs: ConfigLoader,
        start_time: Optional[datetime] = None,
        branch: Optional[str] = None,
    ):
        self.graph = graph
        self.repository = repository
        self.configs = configs
        self.scanner = HistoryScanner(graph, repository, configs, start_time)
        self.resolver = VersionResolver(self.scanner, branch)

    @classmethod
    def open(
        cls,
        path: Union[str, Path] = ".",
        overrides: Optional[Mapping[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ResolutionSession":
        """Open the project whose root manifest is in ``path``.

        Raises:
            RepositoryError: If ``path`` is not inside a git work tree
            ManifestError: If a manifest of the project can't be loaded
            ConfigurationError: If the configuration or the module graph is invalid
        """
        path = Path(path).resolve()
        repository = GitRepository(path)
        graph = load_project(path)
        configs = ConfigLoader(repository.root, overrides, environ)
        logger.debug("Session on %s: %d modules", path, len(graph))
        return cls(graph, repository, configs)

    @property
    def start_time(self) -> datetime:
        return self.scanner.start_time

    @property
    def branch(self) -> str:
        return self.resolver.branch

    @property
    def modules(self) -> list[Module]:
        return list(self.graph)

    def module(self, ref: ModuleRef) -> Module:
        return self.graph.get(ref)

    def config(self, ref: ModuleRef) -> ModuleConfig:
        return self.scanner.config(ref)

    # ── Resolution ─────────────────────────────────────────────────

    def history_state(self, ref: ModuleRef) -> HistoryState:
        return self.scanner.resolve(ref)

    def status(self, ref: ModuleRef) -> ResolvedStatus:
        return self.resolver.resolve(ref)

    def resolve_version(self, ref: ModuleRef) -> SemVer:
        return self.resolver.resolve_version(ref)

    # ── Release support ────────────────────────────────────────────

    def release_tag(self, ref: ModuleRef, version: Union[str, SemVer]) -> str:
        """Name of the tag releasing ``version`` of a module."""
        if isinstance(version, str):
            version = SemVer.parse(version)
        return short_tag(self.graph.get(ref).id, version)

    def tags(self, ref: ModuleRef) -> list[tuple[TagRef, SemVer]]:
        return self.scanner.module_tags(ref)

    def releases(
        self, ref: ModuleRef, from_ref: Optional[str] = None, to_ref: str = "HEAD"
    ) -> list[Release]:
        return collect_releases(self.scanner, ref, from_ref, to_ref)

    def observed_files(self, ref: ModuleRef) -> list[str]:
        """Files of the module directory whose changes make a new version."""
        module = self.graph.get(ref)
        return list(iter_observed_files(module.working_dir, self.config(module).observed_filter))
