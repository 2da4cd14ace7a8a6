"""Single-pass history scan: last modification and last tag of each module."""

from __future__ import annotations

from contextlib import closing
from datetime import datetime, timezone
from typing import Optional

from ..config import ConfigLoader, ModuleConfig
from ..logging_config import get_logger, module_logger
from ..project.graph import ModuleGraph, ModuleRef
from ..project.models import Module
from ..project.tags import tag_prefix, version_from_tag
from ..semver import SemVer, version_sort_key
from .cache import MemoTable
from .checker import ModificationChecker
from .git import GitRepository
from .models import Commit, HistoryState, LastModification, LastTag, TagRef

logger = get_logger(__name__)

_UNSET = object()


class HistoryScanner:
    """Computes and memoizes the ``HistoryState`` of the modules of a graph.

    A module's state depends on the states of all its dependencies (parents
    included), which are resolved first. Instability of a dependency
    propagates: the most recent dependency modification becomes the
    module's own when nothing more recent is found for the module itself.
    """

    def __init__(
        self,
        graph: ModuleGraph,
        repository: GitRepository,
        configs: ConfigLoader,
        start_time: Optional[datetime] = None,
    ):
        self.graph = graph
        self.repository = repository
        self.configs = configs
        self.start_time = start_time or datetime.now(timezone.utc).astimezone()
        self._head = _UNSET
        self._states: MemoTable = MemoTable("history states")
        self._checkers: MemoTable = MemoTable("checkers")
        self.snapshots: MemoTable = MemoTable("manifest snapshots")

    @property
    def head(self) -> Optional[Commit]:
        if self._head is _UNSET:
            self._head = self.repository.head()
        return self._head  # type: ignore[return-value]

    def config(self, ref: ModuleRef) -> ModuleConfig:
        return self.configs.for_directory(self.graph.get(ref).working_dir)

    def checker(self, ref: ModuleRef) -> ModificationChecker:
        module = self.graph.get(ref)
        return self._checkers.get(
            module.id,
            lambda: ModificationChecker(
                module, self.config(module), self.repository, self.snapshots
            ),
        )

    def module_tags(self, ref: ModuleRef) -> list[tuple[TagRef, SemVer]]:
        """Tags of a module with their versions, highest version first."""
        module = self.graph.get(ref)
        tags = [
            (tag, version_from_tag(module.id, tag.name))
            for tag in self.repository.tags(tag_prefix(module.id))
        ]
        tags.sort(key=lambda t: version_sort_key(t[1]), reverse=True)
        return tags

    def tagged_commits(self, ref: ModuleRef) -> dict[str, tuple[TagRef, SemVer]]:
        """Commit id -> tag of the module; the highest version wins on shared commits."""
        tagged: dict[str, tuple[TagRef, SemVer]] = {}
        for tag, version in self.module_tags(ref):
            tagged.setdefault(tag.target, (tag, version))
        return tagged

    def resolve(self, ref: ModuleRef) -> HistoryState:
        module = self.graph.get(ref)
        return self._states.get(module.id, lambda: self._scan(module))

    def _scan(self, module: Module) -> HistoryState:
        log = module_logger(logger, module)
        config = self.config(module)
        head = self.head

        # no commits yet
        if head is None:
            log.debug("State of %s: no commits yet", module)
            return HistoryState(
                LastModification.dirty(module.id, self.start_time),
                LastTag.never_tagged(config.init_version),
            )

        last_modification: Optional[LastModification] = None
        last_tag: Optional[LastTag] = None

        # most recent modification of a dependency
        dependency: Optional[Module] = None
        dependency_modification: Optional[LastModification] = None
        for dep in self.graph.all_dependencies(module):
            modification = self.resolve(dep).last_modification
            if (
                dependency_modification is None
                or modification.seniority < dependency_modification.seniority
            ):
                dependency = dep
                dependency_modification = modification
            if dependency_modification.seniority == 0:
                break

        if dependency_modification is not None and dependency_modification.seniority == 0:
            log.debug("State of %s: dirty dependency %s", module, dependency)
            last_modification = dependency_modification

        checker = self.checker(module)
        if last_modification is None and checker.is_dirty(head):
            log.debug("State of %s: dirty working dir", module)
            last_modification = LastModification.dirty(module.id, self.start_time)

        tagged = self.tagged_commits(module)
        log.debug(
            "State of %s: tags found: %s",
            module,
            ", ".join(tag.short_name for tag, _ in tagged.values()) or "none",
        )

        seniority = 0
        current: Optional[Commit] = None
        with closing(self.repository.iter_first_parent(head.sha)) as history:
            for current in history:
                seniority += 1

                if last_tag is None and current.sha in tagged:
                    tag, version = tagged[current.sha]
                    last_tag = LastTag(current, tag.short_name, version)
                    log.debug("State of %s: %s tagged with %s", module, current, tag.short_name)
                    # a tag with no later change is itself the modification boundary
                    if last_modification is None:
                        last_modification = LastModification.at(seniority, current, module.id)

                if (
                    last_modification is None
                    and dependency_modification is not None
                    and seniority == dependency_modification.seniority
                ):
                    log.debug(
                        "State of %s: %s modifies dependency %s", module, current, dependency
                    )
                    last_modification = dependency_modification

                if last_modification is None and checker.is_modified_at(current):
                    log.debug("State of %s: modified at %s", module, current)
                    last_modification = LastModification.at(seniority, current, module.id)

                if last_modification is not None and last_tag is not None:
                    return HistoryState(last_modification, last_tag)

        log.debug("State of %s: never tagged", module)
        if last_modification is None:
            # unreachable while root commits count as modifying
            if current is None:
                last_modification = LastModification.dirty(module.id, self.start_time)
            else:
                last_modification = LastModification.at(seniority, current, module.id)

        return HistoryState(last_modification, LastTag.never_tagged(config.init_version))
