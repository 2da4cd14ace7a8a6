"""Turn history states into final module versions."""

from __future__ import annotations

from typing import Optional

from ..logging_config import get_logger, module_logger
from ..project.graph import ModuleRef
from ..project.models import Module
from ..semver import SNAPSHOT, SemVer
from .cache import MemoTable
from .models import HistoryState, LastModification, ResolvedStatus
from .scanner import HistoryScanner

logger = get_logger(__name__)

# Characters of branch names that are not welcome in versions and file names
_PROTECTED_CHARS = "\\/:'\"<>|?*"
_BRANCH_PROTECTION = str.maketrans({c: "-" for c in _PROTECTED_CHARS})


def protect_branch_name(branch: str) -> str:
    """``feature/my-thing`` -> ``feature-my-thing``."""
    return branch.translate(_BRANCH_PROTECTION)


class VersionResolver:
    """Computes and memoizes the ``ResolvedStatus`` of modules.

    A module is pristine when it was tagged, nothing modified it or its
    dependencies after the tag, and every dependency is pristine. Otherwise
    its version is the next snapshot: the tagged version bumped by the
    configured increment (the initial version when never tagged), with a
    ``SNAPSHOT`` pre-release identifier and, outside of the non-qualifier
    branches, the protected branch name.
    """

    def __init__(self, scanner: HistoryScanner, branch: Optional[str] = None):
        self.scanner = scanner
        self.graph = scanner.graph
        self._branch = branch
        self._statuses: MemoTable = MemoTable("statuses")

    @property
    def branch(self) -> str:
        if self._branch is None:
            self._branch = self.scanner.repository.branch()
            logger.debug("Current branch: %r", self._branch)
        return self._branch

    def resolve(self, ref: ModuleRef) -> ResolvedStatus:
        module = self.graph.get(ref)
        return self._statuses.get(module.id, lambda: self._examine(module))

    def resolve_version(self, ref: ModuleRef) -> SemVer:
        return self.resolve(ref).version

    def last_modification(self, ref: ModuleRef) -> LastModification:
        """Most recent modification of a module or any of its dependencies."""
        module = self.graph.get(ref)
        latest = self.scanner.resolve(module).last_modification
        for dep in self.graph.all_dependencies(module):
            candidate = self.scanner.resolve(dep).last_modification
            if candidate.seniority < latest.seniority:
                latest = candidate
        return latest

    def _examine(self, module: Module) -> ResolvedStatus:
        log = module_logger(logger, module)
        state = self.scanner.resolve(module)
        latest = self.last_modification(module)

        if not state.is_tagged:
            log.debug("Examine %s: never tagged", module)
            return self._snapshot(module, state, latest)

        if state.last_tag.sha != latest.sha:
            log.debug("Examine %s: modified since last tag", module)
            return self._snapshot(module, state, latest)

        for dep in self.graph.all_dependencies(module):
            if self.resolve(dep).snapshot:
                log.debug("Examine %s: modified dependency %s", module, dep)
                return self._snapshot(module, state, latest)

        log.debug("Examine %s: pristine", module)
        status = ResolvedStatus(
            module=module.id,
            last_modification=state.last_modification,
            last_tag=state.last_tag,
            base_version=state.last_tag.version,
            snapshot=False,
            version=state.last_tag.version,
        )
        logger.info("%s: %s", module.id.coordinates, status.version)
        return status

    def _snapshot(
        self, module: Module, state: HistoryState, latest: LastModification
    ) -> ResolvedStatus:
        config = self.scanner.config(module)

        prerelease = [SNAPSHOT]
        branch = self.branch
        if branch and config.is_qualified_branch(branch):
            prerelease.append(protect_branch_name(branch))

        if state.is_tagged:
            base = state.last_tag.version.bump(config.increment_part)
        else:
            base = config.init_version

        status = ResolvedStatus(
            module=module.id,
            last_modification=latest,
            last_tag=state.last_tag,
            base_version=state.last_tag.version,
            snapshot=True,
            version=base.with_prerelease(prerelease),
        )
        logger.info("%s: %s", module.id.coordinates, status.version)
        return status
