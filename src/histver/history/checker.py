"""Per-module change detection between two snapshots of the tree."""

from __future__ import annotations

from typing import Iterable, Optional

from ..config import ModuleConfig
from ..logging_config import get_logger, module_logger
from ..project.manifest import ManifestSnapshot
from ..project.models import Module
from .cache import MemoTable
from .git import GitRepository
from .models import ZERO_ID, Commit, FileChange

logger = get_logger(__name__)


class ModificationChecker:
    """Decides whether a transition of the tree touched a module's observed files.

    Paths are filtered relative to the module directory. The module's own
    manifest is compared structurally when edited in place, so a version
    written into it by build tooling is not a modification.
    """

    def __init__(
        self,
        module: Module,
        config: ModuleConfig,
        repository: GitRepository,
        snapshots: Optional[MemoTable[str, Optional[ManifestSnapshot]]] = None,
    ):
        self.module = module
        self.repository = repository
        self.filter = config.observed_filter
        self.prefix = repository.relativize(module.working_dir)
        self.manifest_path = module.manifest.relative_to(module.working_dir).as_posix()
        self._snapshots = snapshots if snapshots is not None else MemoTable("manifests")
        self._logged_path = f"{self.prefix or '.'}/{{{config.observed_path}}}"
        self._log = module_logger(logger, module)

    def is_dirty(self, head: Commit) -> bool:
        """True if the working tree differs from ``head`` on observed files."""
        self._log.debug("Compare working dir and commit %s on %s", head.short, self._logged_path)
        changes = self.repository.working_tree_changes(head.sha, self.prefix)
        return self._is_modified_in(changes, working_tree=True)

    def is_modified_at(self, commit: Commit) -> bool:
        """True if ``commit`` changed observed files compared to its first parent.

        A root commit always modifies.
        """
        parent = commit.first_parent
        if parent is None:
            return True

        self._log.debug(
            "Compare commit %s and %s on %s", commit.short, parent[:7], self._logged_path
        )
        changes = self.repository.tree_changes(parent, commit.sha, self.prefix)
        return self._is_modified_in(changes, working_tree=False)

    def _relative(self, path: str) -> Optional[str]:
        if not self.prefix:
            return path
        if path.startswith(self.prefix + "/"):
            return path[len(self.prefix) + 1:]
        return None

    def _is_modified_in(self, changes: Iterable[FileChange], working_tree: bool) -> bool:
        for change in changes:
            path = self._relative(change.path)
            if path is None or not self.filter.matches(path):
                self._log.debug("Diff at %s: not observed", change.path)
                continue

            if path != self.manifest_path:
                self._log.debug("Diff at %s: diff found", change.path)
                return True

            if change.is_add_or_delete:
                self._log.debug("Diff at %s: manifest added or deleted", change.path)
                return True

            old = self._blob_snapshot(change.old_blob)
            if working_tree:
                new = self._working_snapshot(change)
            else:
                new = self._blob_snapshot(change.new_blob)

            if old is None or new is None:
                self._log.debug("Diff at %s: manifest can not be parsed", change.path)
                return True

            if old != new:
                self._log.debug("Diff at %s: manifests are different", change.path)
                return True

            self._log.debug("Diff at %s: diff ignored", change.path)

        return False

    def _blob_snapshot(self, blob_id: str) -> Optional[ManifestSnapshot]:
        if blob_id == ZERO_ID:
            return None
        return self._snapshots.get(
            blob_id, lambda: ManifestSnapshot.from_bytes(self.repository.read_blob(blob_id))
        )

    def _working_snapshot(self, change: FileChange) -> Optional[ManifestSnapshot]:
        if change.new_blob != ZERO_ID:
            # staged content equal to the working file
            return self._blob_snapshot(change.new_blob)
        data = self.repository.read_file(change.path)
        if data is None:
            return None
        return ManifestSnapshot.from_bytes(data)
