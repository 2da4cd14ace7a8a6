"""Group modifying commits of a module by release, the data half of a changelog."""

from __future__ import annotations

from contextlib import closing
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..exceptions import HistoryBoundaryError
from ..logging_config import get_logger
from ..project.graph import ModuleRef
from ..project.models import Module
from ..project.tags import tag_prefix
from ..semver import SemVer, version_sort_key
from .models import Commit, TagRef
from .scanner import HistoryScanner

logger = get_logger(__name__)

ROOT = "root"


@dataclass(frozen=True)
class Release:
    """Commits shipped by one release, oldest first.

    ``tag_name`` and ``version`` are None for the unreleased changes.
    """

    tag_name: Optional[str]
    version: Optional[SemVer]
    commits: tuple[Commit, ...] = field(default=())

    @property
    def released(self) -> bool:
        return self.tag_name is not None

    def as_dict(self) -> dict:
        return {
            "tag": self.tag_name,
            "version": None if self.version is None else str(self.version),
            "commits": [
                {
                    "sha": c.sha,
                    "date": c.timestamp.isoformat(timespec="seconds"),
                    "subject": c.subject,
                }
                for c in self.commits
            ],
        }


def collect_releases(
    scanner: HistoryScanner,
    ref: ModuleRef,
    from_ref: Optional[str] = None,
    to_ref: str = "HEAD",
) -> list[Release]:
    """Releases of a module, newest first, walking first-parent history from ``to_ref``.

    A commit belongs to a release when it modifies the module or any of its
    dependencies. ``from_ref`` bounds the walk (exclusive); ``"root"`` walks
    the whole history and None stops at the second tag met, which keeps the
    unreleased changes and the changes of the last release.

    Raises:
        HistoryBoundaryError: If ``from_ref`` or ``to_ref`` can't be resolved
    """
    module = scanner.graph.get(ref)
    repository = scanner.repository
    scope = [module, *scanner.graph.all_dependencies(module)]
    checkers = [scanner.checker(m) for m in scope]

    tagged: dict[str, list[tuple[TagRef, SemVer]]] = {}
    for tag, version in scanner.module_tags(module):
        tagged.setdefault(tag.target, []).append((tag, version))
    for tags in tagged.values():
        tags.sort(key=lambda t: version_sort_key(t[1]), reverse=True)

    start = _resolve_boundary(scanner, module, "to", to_ref)
    stop = _stop_condition(scanner, module, from_ref, tagged)

    releases: list[Release] = []
    tag_name: Optional[str] = None
    version: Optional[SemVer] = None
    commits: list[Commit] = []

    with closing(repository.iter_first_parent(start.sha)) as history:
        for current in history:
            if stop(current):
                break

            for tag, tag_version in tagged.get(current.sha, []):
                if tag_name is not None or commits:
                    releases.append(Release(tag_name, version, tuple(reversed(commits))))
                tag_name, version, commits = tag.short_name, tag_version, []

            if any(checker.is_modified_at(current) for checker in checkers):
                commits.append(current)

    releases.append(Release(tag_name, version, tuple(reversed(commits))))
    logger.debug("Releases of %s: %d", module, len(releases))
    return releases


def _resolve_boundary(scanner: HistoryScanner, module: Module, kind: str, ref: str) -> Commit:
    repository = scanner.repository
    commit = repository.resolve(ref)
    if commit is None:
        commit = repository.resolve(tag_prefix(module.id) + ref)
    if commit is None:
        raise HistoryBoundaryError(kind, ref)
    return commit


def _stop_condition(
    scanner: HistoryScanner,
    module: Module,
    from_ref: Optional[str],
    tagged: dict,
) -> Callable[[Commit], bool]:
    if from_ref is None or not from_ref.strip():
        passed = []

        def second_tag(commit: Commit) -> bool:
            if commit.sha in tagged:
                if passed:
                    return True
                passed.append(commit.sha)
            return False

        return second_tag

    try:
        boundary = _resolve_boundary(scanner, module, "from", from_ref)
    except HistoryBoundaryError:
        if from_ref.strip().lower() == ROOT:
            return lambda commit: False
        raise

    return lambda commit: commit.sha == boundary.sha
