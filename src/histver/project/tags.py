"""Tag naming convention: ``refs/tags/<module name>/<version>``."""

from __future__ import annotations

from ..semver import SemVer
from .models import ModuleId

TAGS_PREFIX = "refs/tags/"


def short_tag(module: ModuleId, version: SemVer) -> str:
    """Tag name of ``version`` of ``module``, e.g. ``alpha/1.2.0``."""
    return f"{module.name}/{version}"


def complete_tag(module: ModuleId, version: SemVer) -> str:
    return TAGS_PREFIX + short_tag(module, version)


def tag_prefix(module: ModuleId) -> str:
    """Ref prefix shared by all tags of ``module``."""
    return f"{TAGS_PREFIX}{module.name}/"


def version_from_tag(module: ModuleId, ref_name: str) -> SemVer:
    """Version named by a tag of ``module``.

    ``ref_name`` may be complete (``refs/tags/alpha/1.0.0``) or short
    (``alpha/1.0.0``). A ref outside the module's tag namespace yields the
    WRONG-TAG sentinel, a tag whose version doesn't parse the ILLEGAL one.
    """
    if not ref_name.startswith(TAGS_PREFIX):
        ref_name = TAGS_PREFIX + ref_name

    prefix = tag_prefix(module)
    if not ref_name.startswith(prefix):
        return SemVer.wrong_tag(ref_name)
    return SemVer.parse(ref_name[len(prefix):])
