"""Project metadata: modules, their dependency graph and tag names."""

from .graph import ModuleGraph
from .loader import load_project
from .manifest import MANIFEST_NAME, ManifestSnapshot, read_manifest
from .models import Module, ModuleId
from .tags import complete_tag, short_tag, tag_prefix, version_from_tag

__all__ = [
    "Module",
    "ModuleId",
    "ModuleGraph",
    "ManifestSnapshot",
    "MANIFEST_NAME",
    "load_project",
    "read_manifest",
    "complete_tag",
    "short_tag",
    "tag_prefix",
    "version_from_tag",
]
