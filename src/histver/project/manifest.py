"""Manifest reading and the version-insensitive manifest projection."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from ..config import parse_toml
from ..exceptions import ManifestError
from ..logging_config import get_logger

logger = get_logger(__name__)

MANIFEST_NAME = "pyproject.toml"

# Keys written in place by build tooling; they never make a structural change
_VOLATILE_KEYS = (
    ("project", "version"),
    ("tool", "histver", "properties"),
)


def read_manifest(path: Path) -> dict:
    """Parse the manifest at ``path`` while loading a project.

    Raises:
        ManifestError: If the file is missing, unreadable or not valid TOML
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(path, str(e))

    try:
        return parse_toml(text)
    except ValueError as e:
        # tomllib.TOMLDecodeError is a ValueError
        raise ManifestError(path, str(e))


@dataclass(frozen=True)
class ManifestSnapshot:
    """Hashable projection of a manifest with its volatile keys removed.

    Two manifests that only differ by ``project.version`` or by the
    ``tool.histver.properties`` table have equal snapshots.
    """

    content: tuple

    @classmethod
    def from_document(cls, document: dict) -> "ManifestSnapshot":
        stripped = _strip(document, _VOLATILE_KEYS)
        return cls(_freeze(stripped))

    @classmethod
    def from_text(cls, text: str) -> Optional["ManifestSnapshot"]:
        """Snapshot of ``text``; None when it is empty or doesn't parse."""
        if not text.strip():
            return None
        try:
            document = parse_toml(text)
        except ValueError as e:
            logger.debug("Unparsable manifest content: %s", e)
            return None
        return cls.from_document(document)

    @classmethod
    def from_bytes(cls, data: bytes) -> Optional["ManifestSnapshot"]:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            return None
        return cls.from_text(text)


def _strip(document: dict, paths: tuple[tuple[str, ...], ...]) -> dict:
    result = dict(document)
    for path in paths:
        _remove(result, path)
    return result


def _remove(table: dict, path: tuple[str, ...]) -> None:
    head, rest = path[0], path[1:]
    if head not in table:
        return
    if not rest:
        del table[head]
        return
    child = table[head]
    if isinstance(child, dict):
        child = dict(child)
        table[head] = child
        _remove(child, rest)
        if not child:
            del table[head]


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return ("table", tuple(sorted((k, _freeze(v)) for k, v in value.items())))
    if isinstance(value, list):
        return ("array", tuple(_freeze(v) for v in value))
    return value
