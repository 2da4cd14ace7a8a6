"""Semantic versions (https://semver.org, 2.0.0).

Parsing never raises: text that does not follow the grammar becomes the
sentinel ``0.0.0-ILLEGAL+<text>`` so that malformed tags can live inside the
history without blocking the resolution of other modules.

Equality is structural and includes build identifiers, ordering ignores
them. ``SemVer("1.0.0+001") != SemVer("1.0.0+002")`` while
``compare_versions`` returns 0 for the pair.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from functools import cmp_to_key
from typing import Iterable, Optional

SNAPSHOT = "SNAPSHOT"
ILLEGAL = "ILLEGAL"
WRONG_TAG = "WRONG-TAG"

_PATTERN = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$",
    re.ASCII,
)

_NUMERIC = re.compile(r"[0-9]+", re.ASCII)


class IncrementPart(str, Enum):
    """Part of a version bumped when computing the next snapshot."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"

    @classmethod
    def parse(cls, value: str) -> "IncrementPart":
        return cls(value.strip().lower())


@dataclass(frozen=True)
class SemVer:
    """Immutable semantic version."""

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = field(default=())
    build: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        # Accept any iterable of identifiers, store tuples
        object.__setattr__(self, "prerelease", tuple(self.prerelease))
        object.__setattr__(self, "build", tuple(self.build))
        if min(self.major, self.minor, self.patch) < 0:
            raise ValueError("version numbers must be non-negative")

    # ── Construction ───────────────────────────────────────────────

    @classmethod
    def parse(cls, text: str) -> "SemVer":
        """Parse ``text``; returns the ILLEGAL sentinel when it doesn't match."""
        match = _PATTERN.fullmatch(text)
        if match is None:
            return cls.illegal(text)

        return cls(
            int(match.group("major")),
            int(match.group("minor")),
            int(match.group("patch")),
            _split(match.group("prerelease")),
            _split(match.group("build")),
        )

    @classmethod
    def illegal(cls, text: str) -> "SemVer":
        return cls(0, 0, 0, (ILLEGAL,), (text,))

    @classmethod
    def wrong_tag(cls, ref_name: str) -> "SemVer":
        return cls(0, 0, 0, (WRONG_TAG,), (ref_name,))

    # ── Predicates ─────────────────────────────────────────────────

    @property
    def is_snapshot(self) -> bool:
        return SNAPSHOT in self.prerelease

    @property
    def is_illegal(self) -> bool:
        return ILLEGAL in self.prerelease

    @property
    def is_wrong_tag(self) -> bool:
        return WRONG_TAG in self.prerelease

    @property
    def is_release(self) -> bool:
        return not self.prerelease

    # ── Derivation ─────────────────────────────────────────────────

    def bump(self, part: IncrementPart) -> "SemVer":
        """Next release after this one; drops prerelease and build identifiers."""
        if part is IncrementPart.MAJOR:
            return SemVer(self.major + 1, 0, 0)
        if part is IncrementPart.MINOR:
            return SemVer(self.major, self.minor + 1, 0)
        if part is IncrementPart.PATCH:
            return SemVer(self.major, self.minor, self.patch + 1)
        raise ValueError(f"Unexpected increment part: {part}")

    def with_prerelease(self, identifiers: Iterable[str]) -> "SemVer":
        return SemVer(self.major, self.minor, self.patch, tuple(identifiers), ())

    def core(self) -> "SemVer":
        return SemVer(self.major, self.minor, self.patch)

    # ── Ordering ───────────────────────────────────────────────────

    def compare(self, other: "SemVer") -> int:
        return compare_versions(self, other)

    def __lt__(self, other: "SemVer") -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return compare_versions(self, other) < 0

    def __le__(self, other: "SemVer") -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return compare_versions(self, other) <= 0

    def __gt__(self, other: "SemVer") -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return compare_versions(self, other) > 0

    def __ge__(self, other: "SemVer") -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return compare_versions(self, other) >= 0

    # ── Formatting ─────────────────────────────────────────────────

    def format(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text

    def __str__(self) -> str:
        return self.format()


def parse_version(text: str) -> SemVer:
    return SemVer.parse(text)


def compare_versions(a: SemVer, b: SemVer) -> int:
    """Three-way comparison returning -1, 0 or 1. Build identifiers are ignored."""
    for x, y in ((a.major, b.major), (a.minor, b.minor), (a.patch, b.patch)):
        if x != y:
            return -1 if x < y else 1

    pa, pb = a.prerelease, b.prerelease
    if not pa and not pb:
        return 0
    # a release sorts after any of its prereleases
    if pa and not pb:
        return -1
    if not pa and pb:
        return 1

    for i in range(max(len(pa), len(pb)) + 1):
        end_a = i == len(pa)
        end_b = i == len(pb)
        if end_a and end_b:
            return 0
        if end_b:
            return 1
        if end_a:
            return -1

        ta, tb = pa[i], pb[i]
        na, nb = _as_number(ta), _as_number(tb)

        if na is not None and nb is not None and na != nb:
            return -1 if na < nb else 1
        if na is None and nb is not None:
            return 1
        if na is not None and nb is None:
            return -1

        if ta != tb:
            return -1 if ta < tb else 1

    return 0


version_sort_key = cmp_to_key(compare_versions)


def _as_number(token: str) -> Optional[int]:
    if _NUMERIC.fullmatch(token):
        return int(token)
    return None


def _split(value: Optional[str]) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(value.split("."))
