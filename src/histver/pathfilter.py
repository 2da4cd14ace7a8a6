"""Wildcard path filters.

A filter expression is a colon-separated list of patterns. A pattern
prefixed by ``!`` excludes, any other pattern includes. Wildcards:

    ?    any one character, ``/`` included
    *    any run of characters inside one path segment
    **   any run of characters, across segments
    \\x   the literal character x (``\\:``, ``\\!``, ``\\*`` ...)

A path matches when no exclusion matches it and at least one inclusion
does. ``"src/**:!src/generated/*"`` observes everything under ``src`` except
the direct children of ``src/generated``.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Iterator, Optional


class PathFilterResult(IntEnum):
    """Outcome of matching a directory against a filter.

    Ordered so that ``max`` picks the most permissive include result.
    """

    NO_MATCH = 0  # nothing below the directory can match
    MATCH = 1  # some paths below the directory may match
    TREE_MATCH = 2  # every path below the directory matches


# Tokens produced by the pattern lexer
_LITERAL = "lit"
_ONE = "one"
_STAR = "star"
_GLOBSTAR = "globstar"
_SEP = "sep"


@dataclass(frozen=True)
class _Segment:
    regex: re.Pattern
    globstar_only: bool
    spans: bool


@dataclass(frozen=True)
class _Pattern:
    source: str
    regex: re.Pattern
    segments: tuple[_Segment, ...]

    def partial(self, directory: list[str]) -> PathFilterResult:
        depth = 0
        last = len(self.segments) - 1
        for i, segment in enumerate(self.segments):
            if segment.globstar_only:
                return PathFilterResult.TREE_MATCH if i == last else PathFilterResult.MATCH
            if depth == len(directory):
                return PathFilterResult.MATCH
            if segment.spans:
                # "**" or "?" may match across the remaining segments
                return PathFilterResult.MATCH
            if not segment.regex.fullmatch(directory[depth]):
                return PathFilterResult.NO_MATCH
            depth += 1
        # the pattern names the directory itself, or something above it
        return PathFilterResult.NO_MATCH


def _lex(expression: str) -> list[tuple[bool, list[tuple[str, str]]]]:
    """Split an expression into (excluded, tokens) patterns."""
    patterns: list[tuple[bool, list[tuple[str, str]]]] = []
    tokens: list[tuple[str, str]] = []
    excluded = False
    length = len(expression)
    i = 0
    while i < length:
        c = expression[i]
        if c == "\\" and i < length - 1:
            i += 1
            escaped = expression[i]
            tokens.append((_SEP, "/") if escaped == "/" else (_LITERAL, escaped))
        elif c == "!" and not tokens:
            excluded = True
        elif c == "?":
            tokens.append((_ONE, c))
        elif c == "*":
            if i < length - 1 and expression[i + 1] == "*":
                tokens.append((_GLOBSTAR, "**"))
                i += 1
            else:
                tokens.append((_STAR, c))
        elif c == ":":
            patterns.append((excluded, tokens))
            tokens = []
            excluded = False
        elif c == "/":
            tokens.append((_SEP, c))
        else:
            tokens.append((_LITERAL, c))
        i += 1
    patterns.append((excluded, tokens))
    return patterns


def _to_regex(tokens: list[tuple[str, str]]) -> str:
    parts = []
    for kind, value in tokens:
        if kind == _LITERAL or kind == _SEP:
            parts.append(re.escape(value))
        elif kind == _ONE:
            parts.append(".")
        elif kind == _STAR:
            parts.append("[^/]*")
        else:
            parts.append(".*")
    return "".join(parts)


def _compile(tokens: list[tuple[str, str]], source: str) -> _Pattern:
    segments: list[_Segment] = []
    current: list[tuple[str, str]] = []
    for token in tokens + [(_SEP, "/")]:
        if token[0] != _SEP:
            current.append(token)
            continue
        segments.append(
            _Segment(
                regex=re.compile(_to_regex(current), re.DOTALL),
                globstar_only=len(current) == 1 and current[0][0] == _GLOBSTAR,
                spans=any(kind in (_GLOBSTAR, _ONE) for kind, _ in current),
            )
        )
        current = []
    return _Pattern(
        source=source,
        regex=re.compile(_to_regex(tokens), re.DOTALL),
        segments=tuple(segments),
    )


class PathFilter:
    """Compiled include/exclude wildcard filter over ``/``-separated paths."""

    def __init__(self, expression: str):
        self.expression = expression
        self._includes: list[_Pattern] = []
        self._excludes: list[_Pattern] = []
        for excluded, tokens in _lex(expression):
            pattern = _compile(tokens, expression)
            (self._excludes if excluded else self._includes).append(pattern)

    def __repr__(self) -> str:
        return f"PathFilter({self.expression!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PathFilter) and other.expression == self.expression

    def __hash__(self) -> int:
        return hash(self.expression)

    def matches(self, path: str) -> bool:
        """True if no exclusion and at least one inclusion matches ``path``."""
        if any(p.regex.fullmatch(path) for p in self._excludes):
            return False
        return any(p.regex.fullmatch(path) for p in self._includes)

    __call__ = matches

    def partial_match(self, prefix: str, depth: Optional[int] = None) -> PathFilterResult:
        """Classify the paths below the directory ``prefix``.

        ``depth`` limits the test to the first ``depth`` segments of
        ``prefix``, as a tree walk at that depth would see it.
        """
        directory = [s for s in prefix.split("/") if s]
        if depth is not None:
            directory = directory[:depth]

        maybe_excluded = False
        for pattern in self._excludes:
            result = pattern.partial(directory)
            if result is PathFilterResult.TREE_MATCH:
                return PathFilterResult.NO_MATCH
            if result is PathFilterResult.MATCH:
                maybe_excluded = True

        best = PathFilterResult.NO_MATCH
        for pattern in self._includes:
            best = max(best, pattern.partial(directory))
            if best is PathFilterResult.TREE_MATCH:
                break

        if best is PathFilterResult.TREE_MATCH and maybe_excluded:
            return PathFilterResult.MATCH
        return PathFilterResult(best)


def iter_observed_files(root: Path, path_filter: PathFilter) -> Iterator[str]:
    """Yield the ``/``-separated paths under ``root`` accepted by the filter.

    Directories are pruned as soon as the filter proves nothing below them
    can match; whole subtrees are accepted without per-file matching when
    the filter proves everything below them matches.
    """
    for dirpath, dirnames, filenames in os.walk(root):
        rel = Path(dirpath).relative_to(root).as_posix()
        rel = "" if rel == "." else rel
        dirnames[:] = sorted(d for d in dirnames if d != ".git")

        state = path_filter.partial_match(rel)
        if state is PathFilterResult.NO_MATCH:
            dirnames[:] = []
            continue

        prefix = f"{rel}/" if rel else ""
        for name in sorted(filenames):
            path = prefix + name
            if state is PathFilterResult.TREE_MATCH or path_filter.matches(path):
                yield path

        if state is PathFilterResult.MATCH:
            dirnames[:] = [
                d
                for d in dirnames
                if path_filter.partial_match(prefix + d) is not PathFilterResult.NO_MATCH
            ]
