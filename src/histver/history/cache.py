"""Compute-once memo tables for one resolution session."""

from __future__ import annotations

from typing import Callable, Generic, Hashable, TypeVar

from ..exceptions import CyclicDependencyError

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class MemoTable(Generic[K, V]):
    """Lookup-or-compute table guarding against re-entrant computation.

    A key whose computation asks for itself (directly or through other
    keys) raises ``CyclicDependencyError`` with the chain of keys involved
    instead of recursing forever. Not thread-safe.
    """

    def __init__(self, name: str):
        self.name = name
        self._values: dict[K, V] = {}
        self._in_progress: list[K] = []

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def get(self, key: K, compute: Callable[[], V]) -> V:
        try:
            return self._values[key]
        except KeyError:
            pass

        if key in self._in_progress:
            start = self._in_progress.index(key)
            raise CyclicDependencyError(self._in_progress[start:] + [key])

        self._in_progress.append(key)
        try:
            value = compute()
        finally:
            self._in_progress.pop()

        self._values[key] = value
        return value

    def clear(self) -> None:
        self._values.clear()
