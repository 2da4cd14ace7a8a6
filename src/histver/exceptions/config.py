"""Configuration exceptions: settings, module lookup, graph shape, history bounds."""

from typing import Any, Iterable

from .base import HistverError


class ConfigurationError(HistverError):
    """Base class for configuration-related errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class UnknownModuleError(ConfigurationError):
    """Raised when a module id is not part of the loaded project."""

    def __init__(self, module: Any):
        super().__init__(f"Module {module} has not been loaded", details={"module": str(module)})
        self.module = module


class CyclicDependencyError(ConfigurationError):
    """Raised when modules depend on each other, directly or through parents."""

    def __init__(self, cycle: Iterable[Any]):
        self.cycle = list(cycle)
        path = " -> ".join(str(m) for m in self.cycle)
        super().__init__(f"Cyclic module dependencies: {path}", details={"cycle": path})


class HistoryBoundaryError(ConfigurationError):
    """Raised when a ``from``/``to`` history boundary can't be resolved."""

    def __init__(self, kind: str, ref: str):
        super().__init__(
            f'"{kind}" commit {ref!r} can\'t be resolved',
            details={"boundary": kind, "ref": ref},
        )
        self.kind = kind
        self.ref = ref
