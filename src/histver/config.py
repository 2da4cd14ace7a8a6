"""Configuration loading and management for histver.

Every module gets a ``ModuleConfig``. Sources are merged in priority order
(lowest to highest):
    1. Defaults (defined in ModuleConfig)
    2. ``.histver.toml`` files, from the project root down to the module
       directory (nearer directories win)
    3. Explicit overrides (``-D key=value`` on the command line)
    4. Environment variables (HISTVER_* prefix)

Example:
    >>> loader = ConfigLoader(Path("/work/project"))
    >>> config = loader.for_directory(Path("/work/project/libs/alpha"))
    >>> str(config.init_version)
    '0.1.0'
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from functools import cached_property
from pathlib import Path
from typing import Any, Literal, Mapping, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError
from .logging_config import get_logger
from .pathfilter import PathFilter
from .semver import IncrementPart, SemVer

logger = get_logger(__name__)

CONFIG_FILE_NAME = ".histver.toml"
ENV_PREFIX = "HISTVER_"


@dataclass(frozen=True)
class ModuleConfig:
    """Versioning configuration of one module directory.

    Attributes:
        Core:
            observed_path: PathFilter expression of the files, relative to the
                module directory, whose changes make a new version
            non_qualifier_branches: PathFilter expression of branch names whose
                snapshots don't carry the branch name
            initial_version: base version of a module never tagged
            increment: part bumped for the next snapshot (major/minor/patch)
            reproducible: build tooling hint, pins timestamps to the last
                modification

        Release (consumed by release tooling only):
            release_last_modification: tag the last modifying commit rather
                than HEAD
            release_annotated: create annotated tags
            release_signed: sign tags
            release_message: tag message, ``{name}`` and ``{version}`` are
                substituted
            release_ignored: never release this module
    """

    observed_path: str = "pyproject.toml:.histver.toml:src/**"
    non_qualifier_branches: str = "main:master"
    initial_version: str = "0.1.0"
    increment: str = "minor"
    reproducible: bool = True

    release_last_modification: bool = True
    release_annotated: bool = True
    release_signed: bool = False
    release_message: str = "Release {name} {version}"
    release_ignored: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if SemVer.parse(self.initial_version).is_illegal:
            raise InvalidConfigError(
                "initial_version", self.initial_version, "not a semantic version"
            )

        try:
            IncrementPart.parse(self.increment)
        except (ValueError, AttributeError):
            raise InvalidConfigError(
                "increment", self.increment, "expected one of major, minor, patch"
            )

    @cached_property
    def init_version(self) -> SemVer:
        return SemVer.parse(self.initial_version)

    @cached_property
    def increment_part(self) -> IncrementPart:
        return IncrementPart.parse(self.increment)

    @cached_property
    def observed_filter(self) -> PathFilter:
        return PathFilter(self.observed_path)

    @cached_property
    def non_qualifier_filter(self) -> PathFilter:
        return PathFilter(self.non_qualifier_branches)

    def is_qualified_branch(self, branch: str) -> bool:
        """True if snapshots built on ``branch`` carry its name."""
        return not self.non_qualifier_filter.matches(branch)


_FIELD_NAMES = frozenset(f.name for f in fields(ModuleConfig))


class ConfigLoader:
    """Resolves and caches ``ModuleConfig`` per directory of a project."""

    def __init__(
        self,
        root: Path,
        overrides: Optional[Mapping[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.root = Path(root).resolve()
        self._overrides = {
            normalize_key(k): _coerce(normalize_key(k), v, "override")
            for k, v in (overrides or {}).items()
        }
        self._environ = os.environ if environ is None else environ
        self._files: dict[Path, dict[str, Any]] = {}
        self._configs: dict[Path, ModuleConfig] = {}

    def for_directory(self, directory: Path) -> ModuleConfig:
        directory = Path(directory).resolve()
        config = self._configs.get(directory)
        if config is None:
            config = self._build(directory)
            self._configs[directory] = config
        return config

    def _build(self, directory: Path) -> ModuleConfig:
        merged: dict[str, Any] = {}
        merged.update(self._directory_values(directory))
        merged.update(self._overrides)
        merged.update(_load_env_vars(self._environ))

        try:
            config = ModuleConfig(**merged)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration for {directory}: {e}")

        logger.debug("Configuration of %s: %s", directory, config)
        return config

    def _directory_values(self, directory: Path) -> dict[str, Any]:
        """File values of ``directory``, inherited from its parents inside the root."""
        cached = self._files.get(directory)
        if cached is not None:
            return cached

        values: dict[str, Any] = {}
        parent = directory.parent
        if directory != self.root and parent != directory and _is_within(parent, self.root):
            values.update(self._directory_values(parent))

        config_file = directory / CONFIG_FILE_NAME
        if config_file.is_file():
            try:
                raw = load_toml_file(config_file)
            except ConfigurationError:
                raise
            except Exception as e:
                raise ConfigurationError(f"Invalid config file '{config_file}': {e}")
            values.update(_flatten(raw, config_file))
            logger.debug("Loaded %s: %s", config_file, values)

        self._files[directory] = values
        return values


def normalize_key(key: str) -> str:
    """``release.message`` / ``release-message`` -> ``release_message``."""
    return key.strip().replace(".", "_").replace("-", "_").lower()


def parse_define(define: str) -> tuple[str, str]:
    """Split a ``key=value`` command line definition."""
    key, sep, value = define.partition("=")
    if not sep or not key.strip():
        raise InvalidConfigError(define, define, "expected key=value")
    return normalize_key(key), value


def _flatten(raw: Mapping[str, Any], source: Path) -> dict[str, Any]:
    """Map a TOML document (with an optional [release] table) to field values."""
    result: dict[str, Any] = {}
    for key, value in raw.items():
        if isinstance(value, dict):
            for sub_key, sub_value in value.items():
                name = normalize_key(f"{key}_{sub_key}")
                result[name] = _coerce(name, sub_value, str(source))
        else:
            name = normalize_key(key)
            result[name] = _coerce(name, value, str(source))
    return result


def _coerce(name: str, value: Any, source: str) -> Any:
    if name not in _FIELD_NAMES:
        raise InvalidConfigError(name, value, f"unknown key in {source}")
    hint = _TYPE_HINTS[name]
    if isinstance(value, str):
        return _parse_value(value, hint, name)
    if not isinstance(hint, type) or not isinstance(value, hint):
        expected = getattr(hint, "__name__", str(hint))
        raise InvalidConfigError(name, value, f"expected {expected} in {source}")
    return value


def _load_env_vars(environ: Mapping[str, str]) -> dict[str, Any]:
    """Load configuration from HISTVER_* environment variables.

    Supported environment variables:
        HISTVER_OBSERVED_PATH: str
        HISTVER_NON_QUALIFIER_BRANCHES: str
        HISTVER_INITIAL_VERSION: str
        HISTVER_INCREMENT: major/minor/patch
        HISTVER_REPRODUCIBLE: bool (true/false/1/0)
        HISTVER_RELEASE_LAST_MODIFICATION: bool
        HISTVER_RELEASE_ANNOTATED: bool
        HISTVER_RELEASE_SIGNED: bool
        HISTVER_RELEASE_MESSAGE: str
        HISTVER_RELEASE_IGNORED: bool

    Returns:
        Dict of field_name -> parsed_value for any HISTVER_* vars found.
    """
    result: dict[str, Any] = {}

    for field_name in sorted(_FIELD_NAMES):
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = environ.get(env_key)

        if env_value is None:
            continue

        try:
            result[field_name] = _parse_value(env_value, _TYPE_HINTS[field_name], field_name)
        except InvalidConfigError as e:
            raise InvalidConfigError(env_key, env_value, e.reason)

    return result


_TYPE_HINTS = get_type_hints(ModuleConfig)


def _parse_value(value: str, type_hint: Any, field_name: str) -> Any:
    """Parse a string setting to the type of its dataclass field.

    Raises:
        InvalidConfigError: If value can't be parsed to expected type
    """
    if type_hint is bool:
        lower = value.strip().lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise InvalidConfigError(field_name, value, "expected true/false")

    if type_hint is str or getattr(type_hint, "__origin__", None) is Literal:
        return value

    raise InvalidConfigError(field_name, value, f"unsupported type {type_hint}")


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def _tomllib():
    """Return the TOML parser module.

    Raises:
        ConfigurationError: If tomllib/tomli not available
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            # Fallback to tomli for Python 3.9-3.10
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )
    return tomllib


def load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If tomllib/tomli not available
        Exception: If TOML parsing fails
    """
    with open(path, "rb") as f:
        return _tomllib().load(f)


def parse_toml(text: str) -> dict:
    """Parse TOML text; raises the parser's ``TOMLDecodeError`` on bad input."""
    return _tomllib().loads(text)
