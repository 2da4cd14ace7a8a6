"""Repository exceptions: git invocations and manifest files."""

from pathlib import Path
from typing import Optional, Union

from .base import HistverError


class RepositoryError(HistverError):
    """Raised when the git repository can't be read."""

    def __init__(self, operation: str, reason: str, path: Optional[Union[str, Path]] = None):
        details = {"reason": reason}
        if path is not None:
            details["path"] = str(path)

        super().__init__(f"Repository access failed: {operation}", details=details)
        self.operation = operation
        self.reason = reason
        self.path = path


class ManifestError(RepositoryError):
    """Raised when a manifest file can't be loaded while building the project."""

    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(f"can not load manifest {path}", reason, path)
