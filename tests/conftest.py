"""Shared test fixtures for histver: throw-away git projects."""

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, Optional

import pytest

from histver.logging_config import get_logger
from histver.session import ResolutionSession


def _git_env() -> dict:
    env = dict(os.environ)
    env.update(
        {
            "GIT_CONFIG_NOSYSTEM": "1",
            "GIT_AUTHOR_NAME": "Test",
            "GIT_AUTHOR_EMAIL": "test@test.com",
            "GIT_COMMITTER_NAME": "Test",
            "GIT_COMMITTER_EMAIL": "test@test.com",
        }
    )
    return env


class GitProject:
    """A git work tree holding a multi-module project, driven through ``git``."""

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        self.git("init", "-q")
        self.git("symbolic-ref", "HEAD", "refs/heads/main")
        self.git("config", "user.email", "test@test.com")
        self.git("config", "user.name", "Test")
        self.git("config", "commit.gpgsign", "false")
        self.git("config", "tag.gpgsign", "false")

    def git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", "-C", str(self.root), *args],
            capture_output=True,
            text=True,
            env=_git_env(),
        )
        assert result.returncode == 0, f"git {' '.join(args)} failed: {result.stderr}"
        return result.stdout.strip()

    def write(self, path: str, content: str = "") -> Path:
        target = self.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        return target

    def manifest(
        self,
        directory: str,
        name: Optional[str],
        group: Optional[str] = None,
        modules: Iterable[str] = (),
        requires: Iterable[str] = (),
        dependencies: Iterable[str] = (),
        version: str = "0.0.0",
    ) -> Path:
        lines = []
        if name is not None:
            lines += ["[project]", f'name = "{name}"', f'version = "{version}"']
            lines.append("dependencies = [" + ", ".join(f'"{r}"' for r in requires) + "]")
            lines.append("")
        settings = []
        if group is not None:
            settings.append(f'group = "{group}"')
        if modules:
            settings.append("modules = [" + ", ".join(f'"{m}"' for m in modules) + "]")
        if dependencies:
            settings.append("dependencies = [" + ", ".join(f'"{d}"' for d in dependencies) + "]")
        if settings:
            lines += ["[tool.histver]", *settings]
        path = f"{directory}/pyproject.toml" if directory else "pyproject.toml"
        return self.write(path, "\n".join(lines) + "\n")

    def commit(self, message: str = "change") -> str:
        self.git("add", "-A")
        self.git("commit", "-q", "--allow-empty", "-m", message)
        return self.head()

    def head(self) -> str:
        return self.git("rev-parse", "HEAD")

    def tag(self, name: str, ref: str = "HEAD", annotated: bool = True) -> None:
        if annotated:
            self.git("tag", "-a", "-m", f"Release {name}", name, ref)
        else:
            self.git("tag", name, ref)

    def session(self, **overrides) -> ResolutionSession:
        return ResolutionSession.open(self.root, overrides=overrides, environ={})


@pytest.fixture
def git_project(tmp_path):
    """Empty git repository on branch main."""
    if shutil.which("git") is None:
        pytest.skip("git not found")
    return GitProject(tmp_path / "repo")


@pytest.fixture
def single_module(git_project):
    """Project made of one module, alpha, with sources in src/ (not committed)."""
    git_project.manifest("", "alpha")
    git_project.write("src/alpha/__init__.py", "VALUE = 1\n")
    git_project.write("README.md", "alpha\n")
    return git_project


@pytest.fixture
def multi_module(git_project):
    """Aggregator module parent with modules alpha and beta; beta depends on alpha.

    Nothing is committed. A .gitignore ignores *.log files.
    """
    git_project.manifest("", "parent", group="acme", modules=["alpha", "beta"])
    git_project.manifest("alpha", "alpha")
    git_project.write("alpha/src/alpha/__init__.py", "VALUE = 1\n")
    git_project.manifest("beta", "beta", requires=["alpha>=1.0"])
    git_project.write("beta/src/beta/__init__.py", "from alpha import VALUE\n")
    git_project.write(".gitignore", "*.log\n")
    git_project.write("README.md", "project\n")
    return git_project


@pytest.fixture
def root_logger():
    """Restore the root logger after setup_logging replaced its handlers."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
    get_logger().setLevel(logging.NOTSET)
