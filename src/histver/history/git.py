"""Read-only access to a git repository through the ``git`` executable."""

from __future__ import annotations

import os
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Sequence, Union

from ..exceptions import RepositoryError
from ..logging_config import get_logger
from .models import ZERO_ID, Commit, FileChange, TagRef

logger = get_logger(__name__)

# Object id of the empty tree, the "parent" of root commits
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

_LOG_FORMAT = "--format=%H%x1f%P%x1f%cI%x1f%s"


class GitRepository:
    """A git work tree, queried with plumbing commands.

    Every failing invocation raises ``RepositoryError``; nothing is retried.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).resolve()
        top = self._text(["rev-parse", "--show-toplevel"], cwd=self.path).strip()
        self.root = Path(top).resolve()
        logger.debug("Git repository at %s", self.root)

    def __repr__(self) -> str:
        return f"GitRepository({str(self.root)!r})"

    # ── Paths ──────────────────────────────────────────────────────

    def relativize(self, path: Union[str, Path]) -> str:
        """``/``-separated path relative to the work tree, "" for the root."""
        try:
            rel = Path(path).resolve().relative_to(self.root).as_posix()
        except ValueError:
            raise RepositoryError("relativize", "path is outside the work tree", path)
        return "" if rel == "." else rel

    # ── Commits and refs ───────────────────────────────────────────

    def head(self) -> Optional[Commit]:
        """HEAD commit, None when the repository has no commits yet."""
        return self.resolve("HEAD")

    def resolve(self, ref: str) -> Optional[Commit]:
        """Commit named by a revision, None if it doesn't name one."""
        if not ref or ref.startswith("-"):
            return None
        result = self._run(["rev-parse", "-q", "--verify", f"{ref}^{{commit}}"], ok=(0, 1, 128))
        if result.returncode != 0:
            return None
        return self.commit(_decode(result.stdout).strip())

    def commit(self, sha: str) -> Commit:
        line = self._text(["log", "-1", _LOG_FORMAT, sha, "--"]).strip()
        return _parse_commit(line)

    def branch(self) -> str:
        """Current branch name.

        On a detached HEAD, the first local branch pointing at HEAD, else the
        first remote branch (without the remote name), else the HEAD commit
        id. Empty when there are no commits.
        """
        head = self.head()
        if head is None:
            return ""

        result = self._run(["symbolic-ref", "-q", "--short", "HEAD"], ok=(0, 1))
        if result.returncode == 0:
            return _decode(result.stdout).strip()

        for prefix in ("refs/heads/", "refs/remotes/"):
            refs = self._text(
                ["for-each-ref", "--points-at", head.sha, "--format=%(refname)", prefix]
            ).splitlines()
            for ref in sorted(refs):
                name = ref[len(prefix):]
                if prefix == "refs/remotes/":
                    name = name.partition("/")[2]
                if name and name != "HEAD":
                    logger.debug("Detached HEAD, using branch %s from %s", name, ref)
                    return name

        return head.sha

    def tags(self, prefix: str = "refs/tags/") -> list[TagRef]:
        """Tags whose complete name starts with ``prefix``, peeled to commits."""
        pattern = prefix.rstrip("/")
        out = self._text(
            [
                "for-each-ref",
                "--format=%(refname)%00%(objectname)%00%(*objectname)",
                pattern,
            ]
        )
        tags = []
        for line in out.splitlines():
            name, target, peeled = line.split("\0")
            if name.startswith(prefix):
                tags.append(TagRef(name, peeled or target))
        return tags

    def iter_first_parent(self, start: str) -> Iterator[Commit]:
        """Stream first-parent history from ``start``, newest first."""
        cmd = ["git", "-C", str(self.root), "log", "--first-parent", _LOG_FORMAT, start, "--"]
        # Use Popen for streaming so walks stopping early never read the whole log
        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=_git_env(),
            )
        except OSError as e:
            raise RepositoryError("log", str(e), self.root)

        finished = False
        try:
            stdout = proc.stdout
            if stdout is not None:
                for line in stdout:
                    line = line.strip()
                    if line:
                        yield _parse_commit(line)
            finished = True
        finally:
            if not finished:
                proc.kill()
            if proc.stdout:
                proc.stdout.close()
            stderr = proc.stderr.read() if proc.stderr else ""
            if proc.stderr:
                proc.stderr.close()
            returncode = proc.wait()
            if finished and returncode != 0:
                raise RepositoryError("log", stderr.strip(), self.root)

    # ── Content ────────────────────────────────────────────────────

    def tree_changes(self, old: Optional[str], new: str, prefix: str = "") -> list[FileChange]:
        """Files changed between two commits (``old`` None for a root commit)."""
        args = ["diff-tree", "-r", "-z", "--raw", "--no-abbrev", "--no-renames"]
        args += [old or EMPTY_TREE, new]
        return _parse_raw(self._run(args + _pathspec(prefix)).stdout)

    def working_tree_changes(self, head: Optional[str], prefix: str = "") -> list[FileChange]:
        """Staged, unstaged and untracked (not ignored) changes against ``head``."""
        base = head or EMPTY_TREE
        args = ["diff-index", "-z", "--no-abbrev", "--no-renames", base]
        changes = self._drop_stat_only(_parse_raw(self._run(args + _pathspec(prefix)).stdout))
        untracked = self._run(
            ["ls-files", "-z", "--others", "--exclude-standard"] + _pathspec(prefix)
        ).stdout
        for path in _decode(untracked).split("\0"):
            if path:
                changes.append(FileChange("?", path))
        return changes

    def _drop_stat_only(self, changes: list[FileChange]) -> list[FileChange]:
        """Remove modifications whose working file hashes to the committed blob.

        Files touched since the index was last refreshed are listed without
        a new blob id; hashing them leaves the index untouched.
        """
        unknown = [
            c
            for c in changes
            if c.status == "M" and c.new_blob == ZERO_ID and c.old_mode == c.new_mode
        ]
        if not unknown:
            return changes

        output = self._text(["hash-object", "--", *(c.path for c in unknown)])
        same = {
            c.path for c, blob in zip(unknown, output.split()) if blob == c.old_blob
        }
        return [c for c in changes if c.path not in same]

    def read_blob(self, blob_id: str) -> bytes:
        return self._run(["cat-file", "blob", blob_id]).stdout

    def read_file(self, path: str) -> Optional[bytes]:
        """Working tree content of a repository path, None if absent."""
        try:
            return (self.root / path).read_bytes()
        except OSError:
            return None

    # ── Plumbing ───────────────────────────────────────────────────

    def _text(self, args: Sequence[str], cwd: Optional[Path] = None) -> str:
        return _decode(self._run(args, cwd=cwd).stdout)

    def _run(
        self,
        args: Sequence[str],
        ok: Sequence[int] = (0,),
        cwd: Optional[Path] = None,
    ) -> subprocess.CompletedProcess:
        directory = cwd or self.root
        cmd = ["git", "-C", str(directory), *args]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                env=_git_env(),
            )
        except OSError as e:
            raise RepositoryError(args[0], str(e), directory)

        if result.returncode not in ok:
            raise RepositoryError(
                " ".join(args[:2]),
                _decode(result.stderr).strip() or f"exit code {result.returncode}",
                directory,
            )
        return result


def _git_env() -> dict[str, str]:
    env = dict(os.environ)
    # Output is parsed, keep it untranslated and free of pagers
    env["LC_ALL"] = "C"
    env["GIT_PAGER"] = "cat"
    # Never refresh the index behind the caller's back
    env["GIT_OPTIONAL_LOCKS"] = "0"
    return env


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="surrogateescape")


def _pathspec(prefix: str) -> list[str]:
    return ["--", prefix] if prefix else []


def _parse_commit(line: str) -> Commit:
    try:
        sha, parents, date, subject = line.split("\x1f", 3)
        return Commit(sha, tuple(parents.split()), datetime.fromisoformat(date), subject)
    except ValueError as e:
        raise RepositoryError("log", f"unexpected commit line {line!r}: {e}")


def _parse_raw(data: bytes) -> list[FileChange]:
    """Parse ``--raw -z`` output: ``:mode mode blob blob status\\0path\\0``."""
    changes = []
    fields = _decode(data).split("\0")
    i = 0
    while i < len(fields) - 1:
        meta = fields[i]
        if not meta.startswith(":"):
            i += 1
            continue
        old_mode, new_mode, old_blob, new_blob, status = meta[1:].split(" ")
        path = fields[i + 1]
        changes.append(
            FileChange(
                status=status[0],
                path=path,
                old_mode=old_mode,
                new_mode=new_mode,
                old_blob=old_blob if set(old_blob) != {"0"} else ZERO_ID,
                new_blob=new_blob if set(new_blob) != {"0"} else ZERO_ID,
            )
        )
        i += 2
    return changes
