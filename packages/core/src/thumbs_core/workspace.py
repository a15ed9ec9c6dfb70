"""Local workspace operations: git plumbing and build command execution.

Both are thin wrappers over ``subprocess.run``. The integration runner only
sees the small surface defined here, so tests can swap in fakes without
touching the filesystem.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_GIT_TIMEOUT = 600


class GitCommandError(RuntimeError):
    """A git subprocess exited non-zero."""

    def __init__(self, args: list[str], returncode: int, output: str):
        self.args_list = list(args)
        self.returncode = returncode
        self.output = output
        message = f"git {' '.join(args)} failed ({returncode})"
        if output.strip():
            message = f"{message}: {output.strip()}"
        super().__init__(message)


@dataclass(frozen=True)
class CommandResult:
    command: str
    exit_code: int | None
    output: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def remove_tree(path: str | Path) -> None:
    """Delete a working copy. A missing directory is not an error."""
    shutil.rmtree(path, ignore_errors=True)


def _git(args: list[str], cwd: str | Path | None = None) -> str:
    logger.debug("git %s (cwd=%s)", " ".join(args), cwd)
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=_GIT_TIMEOUT,
        )
    except subprocess.TimeoutExpired as e:
        raise GitCommandError(args, -1, f"timed out after {e.timeout}s") from e
    except FileNotFoundError as e:
        raise GitCommandError(args, -1, "git executable not found") from e
    if proc.returncode != 0:
        raise GitCommandError(args, proc.returncode, proc.stdout or "")
    return proc.stdout or ""


class GitWorkspace:
    """A cloned working copy of a repository."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    @classmethod
    def clone(cls, remote_url: str, path: str | Path) -> GitWorkspace:
        _git(["clone", "--quiet", remote_url, str(path)])
        return cls(path)

    def checkout(self, ref: str) -> None:
        _git(["checkout", "--quiet", ref], cwd=self.path)

    def create_branch(self, name: str) -> None:
        """Create ``name`` at the current HEAD and switch to it."""
        _git(["checkout", "--quiet", "-b", name], cwd=self.path)

    def merge(self, ref: str) -> str:
        """Merge ``ref`` into the current branch and return git's summary."""
        return _git(["merge", "--no-edit", ref], cwd=self.path)


def run_command(command: str, cwd: str | Path, timeout: float | None = None) -> CommandResult:
    """Run a shell command in ``cwd`` with stdout and stderr interleaved.

    A timeout or a failure to launch the shell yields a result with
    ``exit_code=None`` rather than an exception.
    """
    try:
        proc = subprocess.run(
            command,
            shell=True,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.output or ""
        if isinstance(partial, bytes):
            partial = partial.decode("utf-8", errors="replace")
        return CommandResult(
            command=command,
            exit_code=None,
            output=f"{partial}\n[command timed out after {timeout}s]",
            timed_out=True,
        )
    except OSError as e:
        return CommandResult(command=command, exit_code=None, output=f"could not run command: {e}")
    return CommandResult(command=command, exit_code=proc.returncode, output=proc.stdout or "")
