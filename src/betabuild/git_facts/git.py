# git.py
# Small, focused wrapper around the Git CLI.
# This module centralizes all Git interactions so the rest of the codebase
# never needs to call subprocess("git ...") directly.

from __future__ import annotations

import subprocess
from pathlib import Path

from betabuild.errors import RepositoryError


def _git(args: list[str], cwd: str | Path | None = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    This is the single low-level entry point for git commands whose output
    we need. stderr is passed through so the operator sees git's own message.

    Args:
        args: List of git arguments (e.g. ["rev-parse", "HEAD"])
        cwd: Optional working directory in which to run the git command.

    Returns:
        Stdout from the git command with surrounding whitespace removed.

    Raises:
        RepositoryError: git is missing or exited non-zero.
    """
    try:
        out = subprocess.check_output(
            ["git", *args],
            cwd=str(cwd) if cwd is not None else None,
            text=True,   # return output as str instead of bytes
        )
    except subprocess.CalledProcessError as e:
        raise RepositoryError(args[0], str(cwd or "."), f"exit status {e.returncode}") from e
    except OSError as e:
        raise RepositoryError(args[0], str(cwd or "."), str(e)) from e

    # Strip trailing newlines so callers can do clean string comparisons
    return out.strip()


def _git_stream(args: list[str], cwd: str | Path | None = None) -> None:
    """Run a git command with stdout/stderr going straight to ours."""
    try:
        subprocess.run(
            ["git", *args],
            cwd=str(cwd) if cwd is not None else None,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        raise RepositoryError(args[0], str(cwd or "."), f"exit status {e.returncode}") from e
    except OSError as e:
        raise RepositoryError(args[0], str(cwd or "."), str(e)) from e


def repository_exists(path: str | Path) -> bool:
    """
    Return True if something exists at `path`.

    Only "does not exist" is answered with False; any other stat failure
    (permissions, I/O) is raised, since it means the checkout is unusable.
    """
    try:
        Path(path).stat()
    except FileNotFoundError:
        return False
    return True


def clone(url: str, path: str | Path) -> None:
    """Clone `url` into `path` quietly."""
    _git_stream(["clone", "--quiet", url, str(path)])


def pull(path: str | Path) -> None:
    """Fast-forward the checkout at `path` from its upstream."""
    _git_stream(["pull", "--quiet"], cwd=path)


def synchronize(path: str | Path, url: str) -> None:
    """Clone the repository if it is not there yet, otherwise pull."""
    if not repository_exists(path):
        clone(url, path)
        return
    pull(path)


def current_commit_id(path: str | Path) -> str:
    """
    Return the full SHA hash of the checkout's HEAD commit.

    Raises RepositoryError if `path` is not a git repository.
    """
    # `git rev-parse HEAD` resolves HEAD to its commit hash
    return _git(["rev-parse", "HEAD"], cwd=path)


def current_version_tag(path: str | Path) -> str:
    """
    Return a human-readable version for the checked out commit.

    `git describe --long --tags --dirty --always` yields strings like
    `v0.7.1-24-g1a2b3c4` (or `v0.7.1-24-g1a2b3c4-dirty`, or a bare
    abbreviated SHA when there are no tags yet).
    """
    return _git(["describe", "--long", "--tags", "--dirty", "--always"], cwd=path)


class GitRepository:
    """
    The checkout the daemon watches.

    Bundles the functions above behind the small interface the poller
    needs, so tests can swap in a fake.
    """

    def __init__(self, path: str | Path, url: str):
        self.path = Path(path)
        self.url = url

    def exists(self) -> bool:
        return repository_exists(self.path)

    def clone(self) -> None:
        clone(self.url, self.path)

    def synchronize(self) -> None:
        synchronize(self.path, self.url)

    def commit_id(self) -> str:
        return current_commit_id(self.path)

    def version_tag(self) -> str:
        return current_version_tag(self.path)
