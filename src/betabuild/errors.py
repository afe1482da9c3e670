# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .model import BuildReport, BuildTarget


class BuildError(Exception):
    """Base class for everything the build daemon raises on purpose."""


class ChannelClosed(BuildError):
    """Raised when pushing to (or closing) a job channel that is already closed."""


@dataclass
class RepositoryError(BuildError):
    """A git operation on the checkout failed (clone, pull, rev-parse, describe)."""
    operation: str
    path: str
    message: str

    def __str__(self) -> str:
        return f"git {self.operation} in {self.path} failed: {self.message}"


@dataclass
class BuildActionError(BuildError):
    """The external compiler could not be started, exited non-zero or timed out."""
    message: str
    exit_code: Optional[int] = None
    cmd: Optional[List[str]] = None
    cancelled: bool = False

    def __str__(self) -> str:
        if self.exit_code is not None:
            return f"{self.message} (exit={self.exit_code})"
        return self.message


@dataclass
class SetupError(BuildError):
    """The run's output directory could not be created. No job was started."""
    output_dir: Path
    message: str

    def __str__(self) -> str:
        return f"MkdirAll({self.output_dir}) failed: {self.message}"


@dataclass
class TargetFailure:
    """Structured description of one failed target."""
    target: "BuildTarget"
    version: str
    message: str
    exit_code: Optional[int] = None

    def __str__(self) -> str:
        return f"compiling {self.version} for {self.target} failed: {self.message}"


@dataclass
class BuildFailed(BuildError):
    """
    Aggregate error for a build run where at least one target did not build.

    Carries every per-target failure plus the full report so callers can
    see which targets were built, failed or cancelled.
    """
    version: str
    failures: List[TargetFailure] = field(default_factory=list)
    report: Optional["BuildReport"] = None

    def __str__(self) -> str:
        lines = [f"build of {self.version} failed ({len(self.failures)} target(s))"]
        for f in self.failures:
            lines.append(f"  {f}")
        return "\n".join(lines)


@dataclass
class BuildCancelled(BuildFailed):
    """The run was stopped from outside before every target was built."""

    def __str__(self) -> str:
        base = f"build of {self.version} cancelled"
        if self.failures:
            return base + "\n" + "\n".join(f"  {f}" for f in self.failures)
        return base


@dataclass
class StartupError(BuildError):
    """Unrecoverable problem before the polling loop begins."""
    message: str

    def __str__(self) -> str:
        return self.message
