# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional


# Toolchain flags applied to every cross-compile (static binaries).
DEFAULT_TOOLCHAIN_ENV: Dict[str, str] = {"CGO_ENABLED": "0"}


@dataclass(frozen=True)
class BuildTarget:
    """A single (operating system, architecture) pair to compile for."""
    os: str
    arch: str

    def __str__(self) -> str:
        return f"{self.os}/{self.arch}"


@dataclass(frozen=True)
class PlatformConfig:
    """Everything the build action needs to know about one target."""
    os: str
    arch: str
    env: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TOOLCHAIN_ENV))

    @classmethod
    def for_target(cls, target: BuildTarget) -> "PlatformConfig":
        return cls(os=target.os, arch=target.arch)

    def environment(self) -> Dict[str, str]:
        """Environment overrides for the compiler process."""
        env = dict(self.env)
        env["GOOS"] = self.os
        env["GOARCH"] = self.arch
        return env


@dataclass
class TargetResult:
    """
    Outcome of one build job.

    status is one of:
      - "ok"
      - "failed"
      - "cancelled"  (never started because the run was cancelled)
    """
    target: BuildTarget
    status: str
    artifact: Optional[Path] = None
    duration: float = 0.0
    exit_code: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


@dataclass
class BuildReport:
    """Outcome of one complete build run."""
    version: str
    output_dir: Path
    workers: int
    elapsed: float = 0.0
    results: Dict[BuildTarget, TargetResult] = field(default_factory=dict)

    @property
    def failed(self) -> list[TargetResult]:
        return [r for r in self.results.values() if r.status == "failed"]

    @property
    def cancelled(self) -> list[TargetResult]:
        return [r for r in self.results.values() if r.status == "cancelled"]

    @property
    def succeeded(self) -> bool:
        return all(r.ok for r in self.results.values())
