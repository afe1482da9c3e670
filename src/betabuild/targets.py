# targets.py
from __future__ import annotations

from typing import Tuple

from .model import BuildTarget


DEFAULT_PREFIX = "restic"

_MATRIX: Tuple[BuildTarget, ...] = (
    BuildTarget("darwin", "386"),
    BuildTarget("darwin", "amd64"),
    BuildTarget("freebsd", "386"),
    BuildTarget("freebsd", "amd64"),
    BuildTarget("freebsd", "arm"),
    BuildTarget("linux", "386"),
    BuildTarget("linux", "amd64"),
    BuildTarget("linux", "arm"),
    BuildTarget("linux", "arm64"),
    BuildTarget("openbsd", "386"),
    BuildTarget("openbsd", "amd64"),
    BuildTarget("windows", "386"),
    BuildTarget("windows", "amd64"),
)


def targets() -> Tuple[BuildTarget, ...]:
    """Return the fixed build matrix, in build order."""
    return _MATRIX


def executable_suffix(os_name: str) -> str:
    return ".exe" if os_name == "windows" else ""


def artifact_name(prefix: str, version: str, target: BuildTarget) -> str:
    """
    File name of the artifact for one target, e.g.

        restic_v0.7.1-4-gabcdef_linux_amd64
        restic_v0.7.1-4-gabcdef_windows_amd64.exe
    """
    return f"{prefix}_{version}_{target.os}_{target.arch}{executable_suffix(target.os)}"


def run_dir_name(prefix: str, version: str) -> str:
    """Name of the per-version output subdirectory."""
    return f"{prefix}-{version}"
