# action.py
from __future__ import annotations

import os
import subprocess
import threading
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .errors import BuildActionError
from .model import PlatformConfig


# Signature every build action must follow. run_build() only cares whether it
# returns (success) or raises BuildActionError (failure).
BuildAction = Callable[..., None]

TERMINATE_GRACE = 5.0
_WAIT_SLICE = 0.2


def default_command(output_path: Path, config: PlatformConfig) -> List[str]:
    """The project's own cross-compile helper: `go run build.go ...`."""
    return [
        "go", "run", "build.go",
        "-o", str(output_path),
        "--goos", config.os,
        "--goarch", config.arch,
    ]


def _stop(proc: subprocess.Popen) -> None:
    proc.terminate()
    try:
        proc.wait(timeout=TERMINATE_GRACE)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()


def run_build_action(
    source_dir: str | Path,
    output_path: str | Path,
    config: PlatformConfig,
    *,
    command: Optional[Sequence[str]] = None,
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
) -> None:
    """
    Compile the checkout in source_dir for one platform, writing output_path.

    stdout/stderr are streamed straight through to ours. Raises
    BuildActionError if the compiler cannot be started, exits non-zero,
    runs longer than `timeout` seconds, or is stopped via `cancel`.
    """
    output_path = Path(output_path)
    cmd = list(command) if command is not None else default_command(output_path, config)

    env = os.environ.copy()
    env.update(config.environment())

    try:
        proc = subprocess.Popen(cmd, cwd=str(source_dir), env=env)
    except OSError as e:
        raise BuildActionError(f"could not start {cmd[0]!r}: {e}", cmd=cmd) from e

    deadline = time.monotonic() + timeout if timeout is not None else None
    while True:
        try:
            returncode = proc.wait(timeout=_WAIT_SLICE)
            break
        except subprocess.TimeoutExpired:
            pass

        if cancel is not None and cancel.is_set():
            _stop(proc)
            raise BuildActionError("cancelled", cmd=cmd, cancelled=True)
        if deadline is not None and time.monotonic() >= deadline:
            _stop(proc)
            raise BuildActionError(f"timed out after {timeout:g}s", cmd=cmd)

    if returncode != 0:
        raise BuildActionError("compiler exited with an error", exit_code=returncode, cmd=cmd)


def toolchain_version(command: Sequence[str] = ("go", "version")) -> str:
    """
    Return the compiler's version string.

    Raises BuildActionError when the toolchain is missing or broken; the
    daemon treats that as fatal at startup.
    """
    try:
        out = subprocess.check_output(list(command), text=True)
    except (OSError, subprocess.CalledProcessError) as e:
        raise BuildActionError(f"cannot determine compiler version: {e}", cmd=list(command)) from e
    return out.strip()
