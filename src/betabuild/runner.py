# runner.py
from __future__ import annotations

import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, Optional, Sequence

from .action import BuildAction, run_build_action
from .channel import JobChannel
from .errors import BuildActionError, BuildCancelled, BuildFailed, SetupError, TargetFailure
from .model import BuildReport, BuildTarget, PlatformConfig, TargetResult
from .targets import DEFAULT_PREFIX, artifact_name, run_dir_name, targets
from .ui.console import Console, get_console


def worker_count(requested: Optional[int] = None) -> int:
    """Requested count, or the host's available parallelism; never below 1."""
    if requested is None:
        requested = os.cpu_count() or 1
    return max(1, requested)


# ----------------------------------------------------------------------
# Worker
# ----------------------------------------------------------------------

def _build_one(
    target: BuildTarget,
    *,
    version: str,
    source_dir: Path,
    output_dir: Path,
    prefix: str,
    action: BuildAction,
    job_timeout: Optional[float],
    cancel: threading.Event,
    console: Console,
) -> TargetResult:
    artifact = output_dir / artifact_name(prefix, version, target)
    console.print_target_started(version, target)
    start = time.monotonic()

    try:
        action(
            source_dir,
            artifact,
            PlatformConfig.for_target(target),
            timeout=job_timeout,
            cancel=cancel,
        )
    except BuildActionError as e:
        return TargetResult(
            target=target,
            status="cancelled" if e.cancelled else "failed",
            artifact=artifact,
            duration=time.monotonic() - start,
            exit_code=e.exit_code,
            error=str(e),
        )
    except Exception as e:
        return TargetResult(
            target=target,
            status="failed",
            artifact=artifact,
            duration=time.monotonic() - start,
            error=f"{type(e).__name__}: {e}",
        )

    duration = time.monotonic() - start
    console.print_target_done(target, duration)
    return TargetResult(target=target, status="ok", artifact=artifact, duration=duration)


def _worker(
    channel: JobChannel[BuildTarget],
    results: Dict[BuildTarget, TargetResult],
    lock: threading.Lock,
    *,
    version: str,
    cancel: threading.Event,
    console: Console,
    **job,
) -> int:
    """
    Pull targets until the channel is closed and drained.

    Once `cancel` is set the remaining targets are still taken off the
    channel (so the pusher never blocks forever) but recorded as cancelled.
    Returns the number of targets this worker handled.
    """
    handled = 0
    for target in channel:
        handled += 1
        result = None
        try:
            if cancel.is_set():
                result = TargetResult(target=target, status="cancelled")
            else:
                result = _build_one(target, version=version, cancel=cancel, console=console, **job)
                if result.status == "failed":
                    cancel.set()
                    console.print_target_failed(version, target, result.error or "unknown error")
        except Exception as e:
            # a worker must keep draining even when reporting breaks
            cancel.set()
            if result is None:
                result = TargetResult(target=target, status="failed", error=f"{type(e).__name__}: {e}")

        with lock:
            results[target] = result
    return handled


# ----------------------------------------------------------------------
# Build supervisor
# ----------------------------------------------------------------------

def run_build(
    version: str,
    base_output_dir: str | Path,
    *,
    source_dir: str | Path = ".",
    matrix: Optional[Sequence[BuildTarget]] = None,
    action: Optional[BuildAction] = None,
    workers: Optional[int] = None,
    prefix: str = DEFAULT_PREFIX,
    job_timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
    console: Optional[Console] = None,
) -> BuildReport:
    """
    Build every target in `matrix` for one version.

    - Creates <base_output_dir>/<prefix>-<version> (SetupError if it can't).
    - Fans the matrix out over a fixed pool of workers through a JobChannel.
    - On the first failed target, the rest of the run is cancelled; every
      failure is collected and raised as one BuildFailed.

    Returns the BuildReport when every target built.
    """
    console = console or get_console()
    action = action or run_build_action
    matrix = list(targets() if matrix is None else matrix)
    cancel = cancel if cancel is not None else threading.Event()
    start = time.monotonic()

    output_dir = Path(base_output_dir) / run_dir_name(prefix, version)
    try:
        output_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as e:
        raise SetupError(output_dir=output_dir, message=str(e)) from e

    n = worker_count(workers)
    report = BuildReport(version=version, output_dir=output_dir, workers=n)
    console.print_build_started(version, len(matrix), n)

    channel: JobChannel[BuildTarget] = JobChannel()
    lock = threading.Lock()

    with ThreadPoolExecutor(max_workers=n, thread_name_prefix="build") as pool:
        futures = [
            pool.submit(
                _worker,
                channel,
                report.results,
                lock,
                version=version,
                cancel=cancel,
                console=console,
                source_dir=Path(source_dir),
                output_dir=output_dir,
                prefix=prefix,
                action=action,
                job_timeout=job_timeout,
            )
            for _ in range(n)
        ]

        # Every target is pushed even after a cancel; workers drain them.
        try:
            for target in matrix:
                channel.put(target)
        except BaseException:
            cancel.set()
            raise
        finally:
            if not channel.closed:
                channel.close()

        for fut in as_completed(futures):
            fut.result()

    report.elapsed = time.monotonic() - start
    # keep matrix order in the report regardless of completion order
    report.results = {t: report.results[t] for t in matrix}

    failures = [
        TargetFailure(target=r.target, version=version, message=r.error or "", exit_code=r.exit_code)
        for r in report.failed
    ]
    if failures:
        raise BuildFailed(version=version, failures=failures, report=report)
    if report.cancelled:
        raise BuildCancelled(version=version, failures=[], report=report)

    console.print_build_complete(report)
    return report
