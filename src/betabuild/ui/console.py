"""Console output formatting utilities for betabuild."""

from __future__ import annotations

import sys
import threading
from typing import Optional

from betabuild.model import BuildReport, BuildTarget


class Console:
    """Centralized console output formatting (safe to call from workers)."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug
        self._lock = threading.RLock()

    def _out(self, message: str, err: bool = False) -> None:
        stream = sys.stderr if err else sys.stdout
        with self._lock:
            print(message, file=stream, flush=True)

    def print_daemon_started(
        self,
        repository: str,
        checkout: str,
        output_dir: str,
        poll_interval: float,
    ) -> None:
        """Print daemon start information."""
        self._out(
            "\nDAEMON STARTED\n"
            f"Repository: {repository}\n"
            f"Checkout: {checkout}\n"
            f"Output: {output_dir}\n"
            f"Polling every: {poll_interval:g}s\n"
        )

    def print_build_started(self, version: str, targets: int, workers: int) -> None:
        """Print build start message."""
        self._out(f"compiling {version} ({targets} targets, {workers} workers)")

    def print_target_started(self, version: str, target: BuildTarget) -> None:
        self._out(f"[{target}] ▶ {version}")

    def print_target_done(self, target: BuildTarget, duration: float) -> None:
        self._out(f"[{target}] ✓ {duration:.1f}s")

    def print_target_failed(
        self,
        version: str,
        target: BuildTarget,
        reason: str,
    ) -> None:
        """Print a single target failure to stderr."""
        self._out(f"compiling {version} for {target} failed: {reason}", err=True)

    def print_build_complete(self, report: BuildReport) -> None:
        """Print the success line for a finished run."""
        self._out(f"built version {report.version} in {report.elapsed:.1f}s")

    def print_results(self, report: BuildReport) -> None:
        """Print final per-target summary."""
        self._out(
            "\n" + "=" * 40 + "\nRESULTS\n" + "=" * 40 + "\n"
            + "\n".join(
                f"  {target}: {result.status.upper() if not result.ok else 'SUCCESS'}"
                for target, result in report.results.items()
            )
        )

    def print_poll(self, message: str) -> None:
        """Print a change-detection event."""
        self._out(message)

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        lines = [f"\nERROR: {title}", message]
        if details:
            lines.extend(f"  {detail}" for detail in details)
        if suggestion:
            lines.append(f"\n{suggestion}")
        self._out("\n".join(lines), err=True)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            with self._lock:
                traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            self._out(f"Error: {exc}", err=True)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        self._out(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            self._out(f"[DEBUG] {message}", err=True)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
