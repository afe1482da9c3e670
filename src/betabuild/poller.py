# poller.py
from __future__ import annotations

import signal
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from .config import DaemonConfig, MarkerPolicy
from .errors import BuildCancelled, BuildFailed, RepositoryError, SetupError, StartupError
from .git_facts.git import GitRepository
from .marker import read_marker, write_marker
from .runner import run_build
from .ui.console import Console, get_console


@dataclass
class CycleOutcome:
    """
    Result of one poll cycle.

    status is one of:
      - "pull_failed"   (sync or git query failed; marker untouched)
      - "unchanged"     (no new commit)
      - "built"
      - "build_failed"
      - "setup_failed"  (output directory could not be created)
      - "cancelled"     (stop() was called during the build)
    """
    status: str
    delay: float
    commit: Optional[str] = None
    version: Optional[str] = None
    error: Optional[str] = None


class Poller:
    """Watches the checkout and runs a build whenever HEAD moves."""

    def __init__(
        self,
        config: DaemonConfig,
        repository: Optional[GitRepository] = None,
        build: Callable[..., object] = run_build,
        console: Optional[Console] = None,
    ):
        """
        Initialize poller.

        Args:
            config: Paths, intervals and build knobs
            repository: Object with exists/clone/synchronize/commit_id/version_tag
                        (defaults to a GitRepository for config.checkout_dir)
            build: Build supervisor, called as build(version, output_dir, ...)
            console: Output sink (defaults to the global console)
        """
        self.config = config
        self.repository = repository or GitRepository(config.checkout_dir, config.repo_url)
        self.build = build
        self.console = console or get_console()
        self.commit = ""
        self._stop = threading.Event()

    # ------------------------------------------------------------------
    # Shutdown hook
    # ------------------------------------------------------------------

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Ask the loop to exit; also cancels a build in progress."""
        self._stop.set()

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals."""
        self.console.print_info(f"\nReceived signal {signum}, shutting down gracefully...")
        self.stop()

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def start(self) -> None:
        """
        Make sure the checkout exists and load the commit marker.

        Raises StartupError if either is impossible.
        """
        try:
            if not self.repository.exists():
                self.console.print_info(f"clone repo {self.config.repo_url}")
                self.repository.clone()
        except (RepositoryError, OSError) as e:
            raise StartupError(f"clone error: {e}") from e

        try:
            self.commit = read_marker(self.config.marker_file)
        except OSError as e:
            raise StartupError(f"read state file {self.config.marker_file}: {e}") from e

    def poll_once(self) -> CycleOutcome:
        """Run one Polling cycle and return what happened plus how long to wait."""
        cfg = self.config

        try:
            self.repository.synchronize()
            new_commit = self.repository.commit_id()
        except RepositoryError as e:
            self.console.print_error("Update failed", str(e), suggestion=f"Retrying in {cfg.retry_delay:g}s.")
            return CycleOutcome("pull_failed", cfg.retry_delay, error=str(e))

        if new_commit == self.commit:
            self.console.print_debug(f"no new commit ({new_commit})")
            self._write_marker()
            return CycleOutcome("unchanged", cfg.poll_interval, commit=new_commit)

        try:
            version = self.repository.version_tag()
        except RepositoryError as e:
            self.console.print_error("Version lookup failed", str(e), suggestion=f"Retrying in {cfg.retry_delay:g}s.")
            return CycleOutcome("pull_failed", cfg.retry_delay, commit=new_commit, error=str(e))

        self.console.print_poll(f"new commit {new_commit}")
        outcome = self._build(new_commit, version)

        if outcome.status == "built" or (
            outcome.status in ("build_failed", "setup_failed")
            and cfg.marker_policy is MarkerPolicy.ADVANCE
        ):
            self.commit = new_commit
        self._write_marker()
        return outcome

    def _build(self, commit: str, version: str) -> CycleOutcome:
        cfg = self.config
        try:
            self.build(
                version,
                cfg.output_dir,
                source_dir=cfg.checkout_dir,
                workers=cfg.workers,
                prefix=cfg.prefix,
                job_timeout=cfg.job_timeout,
                cancel=self._stop,
                console=self.console,
            )
        except SetupError as e:
            self.console.print_error("Output directory", str(e))
            return CycleOutcome("setup_failed", cfg.poll_interval, commit, version, str(e))
        except BuildCancelled as e:
            self.console.print_info(str(e))
            return CycleOutcome("cancelled", cfg.poll_interval, commit, version, str(e))
        except BuildFailed as e:
            self.console.print_error(
                "Build failed",
                f"version {e.version}",
                details=[str(f) for f in e.failures],
            )
            if e.report is not None:
                self.console.print_results(e.report)
            return CycleOutcome("build_failed", cfg.poll_interval, commit, version, str(e))

        return CycleOutcome("built", cfg.poll_interval, commit, version)

    def _write_marker(self) -> None:
        try:
            write_marker(self.config.marker_file, self.commit)
        except OSError as e:
            self.console.print_error("State file", f"write state file {self.config.marker_file}: {e}")

    def run(self) -> None:
        """
        Run the daemon until stop() is called.

        The stop flag is checked at every iteration boundary and also wakes
        the loop out of its sleep.
        """
        self.start()
        self.console.print_daemon_started(
            repository=self.config.repo_url,
            checkout=str(self.config.checkout_dir),
            output_dir=str(self.config.output_dir),
            poll_interval=self.config.poll_interval,
        )

        while not self._stop.is_set():
            try:
                delay = self.poll_once().delay
            except Exception as e:
                self.console.print_exception(e)
                delay = self.config.retry_delay

            if self._stop.wait(delay):
                break

        self.console.print_info("Daemon stopped.")
