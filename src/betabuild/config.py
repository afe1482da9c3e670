# config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

from .targets import DEFAULT_PREFIX


class MarkerPolicy(str, Enum):
    """
    What happens to the commit marker when a build of a new commit fails.

    ADVANCE: the marker moves to the new commit anyway; the failing commit
             is not retried (it will be built again only once a newer
             commit lands).
    RETRY:   the marker stays where it was, so the next poll cycle builds
             the same commit again.
    """
    ADVANCE = "advance"
    RETRY = "retry"


DEFAULT_REPO_URL = "https://github.com/restic/restic"
DEFAULT_CHECKOUT_DIR = "restic.git"
DEFAULT_OUTPUT_DIR = "/var/www/beta.restic.net"
DEFAULT_MARKER_FILE = "commit.current"
DEFAULT_POLL_INTERVAL = 3 * 60.0
DEFAULT_RETRY_DELAY = 60.0


@dataclass
class DaemonConfig:
    """Everything the poller and build supervisor need, passed explicitly."""
    repo_url: str = DEFAULT_REPO_URL
    checkout_dir: Path = Path(DEFAULT_CHECKOUT_DIR)
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    marker_file: Path = Path(DEFAULT_MARKER_FILE)
    poll_interval: float = DEFAULT_POLL_INTERVAL
    retry_delay: float = DEFAULT_RETRY_DELAY
    workers: Optional[int] = None
    job_timeout: Optional[float] = None
    prefix: str = DEFAULT_PREFIX
    marker_policy: MarkerPolicy = MarkerPolicy.ADVANCE

    def __post_init__(self) -> None:
        self.checkout_dir = Path(self.checkout_dir)
        self.output_dir = Path(self.output_dir)
        self.marker_file = Path(self.marker_file)
        self.marker_policy = MarkerPolicy(self.marker_policy)
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.retry_delay < 0:
            raise ValueError(f"retry_delay must not be negative, got {self.retry_delay}")
        if self.retry_delay >= self.poll_interval:
            raise ValueError(
                f"retry_delay ({self.retry_delay:g}s) must be shorter than poll_interval ({self.poll_interval:g}s)"
            )
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DaemonConfig":
        """Build a config from BETABUILD_* environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            repo_url=env.get("BETABUILD_REPO_URL", DEFAULT_REPO_URL),
            checkout_dir=Path(env.get("BETABUILD_CHECKOUT_DIR", DEFAULT_CHECKOUT_DIR)),
            output_dir=Path(env.get("BETABUILD_OUTPUT_DIR", DEFAULT_OUTPUT_DIR)),
            marker_file=Path(env.get("BETABUILD_MARKER_FILE", DEFAULT_MARKER_FILE)),
            poll_interval=_float(env, "BETABUILD_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
            retry_delay=_float(env, "BETABUILD_RETRY_DELAY", DEFAULT_RETRY_DELAY),
            workers=_int(env, "BETABUILD_WORKERS"),
            job_timeout=_float(env, "BETABUILD_JOB_TIMEOUT", None),
            prefix=env.get("BETABUILD_PREFIX", DEFAULT_PREFIX),
            marker_policy=_policy(env.get("BETABUILD_MARKER_POLICY", MarkerPolicy.ADVANCE.value)),
        )


def _float(env: Mapping[str, str], name: str, default: Optional[float]) -> Optional[float]:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _int(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = env.get(name)
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _policy(raw: str) -> MarkerPolicy:
    try:
        return MarkerPolicy(raw.lower())
    except ValueError:
        choices = ", ".join(p.value for p in MarkerPolicy)
        raise ValueError(f"BETABUILD_MARKER_POLICY must be one of {choices}, got {raw!r}") from None
