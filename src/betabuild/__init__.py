from .model import BuildTarget, BuildReport, PlatformConfig, TargetResult
from .targets import targets, artifact_name
from .runner import run_build
from .poller import Poller
from .config import DaemonConfig, MarkerPolicy

__all__ = [
    "BuildTarget", "BuildReport", "PlatformConfig", "TargetResult",
    "targets", "artifact_name", "run_build", "Poller", "DaemonConfig", "MarkerPolicy",
]
