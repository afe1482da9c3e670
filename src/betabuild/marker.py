# marker.py
from __future__ import annotations

from pathlib import Path


def read_marker(path: str | Path) -> str:
    """
    Return the last processed commit id stored at `path`.

    A missing file is not an error: it means nothing has been built yet,
    and the empty string never equals a real commit id.
    """
    try:
        return Path(path).read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return ""


def write_marker(path: str | Path, commit_id: str) -> None:
    """Overwrite the marker file with `commit_id`."""
    p = Path(path)
    p.write_text(commit_id, encoding="utf-8")
    p.chmod(0o644)
