"""
Shared pytest fixtures for betabuild tests.

Build actions and repositories are faked: nothing here needs a Go
toolchain or network access.
"""
from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from betabuild.errors import BuildActionError, RepositoryError
from betabuild.ui.console import Console


class RecordingAction:
    """
    Stand-in for run_build_action.

    Records every call, writes a small artifact file, and can be told to
    fail for specific targets or to block until the run is cancelled.
    """

    def __init__(self, fail=(), block_until_cancel=False, delay=0.0, write=True):
        self.fail = {str(t) for t in fail}
        self.block_until_cancel = block_until_cancel
        self.delay = delay
        self.write = write
        self.calls = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def __call__(self, source_dir, output_path, config, *, timeout=None, cancel=None):
        key = f"{config.os}/{config.arch}"
        with self._lock:
            self.calls.append((config.os, config.arch, Path(output_path)))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if key in self.fail:
                raise BuildActionError("compiler exited with an error", exit_code=2)
            if self.block_until_cancel and cancel is not None:
                if cancel.wait(timeout=10):
                    raise BuildActionError("cancelled", cancelled=True)
            if self.write:
                Path(output_path).write_text(key)
        finally:
            with self._lock:
                self.active -= 1


class FakeRepository:
    """In-memory replacement for GitRepository."""

    def __init__(self, commit="c0ffee", version="v1.0.0-0-gc0ffee", exists=True):
        self.commit = commit
        self.version = version
        self._exists = exists
        self.sync_failures = 0
        self.sync_calls = 0
        self.clone_error = None
        self.cloned = False
        self.on_sync = None

    def exists(self):
        return self._exists

    def clone(self):
        if self.clone_error:
            raise self.clone_error
        self.cloned = True
        self._exists = True

    def synchronize(self):
        self.sync_calls += 1
        if self.on_sync is not None:
            self.on_sync(self.sync_calls)
        if self.sync_failures:
            self.sync_failures -= 1
            raise RepositoryError("pull", "restic.git", "exit status 1")

    def commit_id(self):
        return self.commit

    def version_tag(self):
        return self.version


class RecordingBuild:
    """Stand-in for run_build as seen by the poller."""

    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def __call__(self, version, output_dir, **kwargs):
        self.calls.append((version, Path(output_dir), kwargs))
        if self.error is not None:
            raise self.error
        return None


@pytest.fixture
def console():
    return Console(debug=True)


@pytest.fixture
def action():
    return RecordingAction()


@pytest.fixture
def repo():
    return FakeRepository()
