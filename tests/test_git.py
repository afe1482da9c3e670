"""
test_git: git CLI wrapper against real throwaway repositories.

Skipped when git is not installed.
"""
import os
import shutil
import subprocess

import pytest

from betabuild.errors import RepositoryError
from betabuild.git_facts.git import (
    GitRepository,
    current_commit_id,
    current_version_tag,
    repository_exists,
    synchronize,
)

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

GIT_ENV = {
    "GIT_AUTHOR_NAME": "Beta Build",
    "GIT_AUTHOR_EMAIL": "beta@example.com",
    "GIT_COMMITTER_NAME": "Beta Build",
    "GIT_COMMITTER_EMAIL": "beta@example.com",
}


def _git(cwd, *args):
    env = os.environ.copy()
    env.update(GIT_ENV)
    subprocess.run(["git", *args], cwd=cwd, env=env, check=True, capture_output=True)


def _commit(repo, name, content="x"):
    (repo / name).write_text(content)
    _git(repo, "add", name)
    _git(repo, "commit", "-q", "-m", f"add {name}")


@pytest.fixture
def upstream(tmp_path, monkeypatch):
    for key, value in GIT_ENV.items():
        monkeypatch.setenv(key, value)
    repo = tmp_path / "upstream"
    repo.mkdir()
    _git(repo, "init", "-q")
    _commit(repo, "main.go", "package main\n")
    _git(repo, "tag", "v0.1.0")
    return repo


class TestQueries:

    def test_commit_id_is_full_sha(self, upstream):
        sha = current_commit_id(upstream)
        assert len(sha) == 40
        int(sha, 16)

    def test_version_tag_describes_commit(self, upstream):
        assert current_version_tag(upstream).startswith("v0.1.0-0-g")

    def test_version_tag_marks_dirty_tree(self, upstream):
        (upstream / "main.go").write_text("package main // changed\n")
        assert current_version_tag(upstream).endswith("-dirty")

    def test_not_a_repository(self, tmp_path, monkeypatch):
        plain = tmp_path / "plain"
        plain.mkdir()
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))

        with pytest.raises(RepositoryError) as exc:
            current_commit_id(plain)
        assert "rev-parse" in str(exc.value)

    def test_repository_exists(self, tmp_path, upstream):
        assert repository_exists(upstream)
        assert not repository_exists(tmp_path / "missing")


class TestSynchronize:

    def test_clone_then_pull(self, tmp_path, upstream):
        checkout = tmp_path / "restic.git"

        synchronize(checkout, str(upstream))
        assert current_commit_id(checkout) == current_commit_id(upstream)

        _commit(upstream, "README.md")
        synchronize(checkout, str(upstream))
        assert current_commit_id(checkout) == current_commit_id(upstream)
        assert current_version_tag(checkout).startswith("v0.1.0-1-g")

    def test_pull_failure_raises(self, tmp_path, upstream):
        checkout = tmp_path / "restic.git"
        synchronize(checkout, str(upstream))
        shutil.rmtree(upstream)

        with pytest.raises(RepositoryError) as exc:
            synchronize(checkout, str(upstream))
        assert exc.value.operation == "pull"

    def test_git_repository_wrapper(self, tmp_path, upstream):
        repo = GitRepository(tmp_path / "restic.git", str(upstream))
        assert not repo.exists()
        repo.clone()
        assert repo.exists()
        repo.synchronize()
        assert repo.commit_id() == current_commit_id(upstream)
        assert repo.version_tag().startswith("v0.1.0-0-g")
