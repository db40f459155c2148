"""Shared test fixtures and utilities."""

import os
import shutil
import subprocess
from pathlib import Path

import pytest


def run_git(repo: Path, *args: str) -> str:
    """Run a git command in repo and return stdout."""
    return subprocess.run(
        ["git", *args],
        cwd=repo,
        check=True,
        capture_output=True,
        text=True,
    ).stdout


def set_mtime(path: Path, timestamp: int) -> None:
    """Set both atime and mtime of path (not following symlinks)."""
    os.utime(path, (timestamp, timestamp), follow_symlinks=False)


def record_paths(text: str) -> list:
    """Escaped paths of the records in a snapshot text."""
    return [line.split("\t", 1)[0] for line in text.splitlines()[2:]]


def record_map(text: str) -> dict:
    """{escaped path: record line} for a snapshot text."""
    return {line.split("\t", 1)[0]: line for line in text.splitlines()[2:]}


@pytest.fixture
def git_repo(tmp_path, monkeypatch):
    """Create an empty git repository and chdir into it."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo = tmp_path / "repo"
    repo.mkdir()
    # keep the user's git environment out of the tests
    for var in ("GIT_DIR", "GIT_WORK_TREE", "GIT_INDEX_FILE"):
        monkeypatch.delenv(var, raising=False)
    run_git(repo, "init", "-q")
    run_git(repo, "config", "user.email", "test@example.com")
    run_git(repo, "config", "user.name", "Test User")
    run_git(repo, "config", "commit.gpgsign", "false")
    monkeypatch.chdir(repo)
    return repo.resolve()


@pytest.fixture
def write_file(git_repo):
    """Factory fixture to write files relative to the repository."""
    def _write(path: str, content: str = "test content", mtime: int = None):
        file_path = git_repo / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
        if mtime is not None:
            set_mtime(file_path, mtime)
        return file_path
    return _write


@pytest.fixture
def commit(git_repo):
    """Factory fixture to stage everything and commit."""
    def _commit(message: str = "commit"):
        run_git(git_repo, "add", "-A")
        run_git(git_repo, "commit", "-q", "--no-verify", "-m", message)
    return _commit


class FakeBackend:
    """Permission backend that records calls instead of touching files."""

    name = "fake"

    def __init__(self, acl: str = "", succeed: bool = True):
        self.acl = acl
        self.succeed = succeed
        self.calls = []

    def lchown(self, path, uid, gid):
        self.calls.append(("lchown", Path(path), uid, gid))
        return self.succeed

    def set_times(self, path, atime, mtime):
        self.calls.append(("set_times", Path(path), atime, mtime))
        return self.succeed

    def get_acl(self, path):
        return "" if Path(path).is_symlink() else self.acl

    def set_acl(self, path, acl):
        self.calls.append(("set_acl", Path(path), acl))
        return self.succeed

    def calls_named(self, name):
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def fake_backend():
    return FakeBackend()
