"""Thin wrapper around the git commands the tool depends on.

All output is requested NUL-terminated (-z) so paths need no unquoting.
Paths are decoded as UTF-8 with surrogateescape, so undecodable bytes
survive a round trip to the filesystem.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .constants import SUBMODULE_MODE
from .errors import GitError, NotARepositoryError

logger = logging.getLogger(__name__)


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


def _split_z(raw: bytes) -> List[str]:
    """Split NUL-terminated output into decoded items."""
    return [_decode(item) for item in raw.split(b"\0") if item]


class GitRepository:
    """Runs git queries in a working directory."""

    def __init__(self, cwd: Optional[Union[str, Path]] = None, git: str = "git"):
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.git = git

    def run(self, *args: str) -> bytes:
        """Run a git command and return its raw stdout.

        Raises:
            GitError: If git exits with a non-zero status
        """
        cmd = [self.git, *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, cwd=self.cwd, capture_output=True, check=False)
        except OSError as e:
            raise GitError(args, -1, str(e))
        if result.returncode != 0:
            raise GitError(args, result.returncode, _decode(result.stderr))
        return result.stdout

    # ============= Repository discovery =============

    def git_dir(self) -> Path:
        """Absolute path of the repository's git directory."""
        try:
            out = _decode(self.run("rev-parse", "--absolute-git-dir")).strip()
        except GitError:
            raise NotARepositoryError()
        return Path(out)

    def top_level(self) -> Path:
        """Absolute path of the top of the working tree."""
        try:
            out = _decode(self.run("rev-parse", "--show-toplevel")).strip()
        except GitError:
            out = ""
        if not out:
            raise NotARepositoryError(
                "current working directory is not in a git working tree."
            )
        return Path(out)

    # ============= Index and tree queries =============

    def ls_files(self) -> List[str]:
        """Paths in the index, excluding submodules, in index order."""
        paths = []
        seen = set()
        for entry in _split_z(self.run("ls-files", "-s", "-z")):
            meta, _, path = entry.partition("\t")
            if meta.startswith(SUBMODULE_MODE + " "):
                continue
            # unmerged paths appear once per stage
            if path not in seen:
                seen.add(path)
                paths.append(path)
        return paths

    def write_tree(self) -> str:
        """Write the index as a tree object and return its id."""
        return _decode(self.run("write-tree")).strip()

    def ls_tree_dirs(self, tree: Optional[str] = None) -> List[str]:
        """Every directory of a tree (the index's tree by default)."""
        tree = tree or self.write_tree()
        dirs = []
        for entry in _split_z(self.run("ls-tree", "-rd", "-z", tree)):
            meta, _, path = entry.partition("\t")
            if meta.startswith(SUBMODULE_MODE + " "):
                continue
            dirs.append(path)
        return dirs

    def diff_cached(self) -> List[Tuple[str, str]]:
        """Staged changes as (status, path) pairs; renames are split."""
        items = _split_z(self.run(
            "diff", "--name-status", "--cached", "--no-renames",
            "--ignore-submodules=all", "-z",
        ))
        return list(zip(items[0::2], items[1::2]))

    def is_clean(self) -> bool:
        """True when tracked files have no uncommitted changes."""
        out = self.run("status", "--porcelain", "-uno", "--ignore-submodules=all", "-z")
        return out == b""
