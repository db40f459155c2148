"""Repository context for managing paths and repository discovery."""

from pathlib import Path
from typing import Optional, Union

from .constants import CONFIG_FILE, DEFAULT_TARGET
from .git import GitRepository
from .ignore import ExcludeSpec


class RepoContext:
    """Resolves the working tree, git directory and snapshot paths."""

    def __init__(
        self,
        start_path: Optional[Path] = None,
        target: Optional[str] = None,
        repo: Optional[GitRepository] = None,
    ):
        """Initialize context by asking git for the repository layout.

        Args:
            start_path: Directory to start from (default: current directory)
            target: Snapshot file name, relative to the top of the working tree

        Raises:
            NotARepositoryError: If start_path is not inside a git working tree
        """
        start = repo.cwd if repo is not None else (start_path or Path.cwd())
        probe = repo or GitRepository(start)
        self.git_dir = probe.git_dir()
        self.root = probe.top_level()
        # every later git call runs from the top of the working tree
        self.repo = GitRepository(self.root, git=probe.git)
        self.target = target or DEFAULT_TARGET
        self._exclude: Optional[ExcludeSpec] = None

    @property
    def snapshot_path(self) -> Path:
        """Absolute path of the snapshot file."""
        return self.root / self.target

    @property
    def target_relpath(self) -> str:
        """Snapshot path relative to the top directory, in POSIX form."""
        try:
            return self.snapshot_path.resolve().relative_to(self.root.resolve()).as_posix()
        except ValueError:
            return Path(self.target).as_posix()

    @property
    def hooks_dir(self) -> Path:
        return self.git_dir / "hooks"

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILE

    def absolute(self, relpath: Union[str, Path]) -> Path:
        """Get absolute path from a repository-relative path."""
        return self.root / relpath

    def is_target(self, relpath: str) -> bool:
        """Check whether a repository-relative path is the snapshot file."""
        return relpath == self.target_relpath or relpath == self.target

    def set_exclude(self, patterns) -> None:
        self._exclude = ExcludeSpec(patterns)

    def is_excluded(self, relpath: str, is_dir: bool = False) -> bool:
        if self._exclude is None:
            return False
        return self._exclude.is_excluded(relpath, is_dir=is_dir)
