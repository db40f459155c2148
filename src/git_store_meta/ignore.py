"""Gitignore-style exclusion patterns for git-store-meta."""

from typing import Iterable

from pathspec import PathSpec
from pathspec.patterns import GitWildMatchPattern


class ExcludeSpec:
    """Paths whose metadata is never stored or applied."""

    def __init__(self, patterns: Iterable[str] = ()):
        """Compile exclusion patterns.

        Args:
            patterns: Gitignore-style patterns; blank lines and "#" comments
                are dropped
        """
        self.patterns = [
            p.strip() for p in patterns
            if p.strip() and not p.strip().startswith("#")
        ]
        self.spec = PathSpec.from_lines(GitWildMatchPattern, self.patterns)

    def is_excluded(self, relpath: str, is_dir: bool = False) -> bool:
        """Check if a repository-relative POSIX path is excluded.

        The top directory "." is never excluded. Directories also match
        patterns with a trailing slash.
        """
        if not self.patterns or relpath in ("", "."):
            return False
        if self.spec.match_file(relpath):
            return True
        return is_dir and self.spec.match_file(relpath + "/")
