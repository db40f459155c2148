"""Custom exceptions for git-store-meta.

Fatal conditions are raised as typed exceptions before any mutation takes
place. Per-entry problems (an unreadable file, a failed chmod) are never
raised; they are logged and collected as warnings instead.
"""


class MetaError(RuntimeError):
    """Base class for all git-store-meta errors."""
    pass


# Git Errors
class GitError(MetaError):
    """A git command failed."""

    def __init__(self, args, returncode: int, stderr: str = ""):
        self.args_ = list(args)
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr and stderr.strip() else ""
        super().__init__(
            f"`git {' '.join(self.args_)}' exited with status {returncode}{detail}"
        )


class NotARepositoryError(MetaError):
    """Current directory is not inside a git working tree."""

    def __init__(self, message: str = "unknown git repository."):
        super().__init__(message)


# Snapshot Errors
class SnapshotError(MetaError):
    """Base class for snapshot file errors."""
    pass


class SnapshotMissingError(SnapshotError):
    """Snapshot file does not exist."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"`{path}' doesn't exist.\nRun store to create new.")


class SnapshotAccessError(SnapshotError):
    """Snapshot file exists but cannot be read as a regular file."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"`{path}' is not an accessible file.")


class MalformedSnapshotError(SnapshotError):
    """Snapshot header or field line cannot be parsed."""
    pass


class UnknownSchemaError(SnapshotError):
    """Snapshot was produced by another application."""

    def __init__(self, path, app: str, version: str):
        self.path = path
        self.app = app
        self.version = version
        super().__init__(f"`{path}' is using an unknown schema: {app} {version}")


class UnsupportedVersionError(SnapshotError):
    """Snapshot version is outside the range an action understands."""

    def __init__(self, path, version: str):
        self.path = path
        self.version = version
        super().__init__(f"`{path}' is using an unsupported version: {version}")


class SnapshotWriteError(SnapshotError):
    """Snapshot file cannot be written."""

    def __init__(self, path, reason: str):
        self.path = path
        super().__init__(f"failed to write to `{path}': {reason}")


# Working tree Errors
class DirtyWorkingTreeError(MetaError):
    """Working tree has uncommitted changes."""

    def __init__(self):
        super().__init__(
            "git working tree is not clean.\n"
            "Commit, stash, or revert changes before running this, or add --force."
        )


# Hook Errors
class HookExistsError(MetaError):
    """Hook files already exist and --force was not given."""

    def __init__(self, paths: list):
        self.paths = paths
        lines = "".join(f"hook file `{p}' already exists.\n" for p in paths)
        super().__init__(lines + "Add --force to overwrite current hook files.")


# Configuration Errors
class ConfigError(MetaError):
    """Invalid configuration file or option."""
    pass
