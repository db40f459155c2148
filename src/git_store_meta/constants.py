"""Constants for git-store-meta."""

# Snapshot header
HEADER_PREFIX = "# generated by"
APP_NAME = "git-store-meta"
APP_VERSION = "2.2.0"

# Default snapshot file (relative to the top of the working tree)
DEFAULT_TARGET = ".git_store_meta"

# Optional per-repository defaults (relative to the top of the working tree)
CONFIG_FILE = ".git_store_meta.yaml"

# Field names, in canonical order. "file" and "type" are always present.
FIELD_FILE = "file"
FIELD_TYPE = "type"
ALL_FIELDS = (
    FIELD_FILE,
    FIELD_TYPE,
    "mtime",
    "atime",
    "mode",
    "uid",
    "gid",
    "user",
    "group",
    "acl",
)
DEFAULT_FIELDS = (FIELD_FILE, FIELD_TYPE, "mtime")

# Version windows accepted by each action: [min, max)
UPDATE_VERSION_RANGE = ((2, 2, 0), (2, 3, 0))
APPLY_VERSION_RANGE = ((1, 0, 0), (2, 3, 0))
# Snapshots older than this did not record --directory
DIRECTORY_CONFIG_SINCE = (2, 0, 0)

# Mode reported for symlinks (used if one is checked out as a plain file)
SYMLINK_MODE = "0664"

# git ls-files / ls-tree mode marking a submodule
SUBMODULE_MODE = "160000"

# Hooks written by `install`
HOOK_NAMES = ("pre-commit", "post-checkout", "post-merge")
