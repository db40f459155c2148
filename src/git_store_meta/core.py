"""Core data models for git-store-meta.

A snapshot is a text file with a versioned header, a field line and one
sorted record per tracked entry. Records are identified by their escaped
path; the escaped form is also the sort key, so that the on-disk order is a
plain byte-order sort of the record lines.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from .constants import (
    APP_NAME,
    APP_VERSION,
    DEFAULT_FIELDS,
    DEFAULT_TARGET,
)
from .utils import parse_version


# ============= Records =============

class EntryType(str, Enum):
    """Type of a tracked filesystem entry, as stored in the `type` field."""

    FILE = "f"
    SYMLINK = "l"
    DIRECTORY = "d"


class MetadataRecord(BaseModel):
    """Metadata of a single tracked entry.

    `path` is the real (unescaped) repository-relative path. `fields` holds
    the values of every non-key field in header order; unavailable values
    are empty strings.
    """

    path: str
    entry_type: EntryType
    fields: Dict[str, str] = Field(default_factory=dict)

    def get(self, name: str) -> str:
        """Return a field value, or "" when the field is absent."""
        return self.fields.get(name, "")


# ============= Header =============

class SnapshotHeader(BaseModel):
    """Header information of a snapshot file (first two lines)."""

    app: str = APP_NAME
    version: str = APP_VERSION
    configs: Dict[str, str] = Field(default_factory=dict)
    fields: List[str] = Field(default_factory=lambda: list(DEFAULT_FIELDS))

    @property
    def version_info(self) -> Tuple[int, int, int]:
        return parse_version(self.version)

    def flag(self, key: str) -> Optional[bool]:
        """Recorded boolean config, or None when not recorded."""
        if key not in self.configs:
            return None
        return self.configs[key] not in ("", "0")


# ============= Incremental update =============

class ChangeKind(IntEnum):
    """Kind of a change entry; the value is its rank among same-path items.

    Baseline (unchanged) lines rank after every change kind. A placeholder
    sits between a tentative delete and a modification so it can revert the
    former without shadowing the latter.
    """

    DELETED = 0
    PLACEHOLDER = 1
    MODIFIED = 2


BASELINE_RANK = 3


@dataclass(frozen=True)
class ChangeEntry:
    """A single changed path produced while computing an update.

    `path` is the escaped form, the same form baseline lines are keyed by.
    """
    path: str
    kind: ChangeKind


# ============= Options =============

class StoreOptions(BaseModel):
    """Effective options for one run of an action.

    Built once by the CLI (see config.resolve_options) and passed explicitly
    to every operation.
    """

    fields: List[str] = Field(default_factory=lambda: list(DEFAULT_FIELDS))
    directory: bool = False
    topdir: bool = False
    target: str = DEFAULT_TARGET
    dry_run: bool = False
    verbose: bool = False
    force: bool = False
    exclude: List[str] = Field(default_factory=list)

    @property
    def configs(self) -> Dict[str, str]:
        """Configs to record in a written header."""
        configs = {}
        if self.directory:
            configs["directory"] = "1"
        if self.topdir:
            configs["topdir"] = "1"
        return configs
