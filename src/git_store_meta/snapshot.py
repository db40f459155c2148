"""Snapshot file format: versioned header, field line and sorted records.

Example (fields mtime and mode, directories included):

    # generated by<TAB>git-store-meta<TAB>2.2.0<TAB>--directory
    <file><TAB><type><TAB><mtime><TAB><mode>
    README.md<TAB>f<TAB>2024-01-15T10:30:45Z<TAB>0644
    src<TAB>d<TAB>2024-01-15T10:30:45Z<TAB>0755
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .codec import line_path, path_sort_key
from .constants import (
    APP_NAME,
    APP_VERSION,
    APPLY_VERSION_RANGE,
    FIELD_FILE,
    FIELD_TYPE,
    HEADER_PREFIX,
    UPDATE_VERSION_RANGE,
)
from .core import EntryType, SnapshotHeader
from .errors import (
    MalformedSnapshotError,
    SnapshotAccessError,
    SnapshotMissingError,
    UnknownSchemaError,
    UnsupportedVersionError,
)
from .utils import parse_version

logger = logging.getLogger(__name__)

_CONFIG_VALUE_RE = re.compile(r"^--([^=\s]+)=([^=\s]+)$")
_CONFIG_FLAG_RE = re.compile(r"^--([^=\s]+)$")
_FIELD_RE = re.compile(r"^<(.*)>$")


# ============= Parsing =============

def parse_configs(text: str) -> Dict[str, str]:
    """Parse space-separated `--key` / `--key=value` tokens.

    Unrecognized tokens are ignored.
    """
    configs = {}
    for token in text.split():
        match = _CONFIG_VALUE_RE.match(token)
        if match:
            configs[match.group(1)] = match.group(2)
            continue
        match = _CONFIG_FLAG_RE.match(token)
        if match:
            configs[match.group(1)] = "1"
    return configs


def parse_header(header_line: str, field_line: str) -> SnapshotHeader:
    """Parse the first two lines of a snapshot.

    Raises:
        MalformedSnapshotError: If either line is not in the expected form
    """
    header_line = header_line.rstrip("\n")
    field_line = field_line.rstrip("\n")
    if not header_line:
        raise MalformedSnapshotError("missing header line")

    parts = header_line.split("\t")
    if parts[0] != HEADER_PREFIX or len(parts) < 3:
        raise MalformedSnapshotError("unrecognized header line")
    app, version = parts[1], parts[2]
    try:
        parse_version(version)
    except ValueError:
        raise MalformedSnapshotError(f"invalid version: {version!r}")
    configs = parse_configs(parts[3]) if len(parts) > 3 else {}

    if not field_line:
        raise MalformedSnapshotError("missing field line")
    fields = []
    for token in field_line.split("\t"):
        match = _FIELD_RE.match(token)
        if not match:
            raise MalformedSnapshotError(f"invalid field token: {token!r}")
        fields.append(match.group(1))
    if FIELD_FILE not in fields or FIELD_TYPE not in fields:
        raise MalformedSnapshotError("field line lacks <file> or <type>")

    return SnapshotHeader(app=app, version=version, configs=configs, fields=fields)


@dataclass
class SnapshotInfo:
    """What is known about a snapshot file before an action runs."""
    path: Path
    exists: bool = False
    accessible: bool = False
    header: Optional[SnapshotHeader] = None
    error: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.header is not None


def read_snapshot_info(path: Path) -> SnapshotInfo:
    """Inspect a snapshot file without raising.

    Returns:
        SnapshotInfo describing existence, accessibility and the parsed
        header (or the reason it could not be parsed)
    """
    info = SnapshotInfo(path=path)
    if not (path.exists() or path.is_symlink()):
        return info
    info.exists = True
    if not path.is_file():
        return info
    try:
        with path.open("r", encoding="utf-8", errors="surrogateescape", newline="\n") as f:
            header_line = f.readline()
            field_line = f.readline()
    except OSError as e:
        logger.debug("Cannot read %s: %s", path, e)
        return info
    info.accessible = True
    try:
        info.header = parse_header(header_line, field_line)
    except MalformedSnapshotError as e:
        info.error = str(e)
    return info


def require_valid(info: SnapshotInfo) -> SnapshotHeader:
    """Return the header of a snapshot that must exist and be well-formed.

    Raises:
        SnapshotMissingError, SnapshotAccessError, MalformedSnapshotError
    """
    if not info.exists:
        raise SnapshotMissingError(info.path)
    if not info.accessible:
        raise SnapshotAccessError(info.path)
    if info.header is None:
        raise MalformedSnapshotError(f"`{info.path}' is malformatted: {info.error}")
    return info.header


def check_schema(header: SnapshotHeader, path: Path, action: str) -> None:
    """Check that a header was written by a compatible producer.

    Args:
        header: Parsed header
        path: Snapshot path, for messages
        action: "update" or "apply"

    Raises:
        UnknownSchemaError: If the header names another application
        UnsupportedVersionError: If the version is outside the action's range
    """
    if header.app != APP_NAME:
        raise UnknownSchemaError(path, header.app, header.version)
    low, high = UPDATE_VERSION_RANGE if action == "update" else APPLY_VERSION_RANGE
    if not (low <= header.version_info < high):
        raise UnsupportedVersionError(path, header.version)


# ============= Records =============

def read_record_lines(path: Path) -> List[str]:
    """Return the non-blank record lines of a snapshot, without newlines."""
    with path.open("r", encoding="utf-8", errors="surrogateescape", newline="\n") as f:
        f.readline()
        f.readline()
        return [line.rstrip("\n") for line in f if line.strip()]


def has_directory_entry(path: Path, header: SnapshotHeader) -> bool:
    """Check whether any record of a snapshot is a directory."""
    index = header.fields.index(FIELD_TYPE)
    for line in read_record_lines(path):
        values = line.split("\t")
        if len(values) > index and values[index] == EntryType.DIRECTORY.value:
            return True
    return False


def sort_lines(lines: Iterable[str]) -> List[str]:
    """Sort record lines by escaped path (byte order of UTF-8)."""
    return sorted(lines, key=lambda line: path_sort_key(line_path(line)))


# ============= Rendering =============

def render_header(configs: Dict[str, str]) -> str:
    """Render the header line for the given configs (no newline)."""
    tokens = []
    for key in sorted(configs):
        value = configs[key]
        tokens.append(f"--{key}" if value == "1" else f"--{key}={value}")
    return "\t".join([HEADER_PREFIX, APP_NAME, APP_VERSION, " ".join(tokens)])


def render_field_line(fields: Sequence[str]) -> str:
    return "\t".join(f"<{name}>" for name in fields)


def render_snapshot(configs: Dict[str, str], fields: Sequence[str], lines: Iterable[str]) -> str:
    """Render a complete snapshot text from already-sorted record lines."""
    out = [render_header(configs), render_field_line(fields)]
    out.extend(lines)
    return "".join(f"{line}\n" for line in out)
