"""Apply stored metadata to the working tree.

Every record is handled independently and every attribute is applied
best-effort: a failure is reported as a warning and processing continues.
"""

import grp
import logging
import os
import pwd
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

from .codec import line_path, parse_record
from .context import RepoContext
from .core import EntryType, MetadataRecord, SnapshotHeader, StoreOptions
from .perms import PermissionBackend
from .snapshot import read_record_lines
from .utils import parse_gmtime

logger = logging.getLogger(__name__)


@dataclass
class ApplyReport:
    """Outcome of an apply run."""
    applied: int = 0
    skipped: int = 0
    warnings: List[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    @property
    def ok(self) -> bool:
        return not self.warnings


def lookup_uid(name: str) -> Optional[int]:
    try:
        return pwd.getpwnam(name).pw_uid
    except KeyError:
        return None


def lookup_gid(name: str) -> Optional[int]:
    try:
        return grp.getgrnam(name).gr_gid
    except KeyError:
        return None


def _numeric(value: str) -> Optional[int]:
    try:
        return int(value)
    except ValueError:
        return None


def _resolve_id(record, used, name_field, id_field, lookup):
    """Resolve owner or group: by name first, numeric id as fallback.

    Returns:
        (id or None, text to display)
    """
    resolved = None
    display = None
    name = record.get(name_field) if name_field in used else ""
    if name:
        display = name
        resolved = lookup(name)
    number = record.get(id_field) if id_field in used else ""
    if resolved is None and number:
        display = number
        resolved = _numeric(number)
    return resolved, display if resolved is not None else "-"


class Applier:
    """Pushes the attributes of stored records onto working tree entries."""

    def __init__(
        self,
        ctx: RepoContext,
        options: StoreOptions,
        backend: PermissionBackend,
        report: Optional[ApplyReport] = None,
    ):
        self.ctx = ctx
        self.options = options
        self.backend = backend
        self.used: Set[str] = set(options.fields)
        self.report = report or ApplyReport()

    def _has(self, record: MetadataRecord, *names: str) -> bool:
        return any(n in self.used and record.get(n) for n in names)

    def _verbose(self, message: str, *args) -> None:
        if self.options.verbose:
            logger.info(message, *args)

    def check_entry(self, record: MetadataRecord, shown: str) -> bool:
        """Check that the live entry can receive the record's metadata."""
        full = self.ctx.absolute(record.path)
        if not full.exists() and not full.is_symlink():
            self.report.warn(f"`{shown}' does not exist, skip applying metadata")
            return False
        # checkout may materialize a symlink as a plain file
        if record.entry_type in (EntryType.FILE, EntryType.SYMLINK):
            if not full.is_file() and not full.is_symlink():
                self.report.warn(f"`{shown}' is not a file, skip applying metadata")
                return False
        elif record.entry_type == EntryType.DIRECTORY:
            if not full.is_dir():
                self.report.warn(f"`{shown}' is not a directory, skip applying metadata")
                return False
            if not self.options.directory:
                return False
            if record.path == "." and not self.options.topdir:
                return False
        is_dir = record.entry_type == EntryType.DIRECTORY
        if self.ctx.is_excluded(record.path, is_dir=is_dir):
            return False
        return True

    def apply_ownership(self, full: Path, record: MetadataRecord, shown: str) -> Optional[bool]:
        if not self._has(record, "user", "uid", "group", "gid"):
            return None
        uid, user = _resolve_id(record, self.used, "user", "uid", lookup_uid)
        gid, group = _resolve_id(record, self.used, "group", "gid", lookup_gid)
        self._verbose("`%s' set user/group to %s/%s", shown, user, group)
        if uid is None and gid is None:
            return None
        ok = self.options.dry_run or self.backend.lchown(full, uid, gid)
        if not ok:
            self.report.warn(f"`{shown}' cannot set user/group to {user}/{group}")
        return ok

    def apply_mode(self, full: Path, record: MetadataRecord, shown: str) -> Optional[bool]:
        mode = record.get("mode")
        if not self._has(record, "mode") or full.is_symlink():
            return None
        self._verbose("`%s' set mode to %s", shown, mode)
        if self.options.dry_run:
            return True
        try:
            os.chmod(full, int(mode, 8) & 0o7777)
        except (OSError, ValueError) as e:
            logger.debug("chmod failed for %s: %s", full, e)
            self.report.warn(f"`{shown}' cannot set mode to {mode}")
            return False
        return True

    def apply_acl(self, full: Path, record: MetadataRecord, shown: str) -> Optional[bool]:
        acl = record.get("acl")
        if not self._has(record, "acl"):
            return None
        self._verbose("`%s' set acl to %s", shown, acl)
        ok = self.options.dry_run or self.backend.set_acl(full, acl)
        if not ok:
            self.report.warn(f"`{shown}' cannot set acl to {acl}")
        return ok

    def apply_times(self, full: Path, record: MetadataRecord, shown: str) -> Optional[bool]:
        if not self._has(record, "atime", "mtime"):
            return None
        atime = record.get("atime") if "atime" in self.used else ""
        mtime = record.get("mtime") if "mtime" in self.used else ""
        shown_times = f"{atime or '-'}/{mtime or '-'}"
        self._verbose("`%s' set atime/mtime to %s", shown, shown_times)
        if self.options.dry_run:
            return True
        try:
            ok = self.backend.set_times(
                full,
                parse_gmtime(atime) if atime else None,
                parse_gmtime(mtime) if mtime else None,
            )
        except ValueError as e:
            logger.debug("Bad timestamp for %s: %s", full, e)
            ok = False
        if not ok:
            self.report.warn(f"`{shown}' cannot set atime/mtime to {shown_times}")
        return ok

    def apply_line(self, line: str, fields: List[str]) -> None:
        """Apply one record line of a snapshot written with `fields`.

        The entry counts as applied when at least one attribute was set;
        an entry with nothing set (no values, or every step failed) counts
        as skipped.
        """
        shown = line_path(line)
        try:
            record = parse_record(line, fields)
        except ValueError:
            self.report.warn(
                f"`{shown}' is recorded as an unknown type, skip applying metadata"
            )
            self.report.skipped += 1
            return
        if self.ctx.is_target(record.path):
            return
        if not self.check_entry(record, shown):
            self.report.skipped += 1
            return

        full = self.ctx.absolute(record.path)
        results = [
            self.apply_ownership(full, record, shown),
            self.apply_mode(full, record, shown),
            self.apply_acl(full, record, shown),
            self.apply_times(full, record, shown),
        ]
        if any(results):
            self.report.applied += 1
        else:
            self.report.skipped += 1


def apply_snapshot(
    ctx: RepoContext,
    options: StoreOptions,
    header: SnapshotHeader,
    backend: PermissionBackend,
) -> ApplyReport:
    """Apply every record of the snapshot at ctx.snapshot_path.

    Args:
        ctx: Repository context
        options: Effective options; `fields` limits what is applied
        header: Parsed header of the snapshot (gives the column layout)
        backend: Permission backend

    Returns:
        ApplyReport with counts and warnings
    """
    applier = Applier(ctx, options, backend)
    for line in read_record_lines(ctx.snapshot_path):
        applier.apply_line(line, header.fields)
    report = applier.report
    logger.debug("Applied %d entries, skipped %d", report.applied, report.skipped)
    return report
