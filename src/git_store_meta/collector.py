"""Attribute collection for a single filesystem entry."""

import grp
import logging
import os
import pwd
import stat
from pathlib import Path
from typing import Optional, Sequence, Union

from .constants import SYMLINK_MODE
from .core import EntryType, MetadataRecord
from .perms import PermissionBackend
from .utils import format_gmtime

logger = logging.getLogger(__name__)


def entry_type(st: os.stat_result) -> Optional[EntryType]:
    """Classify an lstat result; sockets, fifos and devices give None."""
    if stat.S_ISLNK(st.st_mode):
        return EntryType.SYMLINK
    if stat.S_ISREG(st.st_mode):
        return EntryType.FILE
    if stat.S_ISDIR(st.st_mode):
        return EntryType.DIRECTORY
    return None


def user_name(uid: int) -> str:
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return ""


def group_name(gid: int) -> str:
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return ""


def collect_metadata(
    path: str,
    fields: Sequence[str],
    backend: PermissionBackend,
    root: Union[str, Path] = ".",
) -> Optional[MetadataRecord]:
    """Collect the requested fields for a repository-relative path.

    Args:
        path: Repository-relative path ("." for the top directory)
        fields: Field names to collect; "file" and "type" are implied
        backend: Backend used for ACL reads
        root: Top directory of the working tree

    Returns:
        MetadataRecord, or None if the entry cannot be stat'ed or has an
        unsupported type
    """
    full = Path(root) / path
    try:
        st = os.lstat(full)
    except OSError as e:
        logger.debug("Cannot stat %s: %s", path, e)
        return None

    kind = entry_type(st)
    if kind is None:
        logger.debug("Skipping %s: unsupported file type", path)
        return None

    values = {}
    for name in fields:
        if name == "mtime":
            values[name] = format_gmtime(st.st_mtime)
        elif name == "atime":
            values[name] = format_gmtime(st.st_atime)
        elif name == "mode":
            if kind == EntryType.SYMLINK:
                values[name] = SYMLINK_MODE
            else:
                values[name] = "%04o" % (st.st_mode & 0o7777)
        elif name == "uid":
            values[name] = str(st.st_uid)
        elif name == "gid":
            values[name] = str(st.st_gid)
        elif name == "user":
            values[name] = user_name(st.st_uid)
        elif name == "group":
            values[name] = group_name(st.st_gid)
        elif name == "acl":
            values[name] = "" if kind == EntryType.SYMLINK else backend.get_acl(full)

    return MetadataRecord(path=path, entry_type=kind, fields=values)
