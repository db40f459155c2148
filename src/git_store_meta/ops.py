"""Core operations for git-store-meta: store, update, apply, install."""

import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from .apply import ApplyReport, apply_snapshot
from .context import RepoContext
from .core import StoreOptions
from .errors import DirtyWorkingTreeError, SnapshotWriteError
from .hooks import install_hooks
from .perms import PermissionBackend, make_backend
from .snapshot import (
    SnapshotInfo,
    check_schema,
    read_record_lines,
    read_snapshot_info,
    render_snapshot,
    require_valid,
)
from .store import build_snapshot
from .update import update_snapshot

logger = logging.getLogger(__name__)


# ============= Atomic Write Helpers =============

def _atomic_write_text(path: Path, text: str) -> None:
    """Atomically write text to file with crash safety.

    1. Writes to a temp file in the same directory and fsyncs it
    2. Atomic rename to target path
    3. Fsync parent directory so the rename is durable

    The replaced file keeps its permission bits; a new file gets the
    default permissions for the current umask.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        mode = path.stat().st_mode & 0o7777
    except FileNotFoundError:
        mask = os.umask(0)
        os.umask(mask)
        mode = 0o666 & ~mask

    f = tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        errors="surrogateescape",
        newline="\n",
        delete=False,
        dir=path.parent,
        prefix=f".{path.name}.tmp-",
        suffix="",
    )
    tmp = Path(f.name)
    try:
        with f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp, mode)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise

    try:
        flags = os.O_RDONLY
        if hasattr(os, "O_DIRECTORY"):
            flags |= os.O_DIRECTORY
        dirfd = os.open(str(path.parent), flags)
        try:
            os.fsync(dirfd)
        finally:
            os.close(dirfd)
    except OSError:
        logger.debug("Directory fsync not supported for %s", path.parent)


def write_snapshot(path: Path, text: str) -> None:
    """Write a snapshot atomically.

    Raises:
        SnapshotWriteError: If the file cannot be written
    """
    try:
        _atomic_write_text(path, text)
    except OSError as e:
        raise SnapshotWriteError(path, e.strerror or str(e))


# ============= Preconditions =============

def check_preconditions(
    ctx: RepoContext,
    action: str,
    info: Optional[SnapshotInfo] = None,
    force: bool = False,
) -> SnapshotInfo:
    """Validate the snapshot (and working tree) before an action runs.

    For "apply" a missing snapshot is not an error; the caller checks
    `info.exists`.

    Raises:
        SnapshotError: If the snapshot is missing, unreadable, malformed,
            of an unknown schema or an unsupported version
        DirtyWorkingTreeError: For apply on a dirty tree without force
    """
    if info is None:
        info = read_snapshot_info(ctx.snapshot_path)
    if action == "update":
        header = require_valid(info)
        check_schema(header, info.path, "update")
    elif action == "apply":
        if not info.exists:
            return info
        if not force and not ctx.repo.is_clean():
            raise DirtyWorkingTreeError()
        header = require_valid(info)
        check_schema(header, info.path, "apply")
    return info


# ============= Actions =============

def store(
    ctx: RepoContext,
    options: StoreOptions,
    backend: Optional[PermissionBackend] = None,
) -> str:
    """Store metadata for every tracked path.

    Returns:
        The snapshot text (written unless options.dry_run)
    """
    backend = backend or make_backend()
    lines = build_snapshot(ctx, options, backend)
    text = render_snapshot(options.configs, options.fields, lines)
    if not options.dry_run:
        write_snapshot(ctx.snapshot_path, text)
        logger.debug("Stored %d entries to %s", len(lines), ctx.snapshot_path)
    return text


def update(
    ctx: RepoContext,
    options: StoreOptions,
    info: Optional[SnapshotInfo] = None,
    backend: Optional[PermissionBackend] = None,
) -> str:
    """Update the snapshot for staged changes.

    Returns:
        The snapshot text (written unless options.dry_run)
    """
    info = check_preconditions(ctx, "update", info)
    backend = backend or make_backend()
    baseline = read_record_lines(info.path)
    lines = update_snapshot(ctx, options, baseline, backend)
    text = render_snapshot(options.configs, options.fields, lines)
    if not options.dry_run:
        write_snapshot(ctx.snapshot_path, text)
        logger.debug("Updated %s: %d entries", ctx.snapshot_path, len(lines))
    return text


def apply(
    ctx: RepoContext,
    options: StoreOptions,
    info: Optional[SnapshotInfo] = None,
    backend: Optional[PermissionBackend] = None,
) -> Optional[ApplyReport]:
    """Apply stored metadata to the working tree.

    Returns:
        ApplyReport, or None when the snapshot does not exist
    """
    info = check_preconditions(ctx, "apply", info, force=options.force)
    if not info.exists:
        return None
    backend = backend or make_backend()
    return apply_snapshot(ctx, options, info.header, backend)


def install(ctx: RepoContext, target: Optional[str] = None, force: bool = False) -> List[Path]:
    """Install pre-commit, post-checkout and post-merge hooks."""
    return install_hooks(ctx.hooks_dir, target=target, force=force)
