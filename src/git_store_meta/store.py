"""Full snapshot builder: collect metadata for every tracked path."""

import logging
from typing import List, Optional

from .codec import format_record
from .collector import collect_metadata
from .context import RepoContext
from .core import EntryType, StoreOptions
from .perms import PermissionBackend
from .snapshot import sort_lines

logger = logging.getLogger(__name__)


def collect_line(
    ctx: RepoContext,
    relpath: str,
    options: StoreOptions,
    backend: PermissionBackend,
) -> Optional[str]:
    """Collect one path and format it as a record line.

    Returns:
        The record line, or None when the path is the snapshot file itself,
        is excluded, or has no collectable metadata
    """
    if ctx.is_target(relpath) or ctx.is_excluded(relpath):
        return None
    record = collect_metadata(relpath, options.fields, backend, ctx.root)
    if record is None:
        return None
    if record.entry_type == EntryType.DIRECTORY and ctx.is_excluded(relpath, is_dir=True):
        return None
    return format_record(record, options.fields)


def list_store_paths(ctx: RepoContext, options: StoreOptions) -> List[str]:
    """Paths whose metadata a full store records."""
    paths = ctx.repo.ls_files()
    if options.directory:
        paths.extend(ctx.repo.ls_tree_dirs())
        if options.topdir:
            paths.append(".")
    return paths


def build_snapshot(
    ctx: RepoContext,
    options: StoreOptions,
    backend: PermissionBackend,
) -> List[str]:
    """Collect every tracked path and return sorted record lines."""
    lines = []
    skipped = 0
    for relpath in list_store_paths(ctx, options):
        line = collect_line(ctx, relpath, options, backend)
        if line is None:
            skipped += 1
            continue
        lines.append(line)
    logger.debug("Collected %d entries, skipped %d", len(lines), skipped)
    return sort_lines(lines)
