"""Incremental snapshot update.

Only paths reported as changed by `git diff --cached` are collected again;
every other record of the previous snapshot is carried over verbatim.

Change entries and baseline lines are merged in one pass. Items are sorted
by the bytes of the escaped path and, within a path, by rank:

    DELETED < PLACEHOLDER < MODIFIED < baseline line

The first item of a path decides its fate, except that a PLACEHOLDER
(emitted for every directory still present in the index) reverts any
decision taken before it. Deleting a file tentatively deletes all of its
ancestor directories; the placeholders bring back the ones that still
exist, and a MODIFIED entry after the placeholder gets the fresh record.
"""

import logging
from itertools import groupby
from typing import Callable, Iterable, List, Optional, Tuple

from .codec import escape_path, line_path, path_sort_key, unescape_path
from .context import RepoContext
from .core import BASELINE_RANK, ChangeEntry, ChangeKind, StoreOptions
from .perms import PermissionBackend
from .store import collect_line
from .utils import ancestors

logger = logging.getLogger(__name__)

Collector = Callable[[str], Optional[str]]


def collect_changes(
    changes: Iterable[Tuple[str, str]],
    directory: bool = False,
) -> List[ChangeEntry]:
    """Translate (status, path) pairs from git into change entries.

    Args:
        changes: Name-status pairs, renames already split into D and A
        directory: Whether directory records are maintained

    Returns:
        Change entries with escaped paths, in input order
    """
    entries = []
    for status, path in changes:
        if status == "D":
            entries.append(ChangeEntry(escape_path(path), ChangeKind.DELETED))
            if directory:
                parents = ancestors(path)
                if parents:
                    entries.append(ChangeEntry(escape_path(parents[0]), ChangeKind.MODIFIED))
                # tentative; reverted by placeholders for surviving directories
                for parent in parents:
                    entries.append(ChangeEntry(escape_path(parent), ChangeKind.DELETED))
        else:
            entries.append(ChangeEntry(escape_path(path), ChangeKind.MODIFIED))
            if directory and status == "A":
                for parent in ancestors(path):
                    entries.append(ChangeEntry(escape_path(parent), ChangeKind.MODIFIED))
    return entries


def placeholder_entries(directories: Iterable[str]) -> List[ChangeEntry]:
    """Placeholder entries for directories present in the new tree."""
    return [ChangeEntry(escape_path(d), ChangeKind.PLACEHOLDER) for d in directories]


def merge_snapshot(
    baseline: Iterable[str],
    entries: Iterable[ChangeEntry],
    collect: Collector,
) -> List[str]:
    """Merge change entries into the baseline record lines.

    Args:
        baseline: Record lines of the previous snapshot
        entries: Change entries (escaped paths)
        collect: Called with an unescaped path for each MODIFIED winner;
            returns the fresh record line, or None to drop the path

    Returns:
        Record lines of the new snapshot, sorted, one per path
    """
    items = [(line_path(line), BASELINE_RANK, line) for line in baseline]
    items.extend((e.path, int(e.kind), None) for e in entries)
    # stable: duplicate lines for one path keep their original order
    items.sort(key=lambda item: (path_sort_key(item[0]), item[1]))

    result = []
    for path, group in groupby(items, key=lambda item: item[0]):
        decided = False
        for _, rank, line in group:
            if rank == ChangeKind.PLACEHOLDER:
                decided = False
                continue
            if decided:
                continue
            decided = True
            if rank == ChangeKind.DELETED:
                continue
            if rank == ChangeKind.MODIFIED:
                line = collect(unescape_path(path))
                if line is None:
                    continue
            result.append(line)
    return result


def change_entries(ctx: RepoContext, options: StoreOptions) -> List[ChangeEntry]:
    """All change entries for the currently staged changes."""
    changes = ctx.repo.diff_cached()
    logger.debug("%d staged changes", len(changes))
    entries = collect_changes(changes, options.directory)
    if options.directory:
        entries.extend(placeholder_entries(ctx.repo.ls_tree_dirs()))
        if options.topdir:
            entries.append(ChangeEntry(".", ChangeKind.MODIFIED))
    return entries


def update_snapshot(
    ctx: RepoContext,
    options: StoreOptions,
    baseline: Iterable[str],
    backend: PermissionBackend,
) -> List[str]:
    """Compute the record lines of the updated snapshot."""
    entries = change_entries(ctx, options)
    return merge_snapshot(
        baseline,
        entries,
        lambda path: collect_line(ctx, path, options, backend),
    )
