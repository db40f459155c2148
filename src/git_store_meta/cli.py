"""CLI for git-store-meta."""

import logging
import os
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from . import ops
from .config import load_meta_config, resolve_options
from .constants import APP_VERSION
from .context import RepoContext
from .core import StoreOptions
from .errors import MetaError
from .snapshot import read_snapshot_info


app = typer.Typer(help="""\
Store, update, or apply metadata for files revisioned by Git.

Git does not keep timestamps, permissions, ownership or ACLs. This tool
records them in a tracked file and re-applies them after checkout.""")

console = Console()
err_console = Console(stderr=True, soft_wrap=True)


# ============= Option declarations =============

FieldsOption = typer.Option(
    None, "--fields", "-f",
    help="Fields to handle (comma-separated): mtime, atime, mode, user, group, "
         "uid, gid, acl. Defaults to the fields of the current metadata file, "
         "or mtime.",
)
DirectoryOption = typer.Option(
    None, "--directory/--no-directory", "-d",
    help="Also handle directories.",
)
TopdirOption = typer.Option(
    None, "--topdir/--no-topdir",
    help="Also handle the top directory.",
)
DryRunOption = typer.Option(
    False, "--dry-run", "-n", help="Print the result without real action.",
)
TargetOption = typer.Option(
    None, "--target", "-t",
    help="File to store metadata in (default: .git_store_meta at the top of the working tree).",
)


def setup_logging(verbose: bool = False) -> None:
    """Route log records to stderr through rich."""
    if os.environ.get("DEBUG"):
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def fail(e: Exception) -> None:
    """Report a fatal error and exit with status 1."""
    err_console.print(f"[red]error:[/red] {escape(str(e))}")
    raise typer.Exit(1)


def show_settings(options: StoreOptions) -> None:
    console.print(f"fields: {', '.join(options.fields)}", markup=False)
    flags = " ".join(f"--{k}" for k in sorted(options.configs))
    if flags:
        console.print(f"flags: {flags}", markup=False)


def require_context(target: Optional[str]) -> RepoContext:
    """Discover the repository, exiting with a message if there is none."""
    try:
        return RepoContext(target=target)
    except MetaError as e:
        fail(e)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(APP_VERSION)
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True,
        help="Show current version and exit.",
    ),
):
    """Store, update, or apply metadata for files revisioned by Git."""


@app.command()
def store(
    fields: Optional[List[str]] = FieldsOption,
    directory: Optional[bool] = DirectoryOption,
    topdir: Optional[bool] = TopdirOption,
    dry_run: bool = DryRunOption,
    target: Optional[str] = TargetOption,
):
    """Store the metadata for all files revisioned by Git.

    Examples:
        git-store-meta store                     # mtime only
        git-store-meta store -f mtime,mode -d    # also directories
        git-store-meta store -n                  # print instead of writing
    """
    setup_logging()
    ctx = require_context(target)
    try:
        info = read_snapshot_info(ctx.snapshot_path)
        options = resolve_options(
            "store", info, load_meta_config(ctx.root),
            fields=fields, directory=directory, topdir=topdir,
            dry_run=dry_run, target=ctx.target,
        )
        ctx.set_exclude(options.exclude)
        console.print(f"storing metadata to `{ctx.snapshot_path}' ...", markup=False)
        show_settings(options)
        text = ops.store(ctx, options)
    except MetaError as e:
        fail(e)

    if dry_run:
        typer.echo(text, nl=False)


@app.command()
def update(
    dry_run: bool = DryRunOption,
    target: Optional[str] = TargetOption,
):
    """Update the metadata for changed files.

    Fields and flags are always taken from the existing metadata file.
    Only paths staged for commit are examined again.
    """
    setup_logging()
    ctx = require_context(target)
    try:
        console.print(f"updating metadata to `{ctx.snapshot_path}' ...", markup=False)
        info = ops.check_preconditions(ctx, "update")
        options = resolve_options(
            "update", info, load_meta_config(ctx.root),
            dry_run=dry_run, target=ctx.target,
        )
        ctx.set_exclude(options.exclude)
        show_settings(options)
        text = ops.update(ctx, options, info)
    except MetaError as e:
        fail(e)

    if dry_run:
        typer.echo(text, nl=False)


@app.command()
def apply(
    fields: Optional[List[str]] = FieldsOption,
    directory: Optional[bool] = DirectoryOption,
    topdir: Optional[bool] = TopdirOption,
    dry_run: bool = DryRunOption,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Apply with verbose output."),
    force: bool = typer.Option(False, "--force", help="Apply even if the working tree is not clean."),
    target: Optional[str] = TargetOption,
):
    """Apply the stored metadata to files in the working tree.

    Entries that are missing or of a different type are skipped with a
    warning; the exit status is still 0.
    """
    setup_logging(verbose or dry_run)
    ctx = require_context(target)
    try:
        console.print(f"applying metadata from `{ctx.snapshot_path}' ...", markup=False)
        info = ops.check_preconditions(ctx, "apply", force=force)
        if not info.exists:
            console.print(f"`{ctx.snapshot_path}' doesn't exist, skipped.", markup=False)
            return
        options = resolve_options(
            "apply", info, load_meta_config(ctx.root),
            fields=fields, directory=directory, topdir=topdir,
            dry_run=dry_run, verbose=verbose or dry_run, force=force, target=ctx.target,
        )
        ctx.set_exclude(options.exclude)
        show_settings(options)
        report = ops.apply(ctx, options, info)
    except MetaError as e:
        fail(e)

    if report is not None and options.verbose:
        console.print(
            f"[dim]{report.applied} applied, {report.skipped} skipped, "
            f"{len(report.warnings)} warnings[/dim]"
        )


@app.command()
def install(
    force: bool = typer.Option(False, "--force", help="Overwrite existing hook files."),
    target: Optional[str] = TargetOption,
):
    """Install hooks for automated update/apply.

    Writes pre-commit, post-checkout and post-merge hooks into the
    repository's hooks directory.
    """
    setup_logging()
    ctx = require_context(target)
    console.print("installing hooks...")
    try:
        written = ops.install(ctx, target=target, force=force)
    except (MetaError, OSError) as e:
        fail(e)
    for path in written:
        console.print(f"created `{path}'", markup=False)


@app.command("help")
def help_(ctx: typer.Context):
    """Print this help and exit."""
    typer.echo(ctx.parent.get_help())


@app.command()
def version():
    """Show current version and exit."""
    typer.echo(APP_VERSION)
