"""Git hook scripts for automated update/apply.

The scripts call the `git-store-meta` executable placed next to the hook
if there is one, otherwise the one on PATH.
"""

import logging
import os
import shlex
from pathlib import Path
from typing import List, Optional

from .constants import APP_NAME, DEFAULT_TARGET, HOOK_NAMES
from .errors import HookExistsError

logger = logging.getLogger(__name__)

_PREAMBLE = f"""#!/bin/sh
# when running the hook, cwd is the top level of working tree

script=$(dirname "$0")/{APP_NAME}
[ ! -x "$script" ] && script={APP_NAME}
"""


def create_pre_commit(target_opt: str, target_file: str) -> str:
    """Generate the pre-commit hook: refresh and stage the snapshot.

    Args:
        target_opt: " -t FILE" for a non-default target, else ""
        target_file: Shell-quoted snapshot file name
    """
    return _PREAMBLE + f"""
# update (or store as fallback) the metadata file if it exists
if [ -f {target_file} ]; then
    "$script" update{target_opt} ||
    "$script" store{target_opt} ||
    exit 1

    # remember to add the updated metadata file
    git add {target_file}
fi
"""


def create_post_checkout(target_opt: str) -> str:
    """Generate the post-checkout hook: apply when HEAD changed."""
    return _PREAMBLE + f"""
sha_old=$1
sha_new=$2
change_br=$3

# apply metadata only when HEAD is changed
if [ "$sha_new" != "$sha_old" ]; then
    "$script" apply{target_opt}
fi
"""


def create_post_merge(target_opt: str) -> str:
    """Generate the post-merge hook: apply after a non-squash merge."""
    return _PREAMBLE + f"""
is_squash=$1

# apply metadata after a successful non-squash merge
if [ "$is_squash" -eq 0 ]; then
    "$script" apply{target_opt}
fi
"""


def render_hooks(target: Optional[str] = None) -> dict:
    """Return {hook name: script text} for the given target."""
    target_opt = f" -t {shlex.quote(target)}" if target else ""
    target_file = shlex.quote(target or DEFAULT_TARGET)
    return {
        "pre-commit": create_pre_commit(target_opt, target_file),
        "post-checkout": create_post_checkout(target_opt),
        "post-merge": create_post_merge(target_opt),
    }


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def install_hooks(hooks_dir: Path, target: Optional[str] = None, force: bool = False) -> List[Path]:
    """Write the hook scripts into hooks_dir.

    Args:
        hooks_dir: The repository's hooks directory
        target: Non-default snapshot file name to pass to the tool
        force: Overwrite existing hook files

    Returns:
        Paths of the written hooks

    Raises:
        HookExistsError: If a hook exists and force is False
    """
    paths = [hooks_dir / name for name in HOOK_NAMES]
    if not force:
        existing = [p for p in paths if p.exists()]
        if existing:
            raise HookExistsError(existing)

    hooks_dir.mkdir(parents=True, exist_ok=True)
    mode = 0o777 & ~_current_umask()
    scripts = render_hooks(target)
    written = []
    for path in paths:
        path.write_text(scripts[path.name], encoding="utf-8")
        os.chmod(path, mode)
        logger.debug("Wrote hook %s", path)
        written.append(path)
    return written
