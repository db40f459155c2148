"""ACL access through the getfacl/setfacl utilities.

Shared by both backends; there is no ACL interface in the standard library.
"""

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


def getfacl(path: Path) -> str:
    """Return the ACL of path as comma-joined entries ("" on failure)."""
    if path.is_symlink():
        return ""
    try:
        result = subprocess.run(
            ["getfacl", "-PcE", "--", str(path)],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        logger.debug("getfacl unavailable: %s", e)
        return ""
    if result.returncode != 0:
        logger.debug("getfacl failed for %s: %s", path, result.stderr.strip())
        return ""
    return ",".join(line for line in result.stdout.splitlines() if line.strip())


def setfacl(path: Path, acl: str) -> bool:
    """Remove extended entries of path and apply the given ACL."""
    try:
        result = subprocess.run(
            ["setfacl", "-Pbm", acl, "--", str(path)],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        logger.debug("setfacl unavailable: %s", e)
        return False
    if result.returncode != 0:
        logger.debug("setfacl failed for %s: %s", path, result.stderr.strip())
        return False
    return True
