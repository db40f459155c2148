"""Permission backend that shells out to chown/touch for symlinks.

Used where the platform cannot change a symlink itself through os calls.
Regular files and directories still go through os.chown/os.utime, which
are safe for them.
"""

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Optional

from ..utils import format_gmtime
from .acl import getfacl, setfacl

logger = logging.getLogger(__name__)


def _run(cmd: List[str]) -> bool:
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as e:
        logger.debug("%s unavailable: %s", cmd[0], e)
        return False
    if result.returncode != 0:
        logger.debug("%s failed: %s", " ".join(cmd), result.stderr.strip())
        return False
    return True


class ExternalBackend:
    """Backend using the chown(1) and touch(1) utilities for symlinks."""

    name = "external"

    def lchown(self, path: Path, uid: Optional[int], gid: Optional[int]) -> bool:
        if path.is_symlink():
            owner = "" if uid is None else str(uid)
            if gid is not None:
                owner += f":{gid}"
            return _run(["chown", "-h", owner, "--", str(path)])
        try:
            os.chown(path, -1 if uid is None else uid, -1 if gid is None else gid)
        except OSError as e:
            logger.debug("chown failed for %s: %s", path, e)
            return False
        return True

    def set_times(self, path: Path, atime: Optional[int], mtime: Optional[int]) -> bool:
        if path.is_symlink():
            ok = True
            if atime is not None:
                ok = _run(["touch", "-hca", "-d", format_gmtime(atime), "--", str(path)])
            if ok and mtime is not None:
                ok = _run(["touch", "-hcm", "-d", format_gmtime(mtime), "--", str(path)])
            return ok
        try:
            st = os.lstat(path)
            os.utime(
                path,
                (
                    st.st_atime if atime is None else atime,
                    st.st_mtime if mtime is None else mtime,
                ),
            )
        except OSError as e:
            logger.debug("utime failed for %s: %s", path, e)
            return False
        return True

    def get_acl(self, path: Path) -> str:
        return getfacl(path)

    def set_acl(self, path: Path, acl: str) -> bool:
        if path.is_symlink():
            return True
        return setfacl(path, acl)
