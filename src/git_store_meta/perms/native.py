"""Permission backend built on os.lchown and os.utime(follow_symlinks=False)."""

import logging
import os
from pathlib import Path
from typing import Optional

from .acl import getfacl, setfacl

logger = logging.getLogger(__name__)


class NativeBackend:
    """Backend using the platform's no-follow system calls."""

    name = "native"

    def lchown(self, path: Path, uid: Optional[int], gid: Optional[int]) -> bool:
        try:
            os.chown(
                path,
                -1 if uid is None else uid,
                -1 if gid is None else gid,
                follow_symlinks=False,
            )
        except OSError as e:
            logger.debug("lchown failed for %s: %s", path, e)
            return False
        return True

    def set_times(self, path: Path, atime: Optional[int], mtime: Optional[int]) -> bool:
        try:
            if atime is None or mtime is None:
                st = os.lstat(path)
                atime = st.st_atime if atime is None else atime
                mtime = st.st_mtime if mtime is None else mtime
            os.utime(path, (atime, mtime), follow_symlinks=False)
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
