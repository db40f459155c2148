"""Base protocol for permission backends."""

from pathlib import Path
from typing import Optional, Protocol


class PermissionBackend(Protocol):
    """
    Protocol for reading and writing ownership, timestamps and ACLs.

    Every setter is best-effort: it returns False on failure instead of
    raising, so one failed entry never aborts a batch. Setters must not
    follow symlinks.
    """

    name: str

    def lchown(self, path: Path, uid: Optional[int], gid: Optional[int]) -> bool:
        """
        Change owner and/or group of path.

        Args:
            path: Entry to change
            uid: New owner, or None to keep the current one
            gid: New group, or None to keep the current one

        Returns:
            True on success
        """
        ...

    def set_times(self, path: Path, atime: Optional[int], mtime: Optional[int]) -> bool:
        """
        Set access and modification times of path.

        Args:
            path: Entry to change
            atime: Unix timestamp, or None to keep the current value
            mtime: Unix timestamp, or None to keep the current value

        Returns:
            True on success
        """
        ...

    def get_acl(self, path: Path) -> str:
        """
        Read the POSIX ACL of path as comma-joined getfacl entries.

        Returns:
            ACL text, "" for symlinks or when ACLs are unavailable
        """
        ...

    def set_acl(self, path: Path, acl: str) -> bool:
        """
        Replace the extended ACL of path with the given entries.

        Symlinks carry no ACL of their own and are left untouched.

        Returns:
            True on success (always for symlinks)
        """
        ...
