"""Permission backends for ownership, timestamps and ACLs."""

from .base import PermissionBackend
from .factory import make_backend

__all__ = ["PermissionBackend", "make_backend"]
