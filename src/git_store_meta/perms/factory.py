"""Factory for selecting a permission backend."""

import logging
import os
from typing import Optional

from .base import PermissionBackend
from .external import ExternalBackend
from .native import NativeBackend

logger = logging.getLogger(__name__)

BACKENDS = {
    "native": NativeBackend,
    "external": ExternalBackend,
}


def native_supported() -> bool:
    """Check whether os can change symlinks without following them."""
    return (
        os.utime in os.supports_follow_symlinks
        and os.chown in os.supports_follow_symlinks
    )


def make_backend(name: Optional[str] = None) -> PermissionBackend:
    """
    Create a permission backend.

    Args:
        name: "native" or "external"; probed from the platform when omitted

    Returns:
        PermissionBackend instance

    Raises:
        NotImplementedError: If the backend name is unknown
    """
    if name is None:
        name = "native" if native_supported() else "external"
    try:
        backend = BACKENDS[name]()
    except KeyError:
        raise NotImplementedError(f"Backend {name} not supported")
    logger.debug("Using %s permission backend", backend.name)
    return backend
