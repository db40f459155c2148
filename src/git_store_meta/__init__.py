"""git-store-meta: store and restore file metadata for git working trees."""

from .constants import APP_VERSION

__version__ = APP_VERSION
