"""Navigator Keys.

Rotation and lifecycle management of master, refresh and site encryption keys.
"""
from .version import __version__
from .data import EncryptionKey, KeySnapshot, RotationResult
from .exceptions import (
    KeyServiceError,
    ConfigurationError,
    KeyIdExhaustedError,
    InvalidSiteError,
    SiteNotFoundError,
    StorageError,
)

__all__ = (
    "__version__",
    "EncryptionKey",
    "KeySnapshot",
    "RotationResult",
    "KeyServiceError",
    "ConfigurationError",
    "KeyIdExhaustedError",
    "InvalidSiteError",
    "SiteNotFoundError",
    "StorageError",
)
