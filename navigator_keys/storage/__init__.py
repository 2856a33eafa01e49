"""Key store backends."""

from .base import KeyStore
from .memory import InMemoryKeyStore
from .local import LocalKeyStore

__all__ = [
    "KeyStore",
    "InMemoryKeyStore",
    "LocalKeyStore",
]
