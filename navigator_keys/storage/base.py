"""
Key Store interface — the durable collaborator of the rotation engine.

A store keeps the last committed key set and the persisted high-water-mark
id. The rotation engine only needs to force a re-read of the committed
state and to replace the whole key set in one call; there is no
compare-and-swap, writers are serialized by the process-wide write lock.
"""
import abc
from typing import Optional
from collections.abc import Sequence

from ..data import EncryptionKey, KeySnapshot


class KeyStore(abc.ABC):
    """Abstract key store."""

    @abc.abstractmethod
    def reload(self) -> KeySnapshot:
        """Re-read the committed key set from durable storage.

        Raises:
            StorageError: the committed state could not be read.
        """

    @abc.abstractmethod
    def snapshot(self) -> KeySnapshot:
        """Return the most recently loaded snapshot (no I/O)."""

    @abc.abstractmethod
    def commit(self, keys: Sequence[EncryptionKey], max_key_id: int) -> None:
        """Replace the committed key set and high-water-mark atomically.

        Raises:
            StorageError: the new key set was not persisted.
        """

    def active_keys(self) -> list[EncryptionKey]:
        """Keys of the loaded snapshot, in ascending id order."""
        return self.snapshot().sorted_by_id()

    def max_key_id(self) -> Optional[int]:
        """Persisted high-water-mark of the loaded snapshot."""
        return self.snapshot().max_key_id
