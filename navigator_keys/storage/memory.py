"""In-memory key store, used for tests and single-process deployments."""
import logging
from typing import Optional
from collections.abc import Iterable, Sequence

from ..conf import KEYS_LOGGER
from ..data import EncryptionKey, KeySnapshot
from .base import KeyStore

logger = logging.getLogger(KEYS_LOGGER)


class InMemoryKeyStore(KeyStore):
    """Key store that keeps the committed state in process memory.

    ``reload()`` rebuilds the loaded snapshot from the committed state, so
    it behaves like a durable store read: whatever was committed last is
    what the next rotation observes.
    """

    def __init__(
        self,
        keys: Iterable[EncryptionKey] = (),
        max_key_id: Optional[int] = None,
    ):
        self._committed = KeySnapshot(keys, max_key_id=max_key_id)
        self._loaded: Optional[KeySnapshot] = None

    def reload(self) -> KeySnapshot:
        self._loaded = self._committed
        logger.debug("Reloaded in-memory key store: %r", self._loaded)
        return self._loaded

    def snapshot(self) -> KeySnapshot:
        if self._loaded is None:
            return self.reload()
        return self._loaded

    def commit(self, keys: Sequence[EncryptionKey], max_key_id: int) -> None:
        self._committed = KeySnapshot(keys, max_key_id=max_key_id)
        self._loaded = self._committed
