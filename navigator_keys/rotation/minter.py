"""
Key Minter — builds new keys for a list of sites and commits them.

Minting is additive: the committed key set is extended, never replaced or
pruned. All keys of a batch share one ``created`` instant, and the store
commit is the only side effect; it happens once, after every key of the
batch has been built, and is never retried.

Security Note:
    Never log secret bytes. Only log key ids and site ids.
"""
import logging
from typing import Callable, Optional
from datetime import datetime
from collections.abc import Iterable

from ..conf import KEYS_LOGGER, SECRET_LENGTH
from ..data import EncryptionKey, utc_now
from ..storage import KeyStore
from .allocator import allocate_key_ids
from .config import RotationPolicy
from .crypto import SecretGenerator

logger = logging.getLogger(KEYS_LOGGER)


class KeyMinter:
    """Mint keys against the snapshot currently loaded in ``store``.

    The caller is expected to hold the write lock and to have reloaded the
    store; the minter itself never reloads.
    """

    def __init__(
        self,
        store: KeyStore,
        generator: Optional[SecretGenerator] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._generator = generator or SecretGenerator()
        self._clock = clock

    def mint(
        self,
        site_ids: Iterable[int],
        policy: RotationPolicy,
        now: Optional[datetime] = None,
    ) -> list[EncryptionKey]:
        """Create one key per site id and commit the extended key set.

        Args:
            site_ids: Sites to mint for; ids are assigned in this order.
            policy: Activation and expiry policy for the new keys.
            now: Creation instant for the batch, defaults to the clock.

        Returns:
            The new keys, in the order of ``site_ids``.

        Raises:
            KeyIdExhaustedError: If the id space cannot hold the batch.
            StorageError: If the commit failed; nothing was persisted.
        """
        site_ids = list(site_ids)
        if not site_ids:
            return []

        snapshot = self._store.snapshot()
        keys = snapshot.sorted_by_id()
        key_ids = allocate_key_ids(keys, snapshot.max_key_id, len(site_ids))

        created = (now or self._clock()).replace(microsecond=0)
        activates = created + policy.activates_in
        expires = activates + policy.expires_after

        minted = [
            EncryptionKey(
                id=key_id,
                secret=self._generator.random_bytes(SECRET_LENGTH),
                site_id=site_id,
                created=created,
                activates=activates,
                expires=expires,
            )
            for key_id, site_id in zip(key_ids, site_ids)
        ]

        extended = snapshot.extend(minted, max_key_id=key_ids[-1])
        self._store.commit(extended.sorted_by_id(), key_ids[-1])

        logger.info(
            "Minted %d key(s) ids=%s for sites=%s",
            len(minted), [k.id for k in minted], site_ids,
        )
        return minted
