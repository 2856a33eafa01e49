"""
EncryptionKeyService — entry points of the key rotation engine.

Provides the operations an admin API layer maps its routes to:
- ``add_site_key(site_id)`` — mint the first (or an extra) key for a site
- ``rotate(selector, min_age, force)`` — general selector driven rotation
- ``rotate_master_keys`` / ``rotate_site_key`` / ``rotate_all_site_keys``
- ``list_keys()`` — keys ordered by (site_id, activates), secrets never exposed
  by their ``to_json()`` form

Every mutating entry point acquires the write lock and reloads the store
before deciding anything, so each rotation observes all previously
committed rotations.
"""
import logging
from typing import Callable, Optional, Union
from datetime import datetime, timedelta

from ..conf import ADVERTISING_TOKEN_SITE_ID, KEYS_LOGGER, is_valid_site_id
from ..data import EncryptionKey, RotationResult, utc_now
from ..exceptions import InvalidSiteError, SiteNotFoundError
from ..storage import KeyStore
from .config import KeyServiceConfig, RotationPolicy
from .crypto import SecretGenerator
from .lock import AdminWorkerPool, WriteLock, default_write_lock
from .minter import KeyMinter
from .planner import RotationPlanner
from .selectors import AnyValidOrAdvertising, ExactSite, MasterAndRefresh, SiteSelector

logger = logging.getLogger(KEYS_LOGGER)

MinAge = Union[timedelta, int, float]


def _as_min_age(value: MinAge) -> timedelta:
    if isinstance(value, timedelta):
        min_age = value
    else:
        try:
            min_age = timedelta(seconds=value)
        except OverflowError:
            if value < 0:
                raise ValueError(f"min_age cannot be negative, got {value!r}") from None
            min_age = timedelta.max
    if min_age < timedelta(0):
        raise ValueError(f"min_age cannot be negative, got {value!r}")
    return min_age


class EncryptionKeyService:
    """Rotation and listing of master, refresh and site keys."""

    def __init__(
        self,
        config: KeyServiceConfig,
        store: KeyStore,
        write_lock: Optional[WriteLock] = None,
        generator: Optional[SecretGenerator] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._config = config
        self._store = store
        self._write_lock = write_lock or default_write_lock()
        self._minter = KeyMinter(store, generator=generator, clock=clock)
        self._planner = RotationPlanner(store, self._minter, clock=clock)

    @property
    def write_lock(self) -> WriteLock:
        return self._write_lock

    def worker_pool(self) -> AdminWorkerPool:
        """Worker pool sized by the configuration, sharing this service's write lock."""
        return AdminWorkerPool.from_config(self._config, self._write_lock)

    def policy_for(self, selector: SiteSelector) -> RotationPolicy:
        """Master and refresh keys share the master policy, the rest use the site policy."""
        if isinstance(selector, MasterAndRefresh):
            return self._config.master_key_policy
        return self._config.site_key_policy

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_site_key(self, site_id: int) -> EncryptionKey:
        """Mint one key for ``site_id`` unconditionally.

        Used when a site is created and has no key yet; bypasses the age
        and force checks of ``rotate``.
        """
        with self._write_lock:
            self._store.reload()
            key = self._minter.mint([site_id], self._config.site_key_policy)[0]
        logger.info("Added key id=%d for site=%d", key.id, site_id)
        return key

    def rotate(
        self,
        selector: SiteSelector,
        min_age: MinAge,
        force: bool = False,
        policy: Optional[RotationPolicy] = None,
    ) -> RotationResult:
        """Rotate every site matched by ``selector`` whose current key is old enough.

        Args:
            selector: Sites the request applies to.
            min_age: A site rotates when its latest key activated more than
                this long ago (timedelta or seconds).
            force: Rotate every matched site that has a key regardless of age.
            policy: Timing policy override; defaults to ``policy_for(selector)``.
        """
        min_age = _as_min_age(min_age)
        policy = policy or self.policy_for(selector)
        with self._write_lock:
            return self._planner.plan(selector, min_age, force, policy)

    def rotate_master_keys(self, min_age: MinAge, force: bool = False) -> RotationResult:
        return self.rotate(MasterAndRefresh(), min_age, force)

    def rotate_site_key(
        self,
        site_id: int,
        min_age: MinAge,
        force: bool = False,
    ) -> RotationResult:
        """Rotate the key of a single site.

        Raises:
            InvalidSiteError: site_id is neither a tenant site nor the
                advertising-token site.
            SiteNotFoundError: the site has no key to rotate.
        """
        if site_id != ADVERTISING_TOKEN_SITE_ID and not is_valid_site_id(site_id):
            raise InvalidSiteError(site_id)
        result = self.rotate(ExactSite(site_id), min_age, force)
        if site_id not in result.site_ids:
            raise SiteNotFoundError(site_id)
        return result

    def rotate_all_site_keys(self, min_age: MinAge, force: bool = False) -> RotationResult:
        return self.rotate(AnyValidOrAdvertising(), min_age, force)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_keys(self) -> list[EncryptionKey]:
        """Keys of the loaded snapshot ordered by (site_id, activates)."""
        return self._store.snapshot().sorted_for_listing()
