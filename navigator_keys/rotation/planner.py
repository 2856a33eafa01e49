"""
Rotation Planner — decides which sites receive a new key.

For the sites matched by a selector, the key with the latest activation
time is the site's current key. A site rotates when that key activated
before ``now - min_age``, or unconditionally when ``force`` is set. Sites
without any key are never picked here: minting a first key for a site is
a separate, explicit operation.
"""
import logging
from typing import Callable
from datetime import datetime, timedelta
from collections.abc import Iterable

from ..conf import KEYS_LOGGER
from ..data import EncryptionKey, RotationResult, utc_now
from ..storage import KeyStore
from .config import RotationPolicy
from .minter import KeyMinter
from .selectors import SiteSelector

logger = logging.getLogger(KEYS_LOGGER)


def select_sites(
    keys: Iterable[EncryptionKey],
    selector: SiteSelector,
    min_age: timedelta,
    force: bool,
    now: datetime,
) -> tuple[frozenset[int], list[int]]:
    """Return (considered site ids, site ids to rotate in ascending order)."""
    current: dict[int, EncryptionKey] = {}
    for key in keys:
        if not selector.matches(key.site_id):
            continue
        latest = current.get(key.site_id)
        if latest is None or key.activates > latest.activates:
            current[key.site_id] = key

    try:
        threshold = now - min_age
    except OverflowError:
        # older than any representable instant, no key is that old
        threshold = datetime.min.replace(tzinfo=now.tzinfo)
    rotate = [
        site_id for site_id, key in sorted(current.items())
        if force or key.activates < threshold
    ]
    return frozenset(current), rotate


class RotationPlanner:
    """Runs the predicate driven rotation flow against a store."""

    def __init__(
        self,
        store: KeyStore,
        minter: KeyMinter,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._minter = minter
        self._clock = clock

    def plan(
        self,
        selector: SiteSelector,
        min_age: timedelta,
        force: bool,
        policy: RotationPolicy,
    ) -> RotationResult:
        """Reload the store and rotate every selected site that needs it.

        Returns:
            RotationResult with the considered sites and the minted keys
            (empty when nothing needed rotation; the store is untouched).
        """
        snapshot = self._store.reload()
        now = self._clock()

        considered, site_ids = select_sites(
            snapshot.values(), selector, min_age, force, now,
        )
        if not site_ids:
            logger.debug(
                "No rotation needed for %r (considered sites=%s)",
                selector, sorted(considered),
            )
            return RotationResult(site_ids=considered)

        minted = self._minter.mint(site_ids, policy, now=now)
        return RotationResult(site_ids=considered, rotated_keys=tuple(minted))
