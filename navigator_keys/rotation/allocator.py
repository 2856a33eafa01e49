"""
Key id allocation.

Ids grow monotonically over the lifetime of the system and are never
reused. The persisted high-water-mark covers ids of keys that were removed
from the live set after being issued.
"""
from typing import Optional
from collections.abc import Iterable

from ..conf import MAX_KEY_ID
from ..data import EncryptionKey
from ..exceptions import KeyIdExhaustedError


def key_id_base(
    keys: Iterable[EncryptionKey],
    persisted_max_key_id: Optional[int] = None,
) -> int:
    """Return the highest id ever issued, the base new ids count up from.

    Args:
        keys: Keys of the current snapshot.
        persisted_max_key_id: High-water-mark recorded by the store, if any.

    Raises:
        KeyIdExhaustedError: If no further id can be issued.
    """
    base = max((k.id for k in keys), default=0)
    if persisted_max_key_id is not None:
        base = max(base, persisted_max_key_id)
    if base >= MAX_KEY_ID:
        raise KeyIdExhaustedError(
            "Cannot generate a new key id: max key id reached"
        )
    return base


def allocate_key_ids(
    keys: Iterable[EncryptionKey],
    persisted_max_key_id: Optional[int],
    count: int,
) -> range:
    """Reserve ``count`` consecutive ids following the base id."""
    base = key_id_base(keys, persisted_max_key_id)
    if base + count > MAX_KEY_ID:
        raise KeyIdExhaustedError(
            f"Cannot generate {count} key ids after {base}: max key id reached"
        )
    return range(base + 1, base + count + 1)
