import base64
from typing import Any, Optional
from datetime import datetime, timedelta, timezone
from collections.abc import Iterable, Iterator, Mapping
import orjson
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Current UTC time truncated to whole seconds, the stored precision."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def to_epoch_millis(value: datetime) -> int:
    return (value - EPOCH) // timedelta(milliseconds=1)


def to_epoch_seconds(value: datetime) -> int:
    return (value - EPOCH) // timedelta(seconds=1)


def from_epoch_seconds(value: int) -> datetime:
    return EPOCH + timedelta(seconds=value)


class EncryptionKey(BaseModel):
    """EncryptionKey.

    An immutable symmetric key owned by a site (or by one of the reserved
    master/refresh classes). Once minted a key is never changed: rotation
    always produces a new id with a new secret.
    """
    model_config = ConfigDict(frozen=True)

    id: int = Field(gt=0)
    secret: bytes = Field(repr=False)
    site_id: int
    created: datetime
    activates: datetime
    expires: datetime

    @field_validator("created", "activates", "expires")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """Naive timestamps are taken as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def validate_timeline(self) -> "EncryptionKey":
        if not self.created <= self.activates <= self.expires:
            raise ValueError(
                f"key {self.id} must satisfy created <= activates <= expires"
            )
        return self

    def to_json(self) -> dict:
        """Public representation of the key, without the secret."""
        return {
            "id": self.id,
            "site_id": self.site_id,
            "created": to_epoch_millis(self.created),
            "activates": to_epoch_millis(self.activates),
            "expires": to_epoch_millis(self.expires),
        }

    def to_record(self) -> dict:
        """Storage representation of the key, secret included."""
        return {
            "id": self.id,
            "site_id": self.site_id,
            "secret": base64.b64encode(self.secret).decode("ascii"),
            "created": to_epoch_seconds(self.created),
            "activates": to_epoch_seconds(self.activates),
            "expires": to_epoch_seconds(self.expires),
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "EncryptionKey":
        return cls(
            id=record["id"],
            site_id=record["site_id"],
            secret=base64.b64decode(record["secret"]),
            created=from_epoch_seconds(record["created"]),
            activates=from_epoch_seconds(record["activates"]),
            expires=from_epoch_seconds(record["expires"]),
        )


def encode_keys(keys: Iterable[EncryptionKey]) -> bytes:
    """Serialize keys to the stored JSON document (list of records)."""
    return orjson.dumps([k.to_record() for k in keys])


def decode_keys(data: bytes) -> list[EncryptionKey]:
    """Deserialize a stored JSON document back to keys.

    Raises:
        ValueError: document is not a list of valid key records.
    """
    try:
        records = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise ValueError(f"Invalid key document: {err}") from err
    if not isinstance(records, list):
        raise ValueError("Key document must be a JSON array")
    try:
        return [EncryptionKey.from_record(r) for r in records]
    except (KeyError, TypeError) as err:
        raise ValueError(f"Malformed key record: {err!r}") from err


class KeySnapshot(Mapping[int, EncryptionKey]):
    """Read-only view of a committed key set.

    Keys are addressed by id and iterate in ascending id order. The
    snapshot also carries the persisted high-water-mark (``max_key_id``)
    which may be higher than any id still present, when keys were
    removed from the set after being issued.
    """

    def __init__(
        self,
        keys: Iterable[EncryptionKey] = (),
        max_key_id: Optional[int] = None
    ) -> None:
        by_id: dict[int, EncryptionKey] = {}
        for key in keys:
            if key.id in by_id:
                raise ValueError(f"Duplicate key id {key.id} in key set")
            by_id[key.id] = key
        self._keys = dict(sorted(by_id.items()))
        self._max_key_id = max_key_id

    def __repr__(self) -> str:
        return (
            f'<KeySnapshot [keys:{len(self._keys)}, '
            f'max_key_id:{self._max_key_id}]>'
        )

    # --- Magic Methods ---

    def __getitem__(self, key_id: int) -> EncryptionKey:
        return self._keys[key_id]

    def __iter__(self) -> Iterator[int]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    # --- Properties ---

    @property
    def max_key_id(self) -> Optional[int]:
        """Persisted high-water-mark, None when never recorded."""
        return self._max_key_id

    # --- Views ---

    def sorted_by_id(self) -> list[EncryptionKey]:
        return list(self._keys.values())

    def sorted_for_listing(self) -> list[EncryptionKey]:
        """Keys ordered by (site_id, activates), as presented to callers."""
        return sorted(self._keys.values(), key=lambda k: (k.site_id, k.activates))

    def extend(
        self,
        keys: Iterable[EncryptionKey],
        max_key_id: Optional[int] = None
    ) -> "KeySnapshot":
        """Return a new snapshot holding these keys plus ``keys``."""
        return KeySnapshot(
            [*self._keys.values(), *keys],
            max_key_id=self._max_key_id if max_key_id is None else max_key_id,
        )


class RotationResult(BaseModel):
    """Outcome of a rotation request.

    ``site_ids`` holds every site matched by the selector, rotated or not,
    so an empty set means no key exists for the selection at all.
    """
    model_config = ConfigDict(frozen=True)

    site_ids: frozenset[int] = frozenset()
    rotated_keys: tuple[EncryptionKey, ...] = ()

    def to_json(self) -> list[dict]:
        return [k.to_json() for k in self.rotated_keys]
