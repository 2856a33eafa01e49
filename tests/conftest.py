"""Shared fixtures for the key rotation tests."""
import pytest
from datetime import datetime, timedelta, timezone

from navigator_keys.data import EPOCH, EncryptionKey
from navigator_keys.storage import InMemoryKeyStore
from navigator_keys.rotation import (
    EncryptionKeyService,
    KeyServiceConfig,
    SecretGenerator,
    WriteLock,
)

MASTER_KEY_ACTIVATES_IN_SECONDS = 3600
MASTER_KEY_EXPIRES_AFTER_SECONDS = 7200
SITE_KEY_ACTIVATES_IN_SECONDS = 36000
SITE_KEY_EXPIRES_AFTER_SECONDS = 72000

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
FAR_FUTURE = datetime(9999, 1, 1, tzinfo=timezone.utc)


def at_ms(millis: int) -> datetime:
    return EPOCH + timedelta(milliseconds=millis)


def make_key(
    key_id: int,
    site_id: int,
    created: datetime,
    activates: datetime,
    expires: datetime,
    secret: bytes = b"\x00" * 32,
) -> EncryptionKey:
    return EncryptionKey(
        id=key_id,
        secret=secret,
        site_id=site_id,
        created=created,
        activates=activates,
        expires=expires,
    )


def old_key(key_id: int, site_id: int) -> EncryptionKey:
    """Key activated long ago, with the 100xx/200xx/300xx ms timeline."""
    return make_key(
        key_id, site_id,
        at_ms(10000 + key_id), at_ms(20000 + key_id), at_ms(30000 + key_id),
    )


def pending_key(key_id: int, site_id: int, activates_in: int) -> EncryptionKey:
    """Key that activates ``activates_in`` seconds after NOW."""
    return make_key(
        key_id, site_id,
        at_ms(10000 + key_id), NOW + timedelta(seconds=activates_in), FAR_FUTURE,
    )


class RecordingKeyStore(InMemoryKeyStore):
    """In-memory store that records reloads and commits."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.reloads = 0
        self.commits: list[tuple[list[EncryptionKey], int]] = []

    def reload(self):
        self.reloads += 1
        return super().reload()

    def commit(self, keys, max_key_id):
        self.commits.append((list(keys), max_key_id))
        super().commit(keys, max_key_id)


class CountingSecretGenerator(SecretGenerator):
    """Deterministic secrets: the n-th secret is n repeated."""

    def __init__(self):
        self.calls = 0

    def random_bytes(self, length: int = 32) -> bytes:
        self.calls += 1
        return bytes([self.calls % 256]) * length


@pytest.fixture
def config():
    return KeyServiceConfig.from_mapping({
        "master_key_activates_in_seconds": MASTER_KEY_ACTIVATES_IN_SECONDS,
        "master_key_expires_after_seconds": MASTER_KEY_EXPIRES_AFTER_SECONDS,
        "site_key_activates_in_seconds": SITE_KEY_ACTIVATES_IN_SECONDS,
        "site_key_expires_after_seconds": SITE_KEY_EXPIRES_AFTER_SECONDS,
    })


@pytest.fixture
def make_service(config):
    """Build a service over a recording store seeded with ``keys``."""
    def _make(*keys, max_key_id=None, generator=None):
        store = RecordingKeyStore(keys, max_key_id=max_key_id)
        service = EncryptionKeyService(
            config,
            store,
            write_lock=WriteLock(),
            generator=generator,
            clock=lambda: NOW,
        )
        return service, store
    return _make
