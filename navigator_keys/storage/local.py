"""
Local Key Store — key set persisted as JSON documents in a directory.

Layout:
    metadata.json        {"version", "generated", "max_key_id", "keys": {"location"}}
    keys.v{N}.json       list of key records (secrets base64-encoded)

A commit writes the new keys document first and then swaps ``metadata.json``
with ``os.replace``; readers therefore see either the previous key set or
the new one, never a partial write.

Security Note:
    The keys document holds raw key material. Never log its contents,
    only key ids and document versions.
"""
import os
import time
import logging
import tempfile
from pathlib import Path
from typing import Optional, Union
from collections.abc import Sequence

import orjson

from ..conf import KEYS_LOGGER, KEYS_STORE_DIR
from ..data import EncryptionKey, KeySnapshot, encode_keys, decode_keys
from ..exceptions import StorageError
from .base import KeyStore

logger = logging.getLogger(KEYS_LOGGER)

METADATA_FILE = "metadata.json"


def _atomic_write(path: Path, data: bytes) -> None:
    """Write data next to path and move it into place."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class LocalKeyStore(KeyStore):
    """File-backed key store rooted at ``directory``."""

    def __init__(self, directory: Union[str, Path, None] = None):
        self._dir = Path(directory or KEYS_STORE_DIR)
        self._loaded: Optional[KeySnapshot] = None
        self._version = 0
        self._location: Optional[str] = None

    @property
    def version(self) -> int:
        """Version of the last loaded or committed metadata document."""
        return self._version

    def _read_metadata(self) -> Optional[dict]:
        path = self._dir / METADATA_FILE
        if not path.exists():
            return None
        metadata = orjson.loads(path.read_bytes())
        if not isinstance(metadata, dict):
            raise ValueError(f"{METADATA_FILE} must hold a JSON object")
        return metadata

    def reload(self) -> KeySnapshot:
        try:
            metadata = self._read_metadata()
            if metadata is None:
                snapshot = KeySnapshot()
                version, location = 0, None
            else:
                location = metadata["keys"]["location"]
                keys = decode_keys((self._dir / location).read_bytes())
                max_key_id = metadata.get("max_key_id")
                if max_key_id is not None and (
                    isinstance(max_key_id, bool) or not isinstance(max_key_id, int)
                ):
                    raise ValueError(f"max_key_id must be an integer, got {max_key_id!r}")
                snapshot = KeySnapshot(keys, max_key_id=max_key_id)
                version = int(metadata.get("version", 0))
        except (OSError, KeyError, TypeError, ValueError) as err:
            raise StorageError(
                f"Unable to load key store from {self._dir}: {err}"
            ) from err
        self._loaded = snapshot
        self._version = version
        self._location = location
        logger.debug(
            "Loaded key store %s version %d: %r", self._dir, version, snapshot,
        )
        return snapshot

    def snapshot(self) -> KeySnapshot:
        if self._loaded is None:
            return self.reload()
        return self._loaded

    def commit(self, keys: Sequence[EncryptionKey], max_key_id: int) -> None:
        snapshot = KeySnapshot(keys, max_key_id=max_key_id)
        try:
            current = self._read_metadata()
            if current is None:
                disk_version, previous = 0, None
            else:
                disk_version = int(current.get("version", 0))
                previous = current["keys"]["location"]
        except (OSError, KeyError, TypeError, ValueError) as err:
            raise StorageError(
                f"Unable to read key store metadata from {self._dir}: {err}"
            ) from err
        # another writer may have committed since this store last loaded
        version = max(self._version, disk_version) + 1
        location = f"keys.v{version}.json"
        metadata = {
            "version": version,
            "generated": int(time.time()),
            "max_key_id": max_key_id,
            "keys": {"location": location},
        }
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            _atomic_write(self._dir / location, encode_keys(snapshot.values()))
            _atomic_write(self._dir / METADATA_FILE, orjson.dumps(metadata))
        except OSError as err:
            raise StorageError(
                f"Unable to commit key store version {version}: {err}"
            ) from err
        self._loaded = snapshot
        self._version = version
        self._location = location
        if previous and previous != location:
            (self._dir / previous).unlink(missing_ok=True)
        logger.info(
            "Committed key store %s version %d (%d keys, max_key_id=%d)",
            self._dir, version, len(snapshot), max_key_id,
        )
