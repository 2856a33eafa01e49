"""
Key Crypto Core — secret generation and key record integrity hashes.

Security Note:
    Never log secret bytes. The integrity hash covers the secret, it is meant
    for the audit trail only and must not be returned to API callers.
"""
import base64
import secrets

import orjson
from cryptography.hazmat.primitives import hashes

from ..conf import SECRET_LENGTH
from ..data import EncryptionKey, to_epoch_millis


# ---------------------------------------------------------------------------
# Secret generation
# ---------------------------------------------------------------------------

class SecretGenerator:
    """Produces cryptographically secure random key material."""

    def random_bytes(self, length: int = SECRET_LENGTH) -> bytes:
        """Return ``length`` random bytes from the OS CSPRNG.

        Raises:
            ValueError: If length is not positive.
        """
        if length <= 0:
            raise ValueError(f"Secret length must be positive, got {length}")
        return secrets.token_bytes(length)


# ---------------------------------------------------------------------------
# Integrity hashes
# ---------------------------------------------------------------------------

def hash_key_record(key: EncryptionKey) -> str:
    """SHA-256 hex digest of the full key record, secret included.

    Args:
        key: Key to fingerprint.

    Returns:
        Lower-case hex digest string.
    """
    record = {
        "id": key.id,
        "key_bytes": base64.b64encode(key.secret).decode("ascii"),
        "site_id": key.site_id,
        "created": to_epoch_millis(key.created),
        "activates": to_epoch_millis(key.activates),
        "expires": to_epoch_millis(key.expires),
    }
    digest = hashes.Hash(hashes.SHA256())
    digest.update(orjson.dumps(record))
    return digest.finalize().hex()
