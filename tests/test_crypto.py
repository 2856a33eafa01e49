"""Tests for secret generation and key record hashes."""
import pytest

from navigator_keys.rotation import SecretGenerator, hash_key_record

from conftest import NOW, FAR_FUTURE, make_key


class TestSecretGenerator:
    """Tests for SecretGenerator."""

    def test_length(self):
        assert len(SecretGenerator().random_bytes(32)) == 32

    def test_distinct(self):
        generator = SecretGenerator()
        assert generator.random_bytes() != generator.random_bytes()

    def test_invalid_length(self):
        with pytest.raises(ValueError):
            SecretGenerator().random_bytes(0)


class TestHashKeyRecord:
    """Tests for hash_key_record()."""

    def test_hex_digest(self):
        digest = hash_key_record(make_key(1, 5, NOW, NOW, FAR_FUTURE))
        assert len(digest) == 64
        int(digest, 16)

    def test_stable(self):
        key = make_key(1, 5, NOW, NOW, FAR_FUTURE)
        assert hash_key_record(key) == hash_key_record(key.model_copy())

    def test_covers_secret(self):
        first = make_key(1, 5, NOW, NOW, FAR_FUTURE, secret=b"\x01" * 32)
        second = make_key(1, 5, NOW, NOW, FAR_FUTURE, secret=b"\x02" * 32)
        assert hash_key_record(first) != hash_key_record(second)
