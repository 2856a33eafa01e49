"""Tests for rotation configuration."""
import pytest
from datetime import timedelta
from pydantic import ValidationError

from navigator_keys.exceptions import ConfigurationError
from navigator_keys.rotation import KeyServiceConfig, RotationPolicy

SETTINGS = {
    "master_key_activates_in_seconds": 3600,
    "master_key_expires_after_seconds": 7200,
    "site_key_activates_in_seconds": 36000,
    "site_key_expires_after_seconds": 72000,
}

ENV = {
    "MASTER_KEY_ACTIVATES_IN_SECONDS": "3600",
    "MASTER_KEY_EXPIRES_AFTER_SECONDS": "7200",
    "SITE_KEY_ACTIVATES_IN_SECONDS": "36000",
    "SITE_KEY_EXPIRES_AFTER_SECONDS": "72000",
}


class TestRotationPolicy:
    """Tests for RotationPolicy validation."""

    def test_valid_policy(self):
        policy = RotationPolicy(
            activates_in=timedelta(0), expires_after=timedelta(seconds=1),
        )
        assert policy.expires_after == timedelta(seconds=1)

    def test_activates_equal_expires_rejected(self):
        with pytest.raises(ValidationError):
            RotationPolicy(
                activates_in=timedelta(seconds=10),
                expires_after=timedelta(seconds=10),
            )

    def test_negative_duration_rejected(self):
        with pytest.raises(ValidationError):
            RotationPolicy(
                activates_in=timedelta(seconds=-1),
                expires_after=timedelta(seconds=10),
            )


class TestKeyServiceConfig:
    """Tests for KeyServiceConfig loading."""

    def test_from_mapping(self):
        config = KeyServiceConfig.from_mapping(SETTINGS)
        assert config.master_key_policy.activates_in == timedelta(hours=1)
        assert config.site_key_policy.expires_after == timedelta(hours=20)
        assert config.worker_pool_size == 4

    @pytest.mark.parametrize("prefix", ["master", "site"])
    def test_invalid_window_is_fatal(self, prefix):
        settings = dict(SETTINGS)
        settings[f"{prefix}_key_activates_in_seconds"] = settings[
            f"{prefix}_key_expires_after_seconds"
        ]
        with pytest.raises(ConfigurationError):
            KeyServiceConfig.from_mapping(settings)

    def test_missing_setting(self):
        settings = dict(SETTINGS)
        del settings["site_key_expires_after_seconds"]
        with pytest.raises(ConfigurationError) as exc:
            KeyServiceConfig.from_mapping(settings)
        assert "site_key_expires_after_seconds" in str(exc.value)

    def test_non_integer_setting(self):
        settings = dict(SETTINGS, master_key_activates_in_seconds="soon")
        with pytest.raises(ConfigurationError):
            KeyServiceConfig.from_mapping(settings)

    def test_worker_pool_bounds(self):
        with pytest.raises(ConfigurationError):
            KeyServiceConfig.from_mapping(dict(SETTINGS, keys_worker_pool_size=0))

    def test_from_env(self, monkeypatch):
        for name, value in ENV.items():
            monkeypatch.setenv(name, value)
        monkeypatch.setenv("KEYS_WORKER_POOL_SIZE", "2")
        config = KeyServiceConfig.from_env()
        assert config.site_key_policy.activates_in == timedelta(seconds=36000)
        assert config.worker_pool_size == 2

    def test_from_env_missing(self, monkeypatch):
        for name in ENV:
            monkeypatch.delenv(name, raising=False)
        with pytest.raises(ConfigurationError):
            KeyServiceConfig.from_env()
