"""
Rotation Configuration — timing policies for master and site keys.

Reads policies from environment variables (seconds):
    MASTER_KEY_ACTIVATES_IN_SECONDS / MASTER_KEY_EXPIRES_AFTER_SECONDS
    SITE_KEY_ACTIVATES_IN_SECONDS / SITE_KEY_EXPIRES_AFTER_SECONDS
    KEYS_WORKER_POOL_SIZE (optional, default 4)

Master and refresh keys share the master policy; every site key (including
the advertising-token site) uses the site policy. A policy whose activation
delay does not leave a validity window is rejected at startup.
"""
import os
import logging
from typing import Any
from datetime import timedelta
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..conf import KEYS_LOGGER
from ..exceptions import ConfigurationError

logger = logging.getLogger(KEYS_LOGGER)

MASTER_KEY_ACTIVATES_IN_SECONDS = "master_key_activates_in_seconds"
MASTER_KEY_EXPIRES_AFTER_SECONDS = "master_key_expires_after_seconds"
SITE_KEY_ACTIVATES_IN_SECONDS = "site_key_activates_in_seconds"
SITE_KEY_EXPIRES_AFTER_SECONDS = "site_key_expires_after_seconds"
WORKER_POOL_SIZE = "keys_worker_pool_size"


def _integer(config: Mapping[str, Any], name: str) -> int:
    value = config[name]
    try:
        return int(value)
    except (TypeError, ValueError) as err:
        raise ConfigurationError(
            f"{name} must be an integer, got {value!r}"
        ) from err


def _seconds(config: Mapping[str, Any], name: str) -> timedelta:
    return timedelta(seconds=_integer(config, name))


class RotationPolicy(BaseModel):
    """When a freshly minted key activates and how long it stays valid."""

    model_config = ConfigDict(frozen=True)

    activates_in: timedelta
    expires_after: timedelta

    @field_validator("activates_in", "expires_after")
    @classmethod
    def validate_not_negative(cls, v: timedelta) -> timedelta:
        if v < timedelta(0):
            raise ValueError("policy durations cannot be negative")
        return v

    @model_validator(mode="after")
    def validate_window(self) -> "RotationPolicy":
        """Ensure an activated key has a nonzero validity window."""
        if self.activates_in >= self.expires_after:
            raise ValueError(
                f"activates_in ({self.activates_in}) must be less than "
                f"expires_after ({self.expires_after})"
            )
        return self


class KeyServiceConfig(BaseModel):
    """Validated key service configuration."""

    master_key_policy: RotationPolicy
    site_key_policy: RotationPolicy
    worker_pool_size: int = Field(default=4, ge=1, le=64)

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "KeyServiceConfig":
        """Build the config from a flat mapping of ``*_seconds`` settings.

        Raises:
            ConfigurationError: a setting is missing, malformed, or a policy
                has activates_in >= expires_after.
        """
        missing = [
            name for name in (
                MASTER_KEY_ACTIVATES_IN_SECONDS,
                MASTER_KEY_EXPIRES_AFTER_SECONDS,
                SITE_KEY_ACTIVATES_IN_SECONDS,
                SITE_KEY_EXPIRES_AFTER_SECONDS,
            ) if config.get(name) is None
        ]
        if missing:
            raise ConfigurationError(
                f"Missing key rotation settings: {', '.join(missing)}"
            )
        values: dict[str, Any] = {
            "master_key_policy": {
                "activates_in": _seconds(config, MASTER_KEY_ACTIVATES_IN_SECONDS),
                "expires_after": _seconds(config, MASTER_KEY_EXPIRES_AFTER_SECONDS),
            },
            "site_key_policy": {
                "activates_in": _seconds(config, SITE_KEY_ACTIVATES_IN_SECONDS),
                "expires_after": _seconds(config, SITE_KEY_EXPIRES_AFTER_SECONDS),
            },
        }
        if config.get(WORKER_POOL_SIZE) is not None:
            values["worker_pool_size"] = _integer(config, WORKER_POOL_SIZE)
        try:
            instance = cls.model_validate(values)
        except ValidationError as err:
            raise ConfigurationError(str(err)) from err
        logger.debug(
            "Key rotation policies: master=%s/%s site=%s/%s",
            instance.master_key_policy.activates_in,
            instance.master_key_policy.expires_after,
            instance.site_key_policy.activates_in,
            instance.site_key_policy.expires_after,
        )
        return instance

    @classmethod
    def from_env(cls) -> "KeyServiceConfig":
        """Create KeyServiceConfig by loading values from environment.

        Returns:
            Populated KeyServiceConfig instance.
        """
        names = (
            MASTER_KEY_ACTIVATES_IN_SECONDS,
            MASTER_KEY_EXPIRES_AFTER_SECONDS,
            SITE_KEY_ACTIVATES_IN_SECONDS,
            SITE_KEY_EXPIRES_AFTER_SECONDS,
            WORKER_POOL_SIZE,
        )
        return cls.from_mapping(
            {name: os.environ.get(name.upper()) for name in names}
        )
