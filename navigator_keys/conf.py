"""
Navigator Keys settings.

Reserved site identifiers and environment-driven defaults shared by the
rotation engine and the storage backends.
"""
import os

# Reserved site ids carried by non-tenant keys.
MASTER_KEY_SITE_ID = -1
REFRESH_KEY_SITE_ID = -2
ADVERTISING_TOKEN_SITE_ID = 2

# Lowest site id assignable to a tenant.
MIN_VALID_SITE_ID = 3

# Key ids are signed 32-bit integers on the wire.
MAX_KEY_ID = 2**31 - 1

SECRET_LENGTH = 32

KEYS_LOGGER = os.environ.get("KEYS_LOGGER", "navigator.keys")
KEYS_STORE_DIR = os.environ.get("KEYS_STORE_DIR", "/var/lib/navigator/keys")


def is_valid_site_id(site_id: int) -> bool:
    """Return True if site_id can belong to a tenant."""
    return site_id >= MIN_VALID_SITE_ID
