"""Errors raised by the key rotation engine and its storage backends."""


class KeyServiceError(Exception):
    """Base class for key management errors."""


class ConfigurationError(KeyServiceError):
    """Rotation policy or environment configuration is unusable."""


class KeyIdExhaustedError(KeyServiceError):
    """No key identifier is left to allocate."""


class InvalidSiteError(KeyServiceError):
    """A targeted operation named a site id that cannot own keys."""

    def __init__(self, site_id: int):
        self.site_id = site_id
        super().__init__(f"must specify a valid site id, got {site_id}")


class SiteNotFoundError(KeyServiceError):
    """The targeted site has no keys in the current snapshot."""

    def __init__(self, site_id: int):
        self.site_id = site_id
        super().__init__(f"No keys found for the specified site id: {site_id}")


class StorageError(KeyServiceError):
    """Loading or committing the key set failed."""
