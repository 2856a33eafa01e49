"""
Site selectors — which site ids a rotation request applies to.

Only three selection shapes exist, so they are modelled as a closed set of
frozen value types instead of arbitrary callables.
"""
from dataclasses import dataclass
from typing import Union

from ..conf import (
    ADVERTISING_TOKEN_SITE_ID,
    MASTER_KEY_SITE_ID,
    REFRESH_KEY_SITE_ID,
    is_valid_site_id,
)


@dataclass(frozen=True)
class ExactSite:
    """A single site."""
    site_id: int

    def matches(self, site_id: int) -> bool:
        return site_id == self.site_id


@dataclass(frozen=True)
class MasterAndRefresh:
    """The reserved master and refresh key classes."""

    def matches(self, site_id: int) -> bool:
        return site_id in (MASTER_KEY_SITE_ID, REFRESH_KEY_SITE_ID)


@dataclass(frozen=True)
class AnyValidOrAdvertising:
    """Every tenant site plus the advertising-token site."""

    def matches(self, site_id: int) -> bool:
        return is_valid_site_id(site_id) or site_id == ADVERTISING_TOKEN_SITE_ID


SiteSelector = Union[ExactSite, MasterAndRefresh, AnyValidOrAdvertising]
