"""Utility modules for the traffic estimation engine."""

from .config import Settings, get_settings
from .domains import (
    normalize_domain,
    public_suffix,
    registrable_domain,
    domain_label,
    domain_matches,
    is_commercial_registration,
)

__all__ = [
    "Settings",
    "get_settings",
    # Domain handling
    "normalize_domain",
    "public_suffix",
    "registrable_domain",
    "domain_label",
    "domain_matches",
    "is_commercial_registration",
]
