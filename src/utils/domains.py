"""
Domain Utilities

Shared domain normalization used by every estimation step:
- Stripping scheme, www. prefix, paths and ports
- Registrable domain extraction (handles two-level public suffixes like .co.uk)
- Brand label extraction
"""

import re
from typing import Optional
import logging

logger = logging.getLogger(__name__)


# Two-level public suffixes we see in practice. Anything else is treated as a
# single-label TLD.
SECOND_LEVEL_SUFFIXES = {
    "co.uk", "org.uk", "ac.uk", "gov.uk", "nhs.uk", "police.uk", "ltd.uk", "plc.uk", "me.uk",
    "com.au", "net.au", "org.au", "edu.au", "gov.au",
    "co.nz", "org.nz", "govt.nz", "ac.nz",
    "co.za", "gov.za", "ac.za",
    "com.br", "gov.br",
    "co.jp", "ac.jp", "go.jp",
    "co.in", "gov.in", "ac.in",
    "com.sg", "gov.sg", "edu.sg",
    "com.mx", "gob.mx",
    "gc.ca",
}

# Second-level labels that mark a commercial registration
COMMERCIAL_SECOND_LEVEL = {"co", "com", "ltd", "plc"}


def normalize_domain(domain: Optional[str]) -> str:
    """
    Normalize a user-supplied domain or URL.

    "https://www.Example.co.uk/about?x=1" -> "example.co.uk"

    Args:
        domain: Domain or URL string

    Returns:
        Lowercase host without scheme, www. prefix, port or path
    """
    if not domain:
        return ""

    value = domain.strip().lower()
    value = re.sub(r"^[a-z][a-z0-9+.-]*://", "", value)
    value = value.split("/")[0].split("?")[0].split("#")[0]
    value = value.split("@")[-1].split(":")[0]

    if value.startswith("www."):
        value = value[4:]

    return value.strip(".")


def public_suffix(domain: str) -> str:
    """Return the public suffix of a normalized domain ("co.uk", "com", ...)."""
    parts = domain.split(".")
    if len(parts) >= 3 and ".".join(parts[-2:]) in SECOND_LEVEL_SUFFIXES:
        return ".".join(parts[-2:])
    return parts[-1] if parts else ""


def registrable_domain(domain: str) -> str:
    """
    Return the registrable domain.

    "news.bbc.co.uk" -> "bbc.co.uk", "blog.example.com" -> "example.com"
    """
    domain = normalize_domain(domain)
    if not domain:
        return ""

    suffix = public_suffix(domain)
    suffix_len = len(suffix.split("."))
    parts = domain.split(".")

    if len(parts) <= suffix_len:
        return domain

    return ".".join(parts[-(suffix_len + 1):])


def domain_label(domain: str) -> str:
    """
    Return the brand label of a domain.

    "www.pmwcom.co.uk" -> "pmwcom"
    """
    registrable = registrable_domain(domain)
    return registrable.split(".")[0] if registrable else ""


def is_commercial_registration(domain: str) -> bool:
    """True for domains registered under a commercial second level (.co.uk, .com.au)."""
    suffix = public_suffix(normalize_domain(domain))
    first = suffix.split(".")[0]
    return "." in suffix and first in COMMERCIAL_SECOND_LEVEL


def domain_matches(candidate: str, target: str) -> bool:
    """
    Check whether candidate is target or one of its subdomains.

    Used for table lookups and SERP result matching.
    """
    candidate = normalize_domain(candidate)
    target = normalize_domain(target)
    if not candidate or not target:
        return False
    return candidate == target or candidate.endswith("." + target)
