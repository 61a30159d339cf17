"""
Seeded randomness.

Every "random" value in an estimate is derived from the domain so that two
runs over the same inputs produce identical output. Each purpose draws from its
own random.Random instance seeded with (domain seed + fixed offset).
"""

import random
from typing import Tuple

from src.utils.domains import normalize_domain

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193
UINT32_MASK = 0xFFFFFFFF


# Per-purpose offsets. Changing any of these changes published estimates.
OFFSET_BASE_TRAFFIC = 1
OFFSET_JITTER = 2
OFFSET_BASIC_TRAFFIC = 3
OFFSET_MEGA_TOTAL = 4
OFFSET_TREND_ORGANIC = 100  # + month index
OFFSET_TREND_PAID = 200  # + month index


def fnv1a_32(text: str) -> int:
    """32-bit FNV-1a hash of the UTF-8 bytes of text."""
    h = FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * FNV_PRIME) & UINT32_MASK
    return h


def domain_seed(domain: str) -> int:
    """Seed for a domain, normalized so www/scheme/case do not matter."""
    return fnv1a_32(normalize_domain(domain))


def derive_seed(seed: int, offset: int) -> int:
    return (seed + offset) & UINT32_MASK


def seeded_random(seed: int, offset: int) -> float:
    """Uniform float in [0, 1) for one purpose."""
    return random.Random(derive_seed(seed, offset)).random()


def seeded_between(seed: int, offset: int, bounds: Tuple[float, float]) -> float:
    """Uniform float in [low, high) for one purpose."""
    low, high = bounds
    return low + seeded_random(seed, offset) * (high - low)
