"""Related refresh-rate families keyed by canonical video frame rate."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

__all__ = [
    "FILM_RATE",
    "FILM_WINDOW",
    "RATE_FAMILIES",
    "lookup_family",
    "normalize_rate",
]

FILM_RATE = 2397
"""Canonical centihertz key for 23.976 fps content."""

FILM_WINDOW = (2300, 2399)
"""Inclusive centihertz range snapped to :data:`FILM_RATE` before lookup."""

RATE_FAMILIES: Mapping[int, Tuple[int, ...]] = MappingProxyType(
    {
        1500: (3000, 6000),
        2397: (2397, 2400, 3000, 6000),
        2400: (2400, 3000, 6000),
        2500: (2500, 5000),
        2997: (2997, 3000, 6000),
        3000: (3000, 6000),
        5000: (5000, 2500),
        5994: (5994, 6000, 3000),
        6000: (6000, 3000),
    }
)
"""Display refresh rates acceptable for each canonical rate, most preferred first."""


def normalize_rate(rate_centihertz: int) -> int:
    """Snap float renderings of 23.976 fps onto the film key; other rates pass through."""

    low, high = FILM_WINDOW
    if low <= rate_centihertz <= high:
        return FILM_RATE
    return rate_centihertz


def lookup_family(rate_centihertz: int) -> Tuple[int, ...]:
    """Return the fallback sequence for ``rate_centihertz`` (empty when unknown)."""

    return RATE_FAMILIES.get(normalize_rate(rate_centihertz), ())
