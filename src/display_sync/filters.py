"""Narrow a display's supported mode list to switch candidates."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from src.display_sync.modes import DisplayMode, format_mode

__all__ = [
    "FHD_BAND",
    "FHD_MAX_WIDTH",
    "UHD_BAND",
    "UNSET_BOUND",
    "ResolutionPolicy",
    "filter_by_resolution_band",
    "filter_matching_resolution",
    "resolve_resolution_band",
]

logger = logging.getLogger(__name__)

UNSET_BOUND = -1
"""Sentinel bound meaning no resolution constraint was requested."""

FHD_MAX_WIDTH = 1920
UHD_BAND = (2160, 5000)
FHD_BAND = (1080, 1080)


@dataclass(frozen=True)
class ResolutionPolicy:
    """Whether a sync may change resolution as well as refresh rate."""

    prefer_uhd: bool = False
    prefer_fhd: bool = False

    @classmethod
    def from_switch(cls, enabled: bool) -> "ResolutionPolicy":
        return cls(prefer_uhd=enabled, prefer_fhd=enabled)

    @property
    def enabled(self) -> bool:
        return self.prefer_uhd or self.prefer_fhd


def resolve_resolution_band(target_width: int, policy: ResolutionPolicy) -> Tuple[int, int]:
    """
    Pick the height band a sync should switch into for ``target_width``.

    The UHD check runs first and the FHD check may overwrite it; since the width
    conditions are disjoint at most one band applies.
    """

    min_height, max_height = UNSET_BOUND, UNSET_BOUND
    if policy.prefer_uhd and target_width > FHD_MAX_WIDTH:
        min_height, max_height = UHD_BAND
    if policy.prefer_fhd and target_width <= FHD_MAX_WIDTH:
        min_height, max_height = FHD_BAND
    return min_height, max_height


def filter_by_resolution_band(
    modes: Iterable[Optional[DisplayMode]],
    min_height: int,
    max_height: int,
) -> List[DisplayMode]:
    """
    Keep modes whose height lies in ``[min_height, max_height]``.

    Parameters:
        modes (Iterable[Optional[DisplayMode]]): Supported modes; ``None`` entries are skipped.
        min_height (int): Inclusive lower bound, or :data:`UNSET_BOUND`.
        max_height (int): Inclusive upper bound, or :data:`UNSET_BOUND`.

    Returns:
        List[DisplayMode]: Matching modes in input order; empty when either bound is unset.
    """

    if min_height == UNSET_BOUND or max_height == UNSET_BOUND:
        return []

    all_modes = list(modes)
    candidates = [
        mode
        for mode in all_modes
        if mode is not None and min_height <= mode.physical_height <= max_height
    ]
    if candidates:
        logger.info(
            "Found %d mode candidate(s) in %d..%d: %s",
            len(candidates),
            min_height,
            max_height,
            ", ".join(format_mode(mode) for mode in candidates),
        )
    else:
        logger.info(
            "No mode candidates in %d..%d among: %s",
            min_height,
            max_height,
            ", ".join(format_mode(mode) for mode in all_modes),
        )
    return candidates


def filter_matching_resolution(
    modes: Iterable[Optional[DisplayMode]],
    reference: Optional[DisplayMode],
) -> List[DisplayMode]:
    """Keep modes with exactly the reference mode's width and height."""

    if reference is None:
        return []
    return [mode for mode in modes if mode is not None and mode.same_resolution(reference)]
