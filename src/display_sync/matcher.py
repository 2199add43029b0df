"""Select the display mode whose refresh rate best fits a video frame rate."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from src.display_sync.modes import DisplayMode, to_centihertz
from src.display_sync.rates import lookup_family, normalize_rate

__all__ = ["find_closest_mode", "canonical_rate"]

logger = logging.getLogger(__name__)


def canonical_rate(video_frame_rate: float) -> int:
    """Return the centihertz lookup key for ``video_frame_rate``."""

    return normalize_rate(to_centihertz(video_frame_rate))


def find_closest_mode(
    modes: Optional[Iterable[Optional[DisplayMode]]],
    video_frame_rate: float,
) -> Optional[DisplayMode]:
    """
    Return the mode matching the first available rate in the video's family.

    Only members of the related-rate family are eligible; a numerically closer
    refresh rate outside the family is never chosen. When several candidates
    share a refresh rate the last one in ``modes`` wins.
    """

    if modes is None:
        return None

    key = canonical_rate(video_frame_rate)
    family = lookup_family(key)
    if not family:
        logger.debug("No rate family for %.3f fps (key %d)", video_frame_rate, key)
        return None

    by_rate: Dict[int, DisplayMode] = {}
    for mode in modes:
        if mode is None:
            continue
        by_rate[mode.refresh_centihertz] = mode

    for rate in family:
        match = by_rate.get(rate)
        if match is not None:
            return match
    return None
