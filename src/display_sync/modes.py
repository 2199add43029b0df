"""Display mode value type and refresh-rate unit helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

__all__ = [
    "DisplayMode",
    "format_mode",
    "mode_from_mapping",
    "to_centihertz",
]


def to_centihertz(rate_hz: float) -> int:
    """
    Convert a rate in Hz to integer centihertz.

    Truncates toward zero; rounding would move 23.976 out of the 23.97x window
    that the rate table relies on.
    """

    return int(float(rate_hz) * 100.0)


@dataclass(frozen=True)
class DisplayMode:
    """
    One hardware output configuration reported by the display subsystem.

    Attributes:
        mode_id (int): Opaque identifier used only when requesting the mode.
        physical_width (int): Horizontal resolution in pixels.
        physical_height (int): Vertical resolution in pixels.
        refresh_rate (float): Refresh rate in Hz.
    """

    mode_id: int
    physical_width: int
    physical_height: int
    refresh_rate: float

    @property
    def refresh_centihertz(self) -> int:
        return to_centihertz(self.refresh_rate)

    def same_resolution(self, other: "DisplayMode") -> bool:
        return (
            self.physical_width == other.physical_width
            and self.physical_height == other.physical_height
        )

    def __str__(self) -> str:
        return format_mode(self)


def format_mode(mode: Optional[DisplayMode]) -> str:
    """Return a human-readable description such as ``1920x1080@60.00, id=3``."""

    if mode is None:
        return "none"
    return (
        f"{mode.physical_width}x{mode.physical_height}"
        f"@{mode.refresh_rate:.2f}, id={mode.mode_id}"
    )


def _require_int(mapping: Mapping[str, Any], key: str) -> int:
    value = mapping.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"mode '{key}' must be an integer")
    return value


def mode_from_mapping(mapping: Mapping[str, Any]) -> DisplayMode:
    """
    Build a :class:`DisplayMode` from a config table.

    Parameters:
        mapping (Mapping[str, Any]): Table with ``id``, ``width``, ``height`` and ``refresh_rate``.

    Returns:
        DisplayMode: The parsed mode.

    Raises:
        ValueError: If a key is missing or holds a value of the wrong type.
    """

    mode_id = _require_int(mapping, "id")
    width = _require_int(mapping, "width")
    height = _require_int(mapping, "height")
    if width <= 0 or height <= 0:
        raise ValueError("mode width and height must be > 0")
    raw_rate = mapping.get("refresh_rate")
    if isinstance(raw_rate, bool) or not isinstance(raw_rate, (int, float)):
        raise ValueError("mode 'refresh_rate' must be a number")
    if raw_rate <= 0:
        raise ValueError("mode 'refresh_rate' must be > 0")
    return DisplayMode(
        mode_id=mode_id,
        physical_width=width,
        physical_height=height,
        refresh_rate=float(raw_rate),
    )
