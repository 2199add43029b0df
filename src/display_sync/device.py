"""Device capability checks that gate display-mode switching."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from src.datatypes import PlatformConfig

__all__ = [
    "LOLLIPOP",
    "LOLLIPOP_MR1",
    "DevicePlatform",
    "is_amazon_fire_tv_device",
    "resolve_platform",
    "supports_display_mode_change",
]

logger = logging.getLogger(__name__)

LOLLIPOP = 21
LOLLIPOP_MR1 = 22

_FIRE_TV_MODEL_PREFIX = "AFT"
_FIRE_TV_MANUFACTURER = "amazon"


def is_amazon_fire_tv_device(model: str, manufacturer: str) -> bool:
    """Return ``True`` for Amazon Fire TV hardware (model ``AFT*`` made by Amazon)."""

    return (
        str(model or "").startswith(_FIRE_TV_MODEL_PREFIX)
        and str(manufacturer or "").strip().lower() == _FIRE_TV_MANUFACTURER
    )


def supports_display_mode_change(sdk_int: int, model: str = "", manufacturer: str = "") -> bool:
    """
    Decide whether the OS level exposes display-mode switching.

    Parameters:
        sdk_int (int): Android API level.
        model (str): Device model string.
        manufacturer (str): Device manufacturer string.

    Returns:
        bool: ``False`` below API 21; API 21/22 only through the Fire TV extension;
        ``True`` otherwise.
    """

    supported = True
    if sdk_int < LOLLIPOP:
        supported = False
    elif sdk_int in (LOLLIPOP, LOLLIPOP_MR1):
        supported = is_amazon_fire_tv_device(model, manufacturer)

    if not supported:
        logger.info("Device doesn't support display mode change (sdk=%d, model=%s)", sdk_int, model)
    return supported


@dataclass(frozen=True)
class DevicePlatform:
    """Static device description resolved once at startup."""

    sdk_int: int
    model: str = ""
    manufacturer: str = ""

    @property
    def is_fire_tv(self) -> bool:
        return is_amazon_fire_tv_device(self.model, self.manufacturer)

    def supports_mode_switching(self) -> bool:
        return supports_display_mode_change(self.sdk_int, self.model, self.manufacturer)


def resolve_platform(cfg: "PlatformConfig") -> DevicePlatform:
    """Build the capability object injected into the controller."""

    return DevicePlatform(sdk_int=int(cfg.sdk_int), model=cfg.model, manufacturer=cfg.manufacturer)
