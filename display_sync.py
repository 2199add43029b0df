"""Public shim exposing the display_sync CLI and library surface."""

from __future__ import annotations

from typing import Callable, cast

import src.display_sync.cli_entry as _cli_entry
from src.config_loader import ConfigError, load_config
from src.display_sync.cli_runtime import CLIAppError
from src.display_sync.controller import ModeSwitch, SyncController, SyncOutcome, SyncPlan
from src.display_sync.device import DevicePlatform, supports_display_mode_change
from src.display_sync.filters import ResolutionPolicy
from src.display_sync.matcher import find_closest_mode
from src.display_sync.modes import DisplayMode, format_mode
from src.display_sync.prefs import DisplayPrefs, InMemoryPrefs
from src.display_sync.providers import SimulatedDisplayProvider
from src.display_sync.rates import RATE_FAMILIES, lookup_family

__all__ = (
    "main",
    "CLIAppError",
    "ConfigError",
    "DevicePlatform",
    "DisplayMode",
    "DisplayPrefs",
    "InMemoryPrefs",
    "ModeSwitch",
    "RATE_FAMILIES",
    "ResolutionPolicy",
    "SimulatedDisplayProvider",
    "SyncController",
    "SyncOutcome",
    "SyncPlan",
    "find_closest_mode",
    "format_mode",
    "load_config",
    "lookup_family",
    "supports_display_mode_change",
)

main = _cli_entry.main


if __name__ == "__main__":
    _entry_point = cast(Callable[[], None], main)
    _entry_point()
