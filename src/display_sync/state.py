"""Saved display-mode snapshots used to restore the screen after playback."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from src.display_sync.modes import DisplayMode

__all__ = ["StateSlot", "StateStore"]


class StateSlot(str, Enum):
    """Named snapshot slots."""

    ORIGINAL = "original"
    CURRENT = "current"


class StateStore:
    """Two independent optional mode snapshots."""

    def __init__(self) -> None:
        self._slots: Dict[StateSlot, Optional[DisplayMode]] = {slot: None for slot in StateSlot}

    def save(self, slot: StateSlot, mode: DisplayMode) -> None:
        self._slots[StateSlot(slot)] = mode

    def get(self, slot: StateSlot) -> Optional[DisplayMode]:
        return self._slots[StateSlot(slot)]

    def clear(self, slot: StateSlot) -> None:
        self._slots[StateSlot(slot)] = None

    @property
    def original(self) -> Optional[DisplayMode]:
        return self._slots[StateSlot.ORIGINAL]

    @property
    def current(self) -> Optional[DisplayMode]:
        return self._slots[StateSlot.CURRENT]
