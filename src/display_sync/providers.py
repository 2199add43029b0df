"""Collaborator interfaces for display-mode enumeration and switching."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol, Sequence

from src.display_sync.modes import DisplayMode, format_mode

__all__ = [
    "DEFAULT_MODE_ID",
    "DisplayModeProvider",
    "ModeChangeCallback",
    "ModeRequest",
    "PlatformCapability",
    "SimulatedDisplayProvider",
    "SyncListener",
]

logger = logging.getLogger(__name__)

DEFAULT_MODE_ID = 0
"""Provider-defined mode id that relinquishes any override."""

ModeChangeCallback = Callable[[Optional[DisplayMode]], None]


class DisplayModeProvider(Protocol):
    """Enumerates and applies display modes for one display."""

    def get_supported_modes(self) -> Sequence[Optional[DisplayMode]]: ...

    def get_current_mode(self) -> Optional[DisplayMode]: ...

    def set_preferred_mode(self, surface: Any, mode_id: int, retain_on_disconnect: bool) -> None: ...

    def register_mode_change_listener(self, callback: ModeChangeCallback) -> None: ...

    def unregister_mode_change_listener(self, callback: ModeChangeCallback) -> None: ...


class PlatformCapability(Protocol):
    def supports_mode_switching(self) -> bool: ...


class SyncListener(Protocol):
    def on_sync_started(self, new_mode: DisplayMode) -> None: ...


@dataclass(frozen=True)
class ModeRequest:
    """A ``set_preferred_mode`` call recorded by :class:`SimulatedDisplayProvider`."""

    surface: Any
    mode_id: int
    retain_on_disconnect: bool


class SimulatedDisplayProvider:
    """
    In-memory display used for dry runs and tests.

    Requests either confirm immediately (``auto_confirm``) or wait in a queue
    until :meth:`deliver_pending` runs, which mimics the asynchronous callback
    of a real display subsystem.
    """

    def __init__(
        self,
        modes: Sequence[DisplayMode],
        *,
        active_mode_id: Optional[int] = None,
        auto_confirm: bool = True,
    ) -> None:
        self._modes: List[DisplayMode] = list(modes)
        if active_mode_id is None and self._modes:
            active_mode_id = self._modes[0].mode_id
        self._native_mode_id = active_mode_id
        self._active_mode_id = active_mode_id
        self._callbacks: List[ModeChangeCallback] = []
        self._queued: List[ModeRequest] = []
        self.auto_confirm = auto_confirm
        self.fail_next = False
        self.requests: List[ModeRequest] = []

    def _lookup(self, mode_id: Optional[int]) -> Optional[DisplayMode]:
        if mode_id is None:
            return None
        for mode in self._modes:
            if mode.mode_id == mode_id:
                return mode
        return None

    def get_supported_modes(self) -> Sequence[Optional[DisplayMode]]:
        return list(self._modes)

    def get_current_mode(self) -> Optional[DisplayMode]:
        return self._lookup(self._active_mode_id)

    def set_preferred_mode(self, surface: Any, mode_id: int, retain_on_disconnect: bool) -> None:
        request = ModeRequest(surface=surface, mode_id=mode_id, retain_on_disconnect=retain_on_disconnect)
        self.requests.append(request)
        logger.debug("Preferred mode requested: id=%d", mode_id)
        if self.auto_confirm:
            self._apply(request)
        else:
            self._queued.append(request)

    def register_mode_change_listener(self, callback: ModeChangeCallback) -> None:
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_mode_change_listener(self, callback: ModeChangeCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    @property
    def pending_count(self) -> int:
        return len(self._queued)

    def deliver_pending(self) -> int:
        """Apply queued requests in order and fire their confirmations."""

        delivered = 0
        while self._queued:
            self._apply(self._queued.pop(0))
            delivered += 1
        return delivered

    def _apply(self, request: ModeRequest) -> None:
        if self.fail_next:
            self.fail_next = False
            self._active_mode_id = None
            reported: Optional[DisplayMode] = None
        else:
            target_id = self._native_mode_id if request.mode_id == DEFAULT_MODE_ID else request.mode_id
            reported = self._lookup(target_id)
            if reported is not None:
                self._active_mode_id = reported.mode_id
        logger.debug("Display reports active mode %s", format_mode(self.get_current_mode()))
        for callback in list(self._callbacks):
            callback(reported)
