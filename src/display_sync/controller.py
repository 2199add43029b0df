"""Auto frame rate controller: picks, applies, verifies and restores display modes."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple

from src.display_sync.filters import (
    ResolutionPolicy,
    filter_by_resolution_band,
    filter_matching_resolution,
    resolve_resolution_band,
)
from src.display_sync.matcher import find_closest_mode
from src.display_sync.modes import DisplayMode, format_mode
from src.display_sync.prefs import DisplayPrefsStore, InMemoryPrefs
from src.display_sync.providers import (
    DEFAULT_MODE_ID,
    DisplayModeProvider,
    PlatformCapability,
    SyncListener,
)
from src.display_sync.state import StateSlot, StateStore

__all__ = [
    "FALLBACK_HIGH_RATE",
    "FALLBACK_LOW_RATE",
    "FALLBACK_RATE_THRESHOLD",
    "FALLBACK_WIDTH",
    "MIN_TARGET_WIDTH",
    "ModeSwitch",
    "SyncController",
    "SyncOutcome",
    "SyncPhase",
    "SyncPlan",
]

logger = logging.getLogger(__name__)

MIN_TARGET_WIDTH = 10
FALLBACK_WIDTH = 1080
FALLBACK_RATE_THRESHOLD = 55.0
FALLBACK_LOW_RATE = 50.0
FALLBACK_HIGH_RATE = 60.0


class SyncPhase(str, Enum):
    IDLE = "idle"
    REQUESTED = "requested"


class SyncOutcome(str, Enum):
    """How an issued mode switch ended."""

    CONFIRMED = "confirmed"
    MISMATCHED = "mismatched"
    FAILED = "failed"
    SUPERSEDED = "superseded"


def _new_outcome_future() -> "Future[SyncOutcome]":
    return Future()


@dataclass
class ModeSwitch:
    """
    Handshake record for one issued mode change.

    ``future`` resolves with a :class:`SyncOutcome` when the display confirms the
    change, with ``SUPERSEDED`` when a forced request replaces it first, or with
    ``FAILED`` when the provider rejects the request outright.
    """

    mode: DisplayMode
    future: "Future[SyncOutcome]" = field(default_factory=_new_outcome_future)

    @property
    def done(self) -> bool:
        return self.future.done()

    def outcome(self, timeout: Optional[float] = None) -> SyncOutcome:
        return self.future.result(timeout=timeout)

    def resolve(self, outcome: SyncOutcome) -> bool:
        if self.future.done():
            return False
        self.future.set_result(outcome)
        return True


@dataclass(frozen=True)
class SyncPlan:
    """
    Mode selection for one video, computed before anything is applied.

    Attributes:
        target_width (int): Video width the band was chosen for.
        target_frame_rate (float): Video frame rate in fps.
        band (Tuple[int, int]): Height band, or ``(UNSET_BOUND, UNSET_BOUND)``.
        resolution_switch (bool): ``True`` when the band produced candidates.
        candidates (Tuple[DisplayMode, ...]): Modes handed to the matcher.
        current (Optional[DisplayMode]): Mode active when the plan was made.
        closest (Optional[DisplayMode]): Matcher result, ``None`` when nothing fits.
    """

    target_width: int
    target_frame_rate: float
    band: Tuple[int, int]
    resolution_switch: bool
    candidates: Tuple[DisplayMode, ...]
    current: Optional[DisplayMode]
    closest: Optional[DisplayMode]

    @property
    def needs_switch(self) -> bool:
        return self.closest is not None and self.closest != self.current


class SyncController:
    """
    Match display modes to video content for one display surface.

    The controller owns the original/current snapshots and the in-flight switch.
    All state transitions run under one reentrant lock, so the confirmation
    callback may arrive on another thread and listeners may issue new requests
    from inside their callback.
    """

    def __init__(
        self,
        provider: DisplayModeProvider,
        platform: PlatformCapability,
        *,
        prefs: Optional[DisplayPrefsStore] = None,
        listener: Optional[SyncListener] = None,
        policy: Optional[ResolutionPolicy] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._provider = provider
        self._platform = platform
        self._prefs: DisplayPrefsStore = prefs if prefs is not None else InMemoryPrefs()
        self._listener = listener
        self._policy = policy or ResolutionPolicy()
        self._state = StateStore()
        self._switch: Optional[ModeSwitch] = None
        self._in_progress = False
        self._cached_mode_count: Optional[int] = None
        self._last_outcome: Optional[SyncOutcome] = None
        provider.register_mode_change_listener(self.on_mode_changed)

    # -- wiring -----------------------------------------------------------

    @property
    def provider(self) -> DisplayModeProvider:
        return self._provider

    @property
    def prefs(self) -> DisplayPrefsStore:
        return self._prefs

    def rebind(self, provider: DisplayModeProvider) -> None:
        """
        Swap in a new display provider.

        The confirmation for a switch issued through the old provider can no
        longer arrive, so that switch resolves as superseded.
        """

        with self._lock:
            self._provider.unregister_mode_change_listener(self.on_mode_changed)
            self._provider = provider
            provider.register_mode_change_listener(self.on_mode_changed)
            self._cached_mode_count = None
            if self._in_progress and self._switch is not None:
                self._switch.resolve(SyncOutcome.SUPERSEDED)
            self._in_progress = False

    def set_listener(self, listener: Optional[SyncListener]) -> None:
        with self._lock:
            self._listener = listener

    def set_resolution_policy(self, policy: ResolutionPolicy) -> None:
        with self._lock:
            self._policy = policy

    def set_resolution_switch_enabled(self, enabled: bool) -> None:
        self.set_resolution_policy(ResolutionPolicy.from_switch(enabled))

    @property
    def resolution_policy(self) -> ResolutionPolicy:
        return self._policy

    def is_resolution_switch_enabled(self) -> bool:
        return self._policy.enabled

    # -- state ------------------------------------------------------------

    @property
    def state(self) -> StateStore:
        return self._state

    @property
    def original_mode(self) -> Optional[DisplayMode]:
        return self._state.original

    @property
    def current_mode(self) -> Optional[DisplayMode]:
        return self._state.current

    @property
    def pending_mode(self) -> Optional[DisplayMode]:
        """Most recently requested mode; kept after its confirmation arrives."""

        switch = self._switch
        return switch.mode if switch is not None else None

    @property
    def last_switch(self) -> Optional[ModeSwitch]:
        return self._switch

    @property
    def last_outcome(self) -> Optional[SyncOutcome]:
        return self._last_outcome

    @property
    def sync_in_progress(self) -> bool:
        return self._in_progress

    @property
    def phase(self) -> SyncPhase:
        return SyncPhase.REQUESTED if self._in_progress else SyncPhase.IDLE

    @property
    def cached_mode_count(self) -> Optional[int]:
        return self._cached_mode_count

    def invalidate_mode_count_cache(self) -> None:
        with self._lock:
            self._cached_mode_count = None

    def supports_multi_mode_switching(self) -> bool:
        """``True`` when switching is supported and the display offers several modes."""

        if not self._platform.supports_mode_switching():
            return False
        with self._lock:
            if self._cached_mode_count is None:
                modes = self._provider.get_supported_modes()
                self._cached_mode_count = len(modes) if modes else 0
            return self._cached_mode_count > 1

    # -- sync -------------------------------------------------------------

    def plan_sync(self, target_width: int, target_frame_rate: float) -> SyncPlan:
        """Work out which mode a sync would pick without touching the display."""

        with self._lock:
            modes = list(self._provider.get_supported_modes() or ())
            logger.debug("Modes supported by device: %s", ", ".join(format_mode(m) for m in modes))

            band = resolve_resolution_band(target_width, self._policy)
            candidates: List[DisplayMode] = filter_by_resolution_band(modes, *band)
            need_resolution_switch = bool(candidates)
            logger.info("Need resolution switch: %s", need_resolution_switch)

            current = self._provider.get_current_mode()
            if not need_resolution_switch:
                candidates = filter_matching_resolution(modes, current)

            return SyncPlan(
                target_width=target_width,
                target_frame_rate=target_frame_rate,
                band=band,
                resolution_switch=need_resolution_switch,
                candidates=tuple(candidates),
                current=current,
                closest=find_closest_mode(candidates, target_frame_rate),
            )

    def request_sync(
        self,
        target_width: int,
        target_frame_rate: float,
        *,
        force: bool = False,
        surface: Any = None,
    ) -> bool:
        """
        Switch the display to the mode that best fits the video.

        Parameters:
            target_width (int): Video width in pixels; drives the UHD/FHD band choice.
            target_frame_rate (float): Video frame rate in fps.
            force (bool): Re-issue the request even if the display already runs the match,
                and supersede a switch that is still in flight.
            surface (Any): Opaque window handle forwarded to the provider.

        Returns:
            bool: ``True`` when a mode change was issued.
        """

        if target_width < MIN_TARGET_WIDTH or not self._platform.supports_mode_switching():
            return False

        with self._lock:
            self._settle_if_applied()
            if self._in_progress and not force:
                logger.info(
                    "Mode switch to %s still in flight; ignoring request for %.3f fps",
                    format_mode(self.pending_mode),
                    target_frame_rate,
                )
                return False

            plan = self.plan_sync(target_width, target_frame_rate)
            closest = plan.closest
            current = plan.current
            if closest is None:
                logger.info("Could not find closer refresh rate for %.3f fps", target_frame_rate)
                return False

            logger.info("Found closer mode %s for %.3f fps", format_mode(closest), target_frame_rate)
            logger.info("Current mode: %s", format_mode(current))

            if not force and closest == current:
                logger.info("Do not need to change mode.")
                return False

            previous = self._switch
            previous_in_progress = self._in_progress
            switch = ModeSwitch(mode=closest)
            self._switch = switch
            self._in_progress = True
            if self._listener is not None:
                self._listener.on_sync_started(closest)
            try:
                self._provider.set_preferred_mode(surface, closest.mode_id, True)
            except Exception as exc:
                logger.warning("Mode change request for %s failed: %s", format_mode(closest), exc)
                if self._switch is switch:
                    self._switch = previous
                    self._in_progress = previous_in_progress
                switch.resolve(SyncOutcome.FAILED)
                return False

            if previous_in_progress and previous is not None and previous.resolve(SyncOutcome.SUPERSEDED):
                logger.info("Superseding in-flight switch to %s", format_mode(previous.mode))
            return True

    def _settle_if_applied(self) -> None:
        # A display already running the requested mode sends no change event.
        switch = self._switch
        if not self._in_progress or switch is None:
            return
        if self._provider.get_current_mode() != switch.mode:
            return
        logger.info("Display already runs %s; treating switch as confirmed", format_mode(switch.mode))
        self._in_progress = False
        self._last_outcome = SyncOutcome.CONFIRMED
        switch.resolve(SyncOutcome.CONFIRMED)

    def on_mode_changed(self, reported_mode: Optional[DisplayMode]) -> SyncOutcome:
        """Confirmation callback registered with the provider."""

        with self._lock:
            self._in_progress = False
            switch = self._switch
            active = self._provider.get_current_mode()
            if active is None:
                active = reported_mode

            if active is None:
                logger.warning("Mode change failure. Internal error occurred.")
                outcome = SyncOutcome.FAILED
            else:
                expected_id = switch.mode.mode_id if switch is not None else -1
                if active.mode_id != expected_id:
                    logger.warning(
                        "Mode change failure. Current mode id is %d. Expected mode id is %d (expected %s, got %s)",
                        active.mode_id,
                        expected_id,
                        format_mode(switch.mode if switch is not None else None),
                        format_mode(active),
                    )
                    outcome = SyncOutcome.MISMATCHED
                else:
                    logger.info("Mode changed successfully to %s", format_mode(active))
                    outcome = SyncOutcome.CONFIRMED
                self._prefs.set_current_display_mode(format_mode(active))

            self._last_outcome = outcome
            if switch is not None:
                switch.resolve(outcome)
            return outcome

    def reset_mode(self, surface: Any = None) -> bool:
        """Ask the display to drop any override and return to its default mode."""

        if not self._platform.supports_mode_switching():
            return False
        self._provider.set_preferred_mode(surface, DEFAULT_MODE_ID, True)
        return True

    def apply_fallback_mode(self, surface: Any = None) -> bool:
        """
        Move the baseline mode to 50/60 Hz for displays that mishandle switches.

        A saved original above 55 Hz falls back to 50 Hz at the same width, anything
        else to 60 Hz; without a saved original the width defaults to 1080 at 50 Hz.
        The issued mode becomes the new original snapshot.
        """

        with self._lock:
            original = self._state.original
            if original is None:
                width, rate = FALLBACK_WIDTH, FALLBACK_LOW_RATE
            elif original.refresh_rate > FALLBACK_RATE_THRESHOLD:
                width, rate = original.physical_width, FALLBACK_LOW_RATE
            else:
                width, rate = original.physical_width, FALLBACK_HIGH_RATE

            issued = self.request_sync(width, rate, surface=surface)
            if issued and self._switch is not None:
                new_original = self._switch.mode
                self._state.save(StateSlot.ORIGINAL, new_original)
                self._prefs.set_default_display_mode(format_mode(new_original))
        return issued

    # -- snapshots --------------------------------------------------------

    def save_original_state(self) -> Optional[DisplayMode]:
        return self._save_state(StateSlot.ORIGINAL)

    def save_current_state(self) -> Optional[DisplayMode]:
        return self._save_state(StateSlot.CURRENT)

    def restore_original_state(self, surface: Any = None, *, force: bool = False) -> bool:
        return self._restore_state(StateSlot.ORIGINAL, surface, force)

    def restore_current_state(self, surface: Any = None, *, force: bool = False) -> bool:
        return self._restore_state(StateSlot.CURRENT, surface, force)

    def _save_state(self, slot: StateSlot) -> Optional[DisplayMode]:
        if not self._platform.supports_mode_switching():
            return None
        mode = self._provider.get_current_mode()
        logger.debug("Saving %s mode: %s", slot.value, format_mode(mode))
        if mode is None:
            return None
        with self._lock:
            self._state.save(slot, mode)
            if slot is StateSlot.ORIGINAL:
                self._prefs.set_default_display_mode(format_mode(mode))
        return mode

    def _restore_state(self, slot: StateSlot, surface: Any, force: bool) -> bool:
        if not self._platform.supports_mode_switching():
            return False
        saved = self._state.get(slot)
        if saved is None:
            logger.debug("Can't restore %s state. Mode is not saved.", slot.value)
            return False

        current = self._provider.get_current_mode()
        if not force and saved == current:
            logger.debug("Do not need to restore mode. Current mode is the same as saved.")
            return False

        logger.debug("Restoring %s mode: %s", slot.value, format_mode(saved))
        self._provider.set_preferred_mode(surface, saved.mode_id, True)
        return True
