from __future__ import annotations

from src.display_sync.state import StateSlot, StateStore
from tests.helpers.display_env import make_mode


def test_slots_start_empty() -> None:
    store = StateStore()
    assert store.original is None
    assert store.current is None
    assert store.get(StateSlot.CURRENT) is None


def test_slots_are_independent() -> None:
    store = StateStore()
    fhd = make_mode(1, 1920, 1080, 60.0)
    uhd = make_mode(2, 3840, 2160, 24.0)

    store.save(StateSlot.ORIGINAL, fhd)
    store.save(StateSlot.CURRENT, uhd)
    assert store.original == fhd
    assert store.current == uhd

    store.clear(StateSlot.ORIGINAL)
    assert store.original is None
    assert store.get(StateSlot.CURRENT) == uhd


def test_slot_accepts_string_value() -> None:
    store = StateStore()
    mode = make_mode(3, 1280, 720, 50.0)
    store.save("current", mode)  # type: ignore[arg-type]
    assert store.current == mode
