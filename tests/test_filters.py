from __future__ import annotations

import logging

import pytest

from src.display_sync.filters import (
    FHD_BAND,
    UHD_BAND,
    UNSET_BOUND,
    ResolutionPolicy,
    filter_by_resolution_band,
    filter_matching_resolution,
    resolve_resolution_band,
)
from tests.helpers.display_env import make_mode


def test_band_filter_keeps_uhd_modes_in_order() -> None:
    fhd60 = make_mode(1, 1920, 1080, 60.0)
    uhd24 = make_mode(2, 3840, 2160, 24.0)
    uhd30 = make_mode(3, 3840, 2160, 30.0)
    assert filter_by_resolution_band([fhd60, uhd24, uhd30], 2160, 5000) == [uhd24, uhd30]


@pytest.mark.parametrize(("low", "high"), [(UNSET_BOUND, 5000), (2160, UNSET_BOUND), (UNSET_BOUND, UNSET_BOUND)])
def test_band_filter_unset_bound_returns_empty(low: int, high: int) -> None:
    assert filter_by_resolution_band([make_mode(1, 3840, 2160, 60.0)], low, high) == []


def test_band_filter_skips_missing_entries_and_logs(caplog: pytest.LogCaptureFixture) -> None:
    modes = [None, make_mode(1, 1920, 1080, 60.0)]
    with caplog.at_level(logging.INFO):
        assert filter_by_resolution_band(modes, 1080, 1080) == [modes[1]]
        assert filter_by_resolution_band(modes, 2160, 5000) == []
    assert any("Found 1 mode candidate" in message for message in caplog.messages)
    assert any("No mode candidates" in message for message in caplog.messages)


def test_matching_resolution_keeps_reference_size() -> None:
    reference = make_mode(1, 1920, 1080, 60.0)
    fhd24 = make_mode(2, 1920, 1080, 24.0)
    uhd = make_mode(3, 3840, 2160, 60.0)
    wide = make_mode(4, 1920, 800, 60.0)
    assert filter_matching_resolution([reference, uhd, fhd24, wide, None], reference) == [reference, fhd24]


def test_matching_resolution_without_reference_is_empty() -> None:
    assert filter_matching_resolution([make_mode(1, 1920, 1080, 60.0)], None) == []


@pytest.mark.parametrize(
    ("width", "policy", "expected"),
    [
        (3840, ResolutionPolicy(prefer_uhd=True), UHD_BAND),
        (1920, ResolutionPolicy(prefer_uhd=True), (UNSET_BOUND, UNSET_BOUND)),
        (1920, ResolutionPolicy(prefer_fhd=True), FHD_BAND),
        (3840, ResolutionPolicy(prefer_fhd=True), (UNSET_BOUND, UNSET_BOUND)),
        (3840, ResolutionPolicy.from_switch(True), UHD_BAND),
        (1280, ResolutionPolicy.from_switch(True), FHD_BAND),
        (3840, ResolutionPolicy(), (UNSET_BOUND, UNSET_BOUND)),
    ],
)
def test_resolve_resolution_band(width: int, policy: ResolutionPolicy, expected: tuple) -> None:
    assert resolve_resolution_band(width, policy) == expected


def test_policy_enabled_flag() -> None:
    assert not ResolutionPolicy().enabled
    assert ResolutionPolicy(prefer_fhd=True).enabled
    assert ResolutionPolicy.from_switch(False) == ResolutionPolicy()
