from __future__ import annotations

import logging

import pytest

from src.datatypes import PlatformConfig
from src.display_sync.device import (
    DevicePlatform,
    is_amazon_fire_tv_device,
    resolve_platform,
    supports_display_mode_change,
)


@pytest.mark.parametrize(
    ("model", "manufacturer", "expected"),
    [
        ("AFTMM", "Amazon", True),
        ("AFTKA", "AMAZON", True),
        ("AFTMM", "Xiaomi", False),
        ("MiBOX4", "Amazon", False),
        ("", "", False),
    ],
)
def test_fire_tv_detection(model: str, manufacturer: str, expected: bool) -> None:
    assert is_amazon_fire_tv_device(model, manufacturer) is expected


@pytest.mark.parametrize(
    ("sdk_int", "model", "manufacturer", "expected"),
    [
        (19, "AFTMM", "Amazon", False),
        (21, "MiBOX4", "Xiaomi", False),
        (22, "AFTMM", "Amazon", True),
        (21, "AFTS", "Amazon", True),
        (23, "MiBOX4", "Xiaomi", True),
        (30, "", "", True),
    ],
)
def test_supports_display_mode_change(sdk_int: int, model: str, manufacturer: str, expected: bool) -> None:
    assert supports_display_mode_change(sdk_int, model, manufacturer) is expected


def test_unsupported_device_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO):
        assert not supports_display_mode_change(19, "Nexus")
    assert any("doesn't support display mode change" in message for message in caplog.messages)


def test_resolve_platform_from_config() -> None:
    platform = resolve_platform(PlatformConfig(sdk_int=22, model="AFTMM", manufacturer="Amazon"))
    assert platform == DevicePlatform(sdk_int=22, model="AFTMM", manufacturer="Amazon")
    assert platform.is_fire_tv
    assert platform.supports_mode_switching()
