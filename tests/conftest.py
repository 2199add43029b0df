from __future__ import annotations

from typing import List

import pytest
from click.testing import CliRunner

from src.display_sync.controller import SyncController
from src.display_sync.modes import DisplayMode
from src.display_sync.prefs import InMemoryPrefs
from tests.helpers.display_env import (
    RecordingListener,
    RecordingProvider,
    StubPlatform,
    make_modes,
)


@pytest.fixture
def tv_modes() -> List[DisplayMode]:
    """A 1080p/2160p television with film, PAL and NTSC rates."""

    return make_modes(
        [
            (1, 1920, 1080, 60.0),
            (2, 1920, 1080, 50.0),
            (3, 1920, 1080, 23.976),
            (4, 1920, 1080, 59.94),
            (5, 3840, 2160, 60.0),
            (6, 3840, 2160, 23.976),
            (7, 3840, 2160, 24.0),
        ]
    )


@pytest.fixture
def provider(tv_modes: List[DisplayMode]) -> RecordingProvider:
    return RecordingProvider(tv_modes, current=tv_modes[0])


@pytest.fixture
def platform() -> StubPlatform:
    return StubPlatform()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def prefs() -> InMemoryPrefs:
    return InMemoryPrefs()


@pytest.fixture
def controller(
    provider: RecordingProvider,
    platform: StubPlatform,
    listener: RecordingListener,
    prefs: InMemoryPrefs,
) -> SyncController:
    return SyncController(provider, platform, prefs=prefs, listener=listener)


@pytest.fixture
def runner() -> CliRunner:
    """Provide a Click runner configured for CLI smoke tests."""

    return CliRunner()
