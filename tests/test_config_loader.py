from __future__ import annotations

from pathlib import Path

import pytest

from src.config_loader import ConfigError, load_config, resolve_display_modes
from src.datatypes import DisplayConfig
from src.display_sync.modes import DisplayMode
from tests.helpers.display_env import TV_MODES_TOML, write_config


def test_load_config_parses_sections(tmp_path: Path) -> None:
    path = write_config(
        tmp_path,
        extra='\n[sync]\nprefer_uhd = 1\nrestore_after_sync = "true"\n\n[prefs]\npath = " state/prefs.json "\n',
    )
    cfg = load_config(str(path))

    assert cfg.platform.sdk_int == 30
    assert cfg.sync.prefer_uhd is True
    assert cfg.sync.prefer_fhd is False
    assert cfg.sync.restore_after_sync is True
    assert cfg.display.active_mode_id == 1
    assert cfg.prefs.path == "state/prefs.json"
    assert cfg.cli.emit_json_tail is True

    modes = resolve_display_modes(cfg.display)
    assert modes[2] == DisplayMode(3, 1920, 1080, 23.976)
    assert len(modes) == 5


def test_load_config_accepts_bom(tmp_path: Path) -> None:
    path = tmp_path / "display_sync.toml"
    path.write_bytes(b"\xef\xbb\xbf" + TV_MODES_TOML.encode("utf-8"))
    assert load_config(str(path)).display.active_mode_id == 1


def test_empty_config_uses_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.toml"
    path.write_text("", encoding="utf-8")
    cfg = load_config(str(path))
    assert cfg.display.modes == []
    assert cfg.display.auto_confirm is True
    assert cfg.platform.sdk_int == 30


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ("[platform\n", "Failed to parse TOML"),
        ("[sync]\nprefer_uhd = 2\n", "sync.prefer_uhd must be a boolean"),
        ("[sync]\nunknown = true\n", "Invalid keys in [sync]"),
        ("sync = 3\n", "[sync] must be a table"),
        ("[platform]\nsdk_int = 0\n", "platform.sdk_int must be >= 1"),
        ("[platform]\nsdk_int = \"30\"\n", "platform.sdk_int must be an integer"),
        ("[prefs]\npath = \"../outside.json\"\n", "may not contain '..'"),
        (
            "[[display.modes]]\nid = 1\nwidth = 1920\nheight = 1080\n",
            "display.modes[0]: mode 'refresh_rate' must be a number",
        ),
        (
            "[[display.modes]]\nid = 1\nwidth = 1920\nheight = 1080\nrefresh_rate = 60.0\n"
            "[[display.modes]]\nid = 1\nwidth = 1280\nheight = 720\nrefresh_rate = 60.0\n",
            "reuses mode id 1",
        ),
        (
            "[display]\nactive_mode_id = 9\n[[display.modes]]\nid = 1\nwidth = 1920\nheight = 1080\nrefresh_rate = 60.0\n",
            "does not match any display.modes id",
        ),
    ],
)
def test_invalid_config_raises(tmp_path: Path, body: str, message: str) -> None:
    path = write_config(tmp_path, body)
    with pytest.raises(ConfigError) as excinfo:
        load_config(str(path))
    assert message in str(excinfo.value)


def test_non_utf8_config_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "display_sync.toml"
    path.write_bytes(b"[platform]\nmodel = \"\xff\"\n")
    with pytest.raises(ConfigError, match="UTF-8"):
        load_config(str(path))


def test_missing_config_raises_file_not_found(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.toml"))


def test_resolve_display_modes_rejects_non_table() -> None:
    with pytest.raises(ConfigError, match=r"display.modes\[0\] must be a table"):
        resolve_display_modes(DisplayConfig(modes=["1080p"]))  # type: ignore[list-item]
