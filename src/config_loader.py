"""Configuration loader that parses and validates user-provided TOML."""

from __future__ import annotations

import tomllib
from dataclasses import fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, List

from .datatypes import (
    AppConfig,
    CLIConfig,
    DisplayConfig,
    PlatformConfig,
    PrefsConfig,
    SyncConfig,
)
from .display_sync.modes import DisplayMode, mode_from_mapping


class ConfigError(ValueError):
    """Raised when the configuration file is malformed or fails validation."""


def _coerce_bool(value: Any, dotted_key: str) -> bool:
    """Return a bool, coercing simple 0/1 representations when necessary."""

    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"0", "1"}:
            return normalized == "1"
        if normalized in {"true", "false"}:
            return normalized == "true"
    raise ConfigError(f"{dotted_key} must be a boolean (use true/false).")


def _sanitize_section(raw: dict[str, Any], name: str, cls):
    """
    Coerce a raw TOML table into an instance of ``cls`` with cleaned booleans.

    Parameters:
        raw (dict[str, Any]): Raw TOML section data.
        name (str): Section name used when reporting validation errors.
        cls: Dataclass type used to construct the section object.

    Returns:
        Any: Instantiated dataclass populated with values from ``raw``.

    Raises:
        ConfigError: If the section is not a table or contains invalid keys or values.
    """
    if not isinstance(raw, dict):
        raise ConfigError(f"[{name}] must be a table")
    cleaned: Dict[str, Any] = {}
    cls_fields = {field.name: field for field in fields(cls)}
    bool_fields = {name for name, field in cls_fields.items() if field.type is bool}
    nested_fields = {
        name: field.type
        for name, field in cls_fields.items()
        if is_dataclass(field.type)
    }
    for key, value in raw.items():
        if key in bool_fields:
            cleaned[key] = _coerce_bool(value, f"{name}.{key}")
        elif key in nested_fields:
            if not isinstance(value, dict):
                raise ConfigError(f"[{name}.{key}] must be a table")
            cleaned[key] = _sanitize_section(value, f"{name}.{key}", nested_fields[key])
        else:
            cleaned[key] = value
    try:
        return cls(**cleaned)
    except TypeError as exc:
        raise ConfigError(f"Invalid keys in [{name}]: {exc}") from exc


def resolve_display_modes(display: DisplayConfig) -> List[DisplayMode]:
    """
    Parse the ``[[display.modes]]`` tables into :class:`DisplayMode` values.

    Raises:
        ConfigError: If a table is malformed or two modes share an id.
    """

    if not isinstance(display.modes, list):
        raise ConfigError("display.modes must be an array of tables")
    modes: List[DisplayMode] = []
    seen_ids: set[int] = set()
    for index, table in enumerate(display.modes):
        if not isinstance(table, dict):
            raise ConfigError(f"display.modes[{index}] must be a table")
        try:
            mode = mode_from_mapping(table)
        except ValueError as exc:
            raise ConfigError(f"display.modes[{index}]: {exc}") from exc
        if mode.mode_id in seen_ids:
            raise ConfigError(f"display.modes[{index}] reuses mode id {mode.mode_id}")
        seen_ids.add(mode.mode_id)
        modes.append(mode)
    return modes


def _validate_platform(platform: PlatformConfig) -> None:
    if isinstance(platform.sdk_int, bool) or not isinstance(platform.sdk_int, int):
        raise ConfigError("platform.sdk_int must be an integer")
    if platform.sdk_int < 1:
        raise ConfigError("platform.sdk_int must be >= 1")
    if not isinstance(platform.model, str):
        raise ConfigError("platform.model must be a string")
    if not isinstance(platform.manufacturer, str):
        raise ConfigError("platform.manufacturer must be a string")
    platform.model = platform.model.strip()
    platform.manufacturer = platform.manufacturer.strip()


def _validate_display(display: DisplayConfig) -> None:
    modes = resolve_display_modes(display)
    active = display.active_mode_id
    if active is None:
        return
    if isinstance(active, bool) or not isinstance(active, int):
        raise ConfigError("display.active_mode_id must be an integer")
    if modes and active not in {mode.mode_id for mode in modes}:
        raise ConfigError(f"display.active_mode_id {active} does not match any display.modes id")


def _validate_prefs(prefs: PrefsConfig) -> None:
    if not isinstance(prefs.path, str):
        raise ConfigError("prefs.path must be a string")
    path_text = prefs.path.strip()
    if path_text and ".." in Path(path_text).parts:
        raise ConfigError("prefs.path may not contain '..' segments")
    prefs.path = path_text


def load_config(path: str) -> AppConfig:
    """
    Load and validate an application configuration from a TOML file.

    Reads the file at `path`, parses it as UTF-8 TOML (BOM is accepted), coerces and validates all sections and returns a fully populated AppConfig.

    Returns:
        AppConfig: The validated application configuration.

    Raises:
        ConfigError: If the file is not UTF-8, TOML parsing fails, or any validation rule is violated.
    """

    with open(path, "rb") as handle:
        raw_bytes = handle.read()
    if raw_bytes.startswith(b"\xef\xbb\xbf"):
        raw_bytes = raw_bytes[3:]
    try:
        raw = tomllib.loads(raw_bytes.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise ConfigError("Configuration file must be UTF-8 encoded") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse TOML: {exc}") from exc

    app = AppConfig(
        platform=_sanitize_section(raw.get("platform", {}), "platform", PlatformConfig),
        sync=_sanitize_section(raw.get("sync", {}), "sync", SyncConfig),
        display=_sanitize_section(raw.get("display", {}), "display", DisplayConfig),
        prefs=_sanitize_section(raw.get("prefs", {}), "prefs", PrefsConfig),
        cli=_sanitize_section(raw.get("cli", {}), "cli", CLIConfig),
    )

    _validate_platform(app.platform)
    _validate_display(app.display)
    _validate_prefs(app.prefs)

    return app
