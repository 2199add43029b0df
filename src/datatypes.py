"""Configuration dataclasses for the display sync tool."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PlatformConfig:
    """Device description used to decide whether mode switching is available."""

    sdk_int: int = 30
    model: str = ""
    manufacturer: str = ""


@dataclass
class SyncConfig:
    """Auto frame rate behaviour."""

    prefer_uhd: bool = False
    prefer_fhd: bool = False
    force: bool = False
    restore_after_sync: bool = False


@dataclass
class DisplayConfig:
    """Simulated display: supported modes and the mode active at startup."""

    modes: List[Dict[str, Any]] = field(default_factory=list)
    active_mode_id: Optional[int] = None
    auto_confirm: bool = True


@dataclass
class PrefsConfig:
    """Where human-readable mode descriptions are persisted (empty keeps them in memory)."""

    path: str = ""


@dataclass
class CLIConfig:
    """CLI presentation controls."""

    emit_json_tail: bool = True


@dataclass
class AppConfig:
    """Aggregated configuration loaded from the user-provided TOML file."""

    platform: PlatformConfig = field(default_factory=PlatformConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    prefs: PrefsConfig = field(default_factory=PrefsConfig)
    cli: CLIConfig = field(default_factory=CLIConfig)
