"""Runtime data structures and CLI helpers shared between Click wiring and the commands."""

from __future__ import annotations

from typing import List, Optional, TypedDict

from src.display_sync.modes import DisplayMode


class CLIAppError(RuntimeError):
    """Raised when the CLI cannot complete its work."""

    def __init__(self, message: str, *, code: int = 1, rich_message: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code
        self.rich_message = rich_message or message


class ModeJSON(TypedDict):
    id: int
    width: int
    height: int
    refresh_rate: float


class TargetJSON(TypedDict):
    width: int
    fps: float
    canonical_rate: int
    family: List[int]


class JsonTail(TypedDict, total=False):
    command: str
    platform_supported: bool
    multi_mode: bool
    fire_tv: bool
    target: TargetJSON
    band: List[int]
    modes: List[ModeJSON]
    current: Optional[ModeJSON]
    original: Optional[ModeJSON]
    matched: Optional[ModeJSON]
    issued: bool
    outcome: Optional[str]
    restored: bool
    warnings: List[str]


def mode_to_json(mode: Optional[DisplayMode]) -> Optional[ModeJSON]:
    if mode is None:
        return None
    return {
        "id": mode.mode_id,
        "width": mode.physical_width,
        "height": mode.physical_height,
        "refresh_rate": mode.refresh_rate,
    }


__all__ = [
    "CLIAppError",
    "JsonTail",
    "ModeJSON",
    "TargetJSON",
    "mode_to_json",
]
