"""Persistence sink for human-readable display-mode descriptions."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

__all__ = [
    "DisplayPrefs",
    "DisplayPrefsStore",
    "InMemoryPrefs",
]

logger = logging.getLogger(__name__)

_PREFS_SCHEMA_VERSION = 1
_DEFAULT_KEY = "default_display_mode"
_CURRENT_KEY = "current_display_mode"


class DisplayPrefsStore(Protocol):
    def set_default_display_mode(self, description: str) -> None: ...

    def set_current_display_mode(self, description: str) -> None: ...

    @property
    def default_display_mode(self) -> Optional[str]: ...

    @property
    def current_display_mode(self) -> Optional[str]: ...


class InMemoryPrefs:
    """Prefs store that never touches disk."""

    def __init__(self) -> None:
        self._values: Dict[str, str] = {}

    def set_default_display_mode(self, description: str) -> None:
        self._values[_DEFAULT_KEY] = description

    def set_current_display_mode(self, description: str) -> None:
        self._values[_CURRENT_KEY] = description

    @property
    def default_display_mode(self) -> Optional[str]:
        return self._values.get(_DEFAULT_KEY)

    @property
    def current_display_mode(self) -> Optional[str]:
        return self._values.get(_CURRENT_KEY)


class DisplayPrefs:
    """
    JSON-file prefs store.

    Missing, unreadable or malformed files load as empty; writes only happen when
    the serialized payload changes.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._values: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            logger.warning("Unable to read display prefs %s: %s", self.path, exc)
            return {}
        try:
            data: Any = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed display prefs at %s", self.path)
            return {}
        if not isinstance(data, dict) or data.get("schema_version") != _PREFS_SCHEMA_VERSION:
            return {}
        values: Dict[str, str] = {}
        for key in (_DEFAULT_KEY, _CURRENT_KEY):
            value = data.get(key)
            if isinstance(value, str):
                values[key] = value
        return values

    def _persist(self) -> bool:
        payload = {"schema_version": _PREFS_SCHEMA_VERSION, **self._values}
        serialized = json.dumps(payload, sort_keys=True, ensure_ascii=False)
        try:
            existing: Optional[str] = self.path.read_text(encoding="utf-8")
        except OSError:
            existing = None
        if existing == serialized:
            return False
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(serialized, encoding="utf-8")
        return True

    def set_default_display_mode(self, description: str) -> None:
        self._values[_DEFAULT_KEY] = description
        self._persist()

    def set_current_display_mode(self, description: str) -> None:
        self._values[_CURRENT_KEY] = description
        self._persist()

    @property
    def default_display_mode(self) -> Optional[str]:
        return self._values.get(_DEFAULT_KEY)

    @property
    def current_display_mode(self) -> Optional[str]:
        return self._values.get(_CURRENT_KEY)
