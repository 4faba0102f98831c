"""Persisted player settings (tutorial flag, level, experience)."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Protocol

from config import SETTINGS_FILE

logger = logging.getLogger("fleetline.settings")


class SettingsStore(Protocol):
    def get_bool(self, key: str, default: bool = False) -> bool: ...

    def set_bool(self, key: str, value: bool) -> None: ...

    def get_int(self, key: str, default: int = 0) -> int: ...

    def set_int(self, key: str, value: int) -> None: ...


class MemorySettingsStore:
    def __init__(self, values: Dict[str, bool | int] | None = None) -> None:
        self.values: Dict[str, bool | int] = dict(values or {})

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.values.get(key, default)
        return value if isinstance(value, bool) else default

    def set_bool(self, key: str, value: bool) -> None:
        self.values[key] = bool(value)

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.values.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int):
            return default
        return value

    def set_int(self, key: str, value: int) -> None:
        self.values[key] = int(value)


class JsonSettingsStore(MemorySettingsStore):
    """Settings kept in a small JSON file, rewritten on every change."""

    def __init__(self, path: Path = SETTINGS_FILE) -> None:
        super().__init__(self._read(path))
        self.path = path

    @staticmethod
    def _read(path: Path) -> Dict[str, bool | int]:
        if not path.exists():
            return {}
        try:
            raw = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError):
            logger.warning("Ignoring unreadable settings file %s", path)
            return {}
        if not isinstance(raw, dict):
            return {}
        return {
            str(key): value
            for key, value in raw.items()
            if isinstance(value, (bool, int))
        }

    def _write(self) -> None:
        self.path.write_text(json.dumps(self.values, indent=2, sort_keys=True))

    def set_bool(self, key: str, value: bool) -> None:
        super().set_bool(key, value)
        self._write()

    def set_int(self, key: str, value: int) -> None:
        super().set_int(key, value)
        self._write()
