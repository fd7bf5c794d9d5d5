from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Final, Protocol

from shared.sanitize import safe_json_loads

HISTORY_SLOT: Final[str] = "chat_history"
API_KEY_SLOT: Final[str] = "openrouter_api_key"
MODEL_SLOT: Final[str] = "selected_model"
MAX_TOKENS_SLOT: Final[str] = "max_tokens"
TEMPERATURE_SLOT: Final[str] = "temperature"
SHOW_TIMESTAMPS_SLOT: Final[str] = "show_timestamps"
SOUND_ENABLED_SLOT: Final[str] = "sound_enabled"
THEME_SLOT: Final[str] = "theme"


class LocalStorage(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class InMemoryLocalStorage:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._slots: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._slots.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._slots[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._slots.pop(key, None)


class FileLocalStorage:
    """Слоты строк в одном JSON-файле; запись через временный файл и replace."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._slots = self._load()

    def get_item(self, key: str) -> str | None:
        return self._slots.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._slots[key] = str(value)
        self._flush()

    def remove_item(self, key: str) -> None:
        if self._slots.pop(key, None) is not None:
            self._flush()

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        parsed = safe_json_loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(parsed, dict):
            return {}
        return {str(key): value for key, value in parsed.items() if isinstance(value, str)}

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(self._slots, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)
