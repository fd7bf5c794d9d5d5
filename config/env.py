from __future__ import annotations

import json
import os
from pathlib import Path

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def read_config_object(path: Path) -> dict[str, object]:
    """Читает JSON-объект конфигурации; отсутствующий файл даёт пустой словарь."""
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"Ошибка чтения {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} должен содержать объект.")
    return data


def env_str(name: str) -> str | None:
    raw = os.getenv(name)
    if not isinstance(raw, str) or not raw.strip():
        return None
    return raw.strip()


def env_int(name: str, fallback: int) -> int:
    raw = env_str(name)
    if raw is None:
        return fallback
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} должен быть int.") from exc


def parse_bool(raw: str, name: str) -> bool:
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} должен быть булевым значением.")


def env_bool(name: str, fallback: bool) -> bool:
    raw = env_str(name)
    return fallback if raw is None else parse_bool(raw, name)
