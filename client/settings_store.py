from __future__ import annotations

import json
import logging

from client.local_storage import (
    API_KEY_SLOT,
    HISTORY_SLOT,
    MAX_TOKENS_SLOT,
    MODEL_SLOT,
    SHOW_TIMESTAMPS_SLOT,
    SOUND_ENABLED_SLOT,
    TEMPERATURE_SLOT,
    THEME_SLOT,
    LocalStorage,
)
from client.state import DEFAULT_MODEL, AppState, Theme
from shared.models import HISTORY_LIMIT, ChatSession, ChatSettings, sessions_from_list
from shared.sanitize import safe_json_loads

logger = logging.getLogger("HiTekChat.Client")

_DEFAULTS = ChatSettings()


class ApiKeyMissingError(ValueError):
    """API key не задан: отправка сообщений недоступна."""


def _read_slot(storage: LocalStorage, key: str) -> object | None:
    raw = storage.get_item(key)
    if raw is None:
        return None
    parsed = safe_json_loads(raw)
    # plain strings written by older builds are not JSON-encoded
    return raw if parsed is None and raw != "null" else parsed


def _read_text_slot(storage: LocalStorage, key: str) -> str | None:
    raw = storage.get_item(key)
    if raw is None:
        return None
    parsed = safe_json_loads(raw)
    # legacy plain values such as 12345 stay strings
    return parsed if isinstance(parsed, str) else raw


def _write_slot(storage: LocalStorage, key: str, value: object) -> None:
    storage.set_item(key, json.dumps(value, ensure_ascii=False))


def _as_int(value: object, fallback: int) -> int:
    if isinstance(value, bool):
        return fallback
    try:
        parsed = int(str(value).strip()) if value is not None else 0
    except ValueError:
        return fallback
    return parsed if parsed > 0 else fallback


def _as_float(value: object, fallback: float) -> float:
    if isinstance(value, bool) or value is None:
        return fallback
    try:
        return float(str(value).strip())
    except ValueError:
        return fallback


def load_settings(storage: LocalStorage) -> ChatSettings:
    show_raw = _read_slot(storage, SHOW_TIMESTAMPS_SLOT)
    sound_raw = _read_slot(storage, SOUND_ENABLED_SLOT)
    return ChatSettings(
        max_tokens=_as_int(_read_slot(storage, MAX_TOKENS_SLOT), _DEFAULTS.max_tokens),
        temperature=_as_float(_read_slot(storage, TEMPERATURE_SLOT), _DEFAULTS.temperature),
        show_timestamps=str(show_raw).lower() != "false",
        sound_enabled=str(sound_raw).lower() == "true",
    )


def load_history(storage: LocalStorage) -> tuple[ChatSession, ...]:
    raw = _read_slot(storage, HISTORY_SLOT)
    if raw is not None and not isinstance(raw, list):
        logger.warning("Слот %s повреждён, история начата заново.", HISTORY_SLOT)
    return tuple(sessions_from_list(raw)[:HISTORY_LIMIT])


def load_state(storage: LocalStorage, *, env_api_key: str | None = None) -> AppState:
    api_key_raw = _read_text_slot(storage, API_KEY_SLOT)
    model_raw = _read_text_slot(storage, MODEL_SLOT)
    theme: Theme = "light" if _read_text_slot(storage, THEME_SLOT) == "light" else "dark"
    api_key = api_key_raw or env_api_key or ""
    return AppState(
        api_key=api_key,
        current_model=model_raw or DEFAULT_MODEL,
        chat_history=load_history(storage),
        settings=load_settings(storage),
        theme=theme,
    )


def save_history(storage: LocalStorage, history: tuple[ChatSession, ...]) -> None:
    _write_slot(storage, HISTORY_SLOT, [session.to_dict() for session in history])


def clear_history(storage: LocalStorage) -> None:
    storage.remove_item(HISTORY_SLOT)


def save_settings(storage: LocalStorage, settings: ChatSettings, api_key: str) -> None:
    api_key = api_key.strip()
    if not api_key:
        raise ApiKeyMissingError("API key is required")
    _write_slot(storage, API_KEY_SLOT, api_key)
    _write_slot(storage, MAX_TOKENS_SLOT, settings.max_tokens)
    _write_slot(storage, TEMPERATURE_SLOT, settings.temperature)
    _write_slot(storage, SHOW_TIMESTAMPS_SLOT, settings.show_timestamps)
    _write_slot(storage, SOUND_ENABLED_SLOT, settings.sound_enabled)


def save_model(storage: LocalStorage, model_id: str) -> None:
    _write_slot(storage, MODEL_SLOT, model_id)


def save_theme(storage: LocalStorage, theme: Theme) -> None:
    _write_slot(storage, THEME_SLOT, theme)
