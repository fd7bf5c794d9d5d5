from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal, cast

from config.env import env_bool, env_str, read_config_object

DEFAULT_STORE_NAME = "chat-data"
DEFAULT_DB_PATH = Path(".run/chat_storage.db")
DEFAULT_PATH = Path("config/chat_storage.json")
SUPPORTED_BACKENDS: set[str] = {"sqlite", "memory"}

StorageBackend = Literal["sqlite", "memory"]


@dataclass(frozen=True)
class StorageConfig:
    backend: StorageBackend = "sqlite"
    store_name: str = DEFAULT_STORE_NAME
    db_path: Path = DEFAULT_DB_PATH
    require_user_id: bool = False


def _check_backend(value: object, source: str) -> StorageBackend:
    candidate = value.strip().lower() if isinstance(value, str) else value
    if candidate not in SUPPORTED_BACKENDS:
        raise ValueError(f"{source} должен быть одним из: {sorted(SUPPORTED_BACKENDS)}.")
    return cast(StorageBackend, candidate)


def _non_empty(data: dict[str, object], key: str, fallback: str) -> str:
    value = data.get(key, fallback)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"chat_storage.{key} должен быть непустой строкой.")
    return value.strip()


def load_storage_config(path: Path = DEFAULT_PATH) -> StorageConfig:
    data = read_config_object(path)
    require_user_id = data.get("require_user_id", False)
    if not isinstance(require_user_id, bool):
        raise ValueError("chat_storage.require_user_id должен быть bool.")
    return StorageConfig(
        backend=_check_backend(data.get("backend", "sqlite"), "chat_storage.backend"),
        store_name=_non_empty(data, "store_name", DEFAULT_STORE_NAME),
        db_path=Path(_non_empty(data, "db_path", str(DEFAULT_DB_PATH))),
        require_user_id=require_user_id,
    )


def resolve_storage_config(path: Path = DEFAULT_PATH) -> StorageConfig:
    config = load_storage_config(path)
    backend_raw = env_str("HITEK_STORAGE_BACKEND")
    db_raw = env_str("HITEK_STORAGE_DB_PATH")
    return StorageConfig(
        backend=(
            _check_backend(backend_raw, "HITEK_STORAGE_BACKEND") if backend_raw else config.backend
        ),
        store_name=env_str("HITEK_STORAGE_NAME") or config.store_name,
        db_path=Path(db_raw) if db_raw else config.db_path,
        require_user_id=env_bool("HITEK_REQUIRE_USER_ID", config.require_user_id),
    )
