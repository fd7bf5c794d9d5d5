from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from config.env import env_str, read_config_object

DEFAULT_DATA_DIR = Path.home() / ".hitekchat"
DEFAULT_USER_ID = "anonymous"
DEFAULT_PATH = Path("config/chat_client.json")


@dataclass(frozen=True)
class ClientConfig:
    data_dir: Path = DEFAULT_DATA_DIR
    storage_url: str | None = None
    user_id: str = DEFAULT_USER_ID
    api_key: str | None = None

    @property
    def local_storage_path(self) -> Path:
        return self.data_dir / "local_storage.json"


def load_client_config(path: Path = DEFAULT_PATH) -> ClientConfig:
    data = read_config_object(path)
    data_dir = data.get("data_dir")
    storage_url = data.get("storage_url")
    user_id = data.get("user_id", DEFAULT_USER_ID)
    if data_dir is not None and (not isinstance(data_dir, str) or not data_dir.strip()):
        raise ValueError("chat_client.data_dir должен быть непустой строкой.")
    if storage_url is not None and not isinstance(storage_url, str):
        raise ValueError("chat_client.storage_url должен быть строкой.")
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValueError("chat_client.user_id должен быть непустой строкой.")
    return ClientConfig(
        data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR,
        storage_url=(storage_url.strip() or None) if storage_url else None,
        user_id=user_id.strip(),
    )


def resolve_client_config(
    path: Path = DEFAULT_PATH,
    *,
    data_dir: str | None = None,
    storage_url: str | None = None,
    user_id: str | None = None,
) -> ClientConfig:
    """Файл < переменные окружения < явные аргументы CLI."""
    config = load_client_config(path)
    resolved_dir = data_dir or env_str("HITEK_DATA_DIR")
    return ClientConfig(
        data_dir=Path(resolved_dir).expanduser() if resolved_dir else config.data_dir,
        storage_url=(storage_url or "").strip() or env_str("HITEK_STORAGE_URL") or config.storage_url,
        user_id=(user_id or "").strip() or env_str("HITEK_USER_ID") or config.user_id,
        api_key=env_str("OPENROUTER_API_KEY"),
    )
