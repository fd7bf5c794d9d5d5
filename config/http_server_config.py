from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from config.env import env_int, env_str, read_config_object

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8888
DEFAULT_MAX_REQUEST_BYTES = 1_000_000
DEFAULT_PATH = Path("config/http_server.json")


@dataclass(frozen=True)
class HttpServerConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    max_request_bytes: int = DEFAULT_MAX_REQUEST_BYTES


def _require_int(data: dict[str, object], key: str, fallback: int) -> int:
    value = data.get(key, fallback)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"http_server.{key} должен быть int.")
    return value


def load_http_server_config(path: Path = DEFAULT_PATH) -> HttpServerConfig:
    data = read_config_object(path)
    host = data.get("host", DEFAULT_HOST)
    if not isinstance(host, str) or not host.strip():
        raise ValueError("http_server.host должен быть непустой строкой.")
    return HttpServerConfig(
        host=host.strip(),
        port=_require_int(data, "port", DEFAULT_PORT),
        max_request_bytes=_require_int(data, "max_request_bytes", DEFAULT_MAX_REQUEST_BYTES),
    )


def resolve_http_server_config(path: Path = DEFAULT_PATH) -> HttpServerConfig:
    """Файл config/http_server.json, поверх него HITEK_HTTP_*."""
    config = load_http_server_config(path)
    return HttpServerConfig(
        host=env_str("HITEK_HTTP_HOST") or config.host,
        port=env_int("HITEK_HTTP_PORT", config.port),
        max_request_bytes=env_int("HITEK_HTTP_MAX_REQUEST_BYTES", config.max_request_bytes),
    )
