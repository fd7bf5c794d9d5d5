from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any

from shared.models import JSONValue

SECRET_KEYS = {
    "apikey",
    "api_key",
    "openrouter_api_key",
    "authorization",
    "token",
}
PAYLOAD_KEYS = {"content", "messages"}
MAX_FIELD_PREVIEW = 120
MAX_RECORD_BYTES = 2048


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8", errors="replace")
    try:
        return json.dumps(value, ensure_ascii=False).encode("utf-8", errors="replace")
    except (TypeError, ValueError):
        return str(value).encode("utf-8", errors="replace")


def _summarize(value: Any) -> dict[str, JSONValue]:
    raw_bytes = _to_bytes(value)
    preview = raw_bytes[:MAX_FIELD_PREVIEW].decode("utf-8", errors="replace")
    if len(raw_bytes) > MAX_FIELD_PREVIEW:
        preview += "…[truncated]"
    summary: dict[str, JSONValue] = {
        "preview": preview,
        "bytes_count": len(raw_bytes),
        "sha256": hashlib.sha256(raw_bytes).hexdigest(),
    }
    if isinstance(value, list):
        summary["items"] = len(value)
    return summary


def _sanitize_value(key: str | None, value: Any) -> JSONValue:
    key_lower = key.lower() if isinstance(key, str) else ""
    if key_lower in SECRET_KEYS:
        return "[secret]"
    if isinstance(value, (bool, int, float)) or value is None:
        return value
    if key_lower in PAYLOAD_KEYS:
        return _summarize(value)
    if isinstance(value, dict):
        return {str(k): _sanitize_value(str(k), v) for k, v in value.items()}
    if isinstance(value, list):
        return [_sanitize_value(key, v) for v in value]
    if isinstance(value, (str, bytes)):
        if len(_to_bytes(value)) > MAX_FIELD_PREVIEW:
            return _summarize(value)
        return value.decode("utf-8", errors="replace") if isinstance(value, bytes) else value
    return str(value)


def sanitize_record(
    record: Mapping[str, JSONValue],
    *,
    max_bytes: int = MAX_RECORD_BYTES,
) -> dict[str, JSONValue]:
    """Маскирует ключи и сворачивает текст сообщений перед записью в лог."""
    sanitized = {k: _sanitize_value(k, v) for k, v in record.items()}
    encoded = json.dumps(sanitized, ensure_ascii=False).encode("utf-8", errors="replace")
    if len(encoded) <= max_bytes:
        return sanitized
    return _summarize(sanitized)


def safe_json_loads(raw: str) -> object | None:
    try:
        parsed: object = json.loads(raw)
        return parsed
    except json.JSONDecodeError:
        return None
