from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests

from shared.models import ChatSession, ChatSettings, JSONValue

logger = logging.getLogger("HiTekChat.StorageClient")

DEFAULT_TIMEOUT = 15


@dataclass(frozen=True)
class StorageResult:
    ok: bool
    data: JSONValue | None
    status_code: int | None
    error: str | None = None


class ChatStorageClient:
    """HTTP-клиент сервиса chat-storage. Ошибки возвращаются в StorageResult."""

    def __init__(self, base_url: str, user_id: str, *, timeout: int = DEFAULT_TIMEOUT) -> None:
        self.base_url = base_url
        self.user_id = user_id
        self.timeout = timeout

    def get_history(self) -> StorageResult:
        return self._request("GET", "history")

    def get_settings(self) -> StorageResult:
        return self._request("GET", "settings")

    def save_chat(self, session: ChatSession) -> StorageResult:
        return self._request("POST", "save-chat", json=session.to_dict())

    def save_settings(self, settings: ChatSettings) -> StorageResult:
        # api key stays on the client
        return self._request("POST", "save-settings", json=settings.to_dict())

    def clear_history(self) -> StorageResult:
        return self._request("DELETE", "clear-history")

    def delete_chat(self, chat_id: str) -> StorageResult:
        return self._request("DELETE", "delete-chat", params={"chatId": chat_id})

    def _request(
        self,
        method: str,
        action: str,
        *,
        params: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> StorageResult:
        query = {"userId": self.user_id, "action": action, **(params or {})}
        try:
            response = requests.request(
                method=method,
                url=self.base_url,
                params=query,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.Timeout:
            logger.error("Storage %s %s timeout", method, action)
            return StorageResult(ok=False, data=None, status_code=None, error="timeout")
        except requests.RequestException as exc:
            logger.error("Storage %s %s error: %s", method, action, exc)
            return StorageResult(ok=False, data=None, status_code=None, error=str(exc))

        status = response.status_code
        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Storage %s %s JSON decode error: %s", method, action, exc)
            return StorageResult(
                ok=False, data=None, status_code=status, error=f"json_decode_error: {exc}"
            )
        if not isinstance(payload, dict):
            return StorageResult(ok=False, data=None, status_code=status, error="invalid_payload")
        if status >= 400 or not payload.get("success"):
            error = payload.get("error")
            logger.warning("Storage %s %s failed with %s: %s", method, action, status, error)
            return StorageResult(
                ok=False,
                data=None,
                status_code=status,
                error=str(error) if error else f"http_{status}",
            )
        return StorageResult(ok=True, data=payload.get("data"), status_code=status)
