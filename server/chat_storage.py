from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Final

from server.blob_store import BlobStore
from shared.models import DEFAULT_TITLE, HISTORY_LIMIT, JSONValue

logger = logging.getLogger("HiTekChat.ChatStorage")

DEFAULT_USER_ID: Final[str] = "anonymous"


def history_key(user_id: str) -> str:
    return f"history_{user_id}"


def settings_key(user_id: str) -> str:
    return f"settings_{user_id}"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _utc_iso(now_ms: int) -> str:
    moment = datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ChatStorageService:
    """CRUD истории чатов и настроек поверх blob-хранилища, по ключу userId.

    Чтение-изменение-запись для одного userId сериализуется через asyncio.Lock
    в пределах процесса. Несколько процессов над одним хранилищем по-прежнему
    могут потерять обновление.
    """

    def __init__(
        self,
        store: BlobStore,
        *,
        history_limit: int = HISTORY_LIMIT,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._store = store
        self._history_limit = history_limit
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            # the last holder or waiter drops the lock for this user
            self._lock_users[user_id] -= 1
            if self._lock_users[user_id] == 0:
                del self._lock_users[user_id]
                del self._locks[user_id]

    def _read_json(self, key: str) -> object | None:
        raw = self._store.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def _read_history(self, user_id: str) -> list[JSONValue]:
        parsed = self._read_json(history_key(user_id))
        if parsed is None:
            return []
        if not isinstance(parsed, list):
            raise ValueError(f"История пользователя {user_id} повреждена: ожидался список.")
        return parsed

    def _write_history(self, user_id: str, history: list[JSONValue]) -> None:
        self._store.set(history_key(user_id), json.dumps(history, ensure_ascii=False))

    async def get_history(self, user_id: str) -> list[JSONValue]:
        return self._read_history(user_id)

    async def get_settings(self, user_id: str) -> JSONValue:
        parsed = self._read_json(settings_key(user_id))
        return parsed if parsed is not None else {}

    async def save_chat(self, user_id: str, body: dict[str, JSONValue]) -> dict[str, JSONValue]:
        now_ms = self._clock()
        chat_id = body.get("id")
        title = body.get("title")
        messages = body.get("messages")
        new_chat: dict[str, JSONValue] = {
            "id": str(chat_id) if chat_id else str(now_ms),
            "title": title if title else DEFAULT_TITLE,
            "messages": messages if messages else [],
            "timestamp": _utc_iso(now_ms),
            "model": body.get("model"),
        }
        async with self._user_lock(user_id):
            history = self._read_history(user_id)
            history = [
                chat
                for chat in history
                if not (isinstance(chat, dict) and chat.get("id") == new_chat["id"])
            ]
            history.insert(0, new_chat)
            del history[self._history_limit :]
            self._write_history(user_id, history)
        logger.info(
            "Chat %s saved for user %s (%d in history)", new_chat["id"], user_id, len(history)
        )
        return new_chat

    async def save_settings(self, user_id: str, body: JSONValue) -> None:
        self._store.set(settings_key(user_id), json.dumps(body, ensure_ascii=False))
        logger.info("Settings saved for user %s", user_id)

    async def clear_history(self, user_id: str) -> None:
        async with self._user_lock(user_id):
            self._store.delete(history_key(user_id))
        logger.info("History cleared for user %s", user_id)

    async def delete_chat(self, user_id: str, chat_id: str | None) -> None:
        async with self._user_lock(user_id):
            if self._store.get(history_key(user_id)) is None:
                return
            history = self._read_history(user_id)
            filtered = [
                chat
                for chat in history
                if not (isinstance(chat, dict) and chat.get("id") == chat_id)
            ]
            self._write_history(user_id, filtered)
        logger.info("Chat %s deleted for user %s", chat_id, user_id)
