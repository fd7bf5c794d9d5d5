from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from client import state as app_state
from client.local_storage import LocalStorage
from client.settings_store import clear_history, load_state, save_history
from client.state import AppState
from shared.models import ChatSession

logger = logging.getLogger("HiTekChat.Client")


def _now_ms() -> int:
    return int(time.time() * 1000)


def _iso_from_ms(now_ms: int) -> str:
    moment = datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class HistoryStore:
    """Локальная история чатов: AppState в памяти, зеркало в слоте chat_history.

    Каждое изменение списка сразу записывается в LocalStorage целиком.
    """

    def __init__(
        self,
        storage: LocalStorage,
        *,
        state: AppState | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self.state = state if state is not None else load_state(storage)

    @property
    def sessions(self) -> tuple[ChatSession, ...]:
        return self.state.chat_history

    @property
    def current_session(self) -> ChatSession | None:
        return self.state.find_session(self.state.current_chat_id)

    def _persist(self, updated: AppState) -> None:
        self.state = updated
        save_history(self._storage, updated.chat_history)

    def start_new(self) -> None:
        self.state = app_state.start_new(self.state)

    def upsert(self) -> ChatSession | None:
        now_ms = self._clock()
        updated = app_state.upsert(self.state, now_ms=now_ms, now_iso=_iso_from_ms(now_ms))
        if updated is not self.state:
            self._persist(updated)
        return self.current_session

    def record_exchange(
        self,
        user_text: str,
        assistant_text: str,
        model: str,
        *,
        tokens: int = 0,
    ) -> ChatSession:
        now_ms = self._clock()
        self._persist(
            app_state.record_exchange(
                self.state,
                user_text,
                assistant_text,
                model,
                now_ms=now_ms,
                now_iso=_iso_from_ms(now_ms),
                tokens=tokens,
            )
        )
        session = self.current_session
        if session is None:
            raise RuntimeError("Сессия не сохранена после обмена сообщениями.")
        logger.debug("Session %s updated (%d messages)", session.id, len(session.messages))
        return session

    def remove(self, chat_id: str) -> None:
        self._persist(app_state.remove(self.state, chat_id))

    def clear(self) -> None:
        self.state = app_state.clear(self.state)
        clear_history(self._storage)

    def load(self, chat_id: str) -> ChatSession | None:
        self.state, session = app_state.load(self.state, chat_id)
        return session
