"""Состояние клиента и чистые функции его обновления.

Каждая функция принимает AppState и возвращает новый AppState, не выполняя
ввода-вывода. Время передаётся явно (now_ms, now_iso), поэтому функции
детерминированы и тестируются без окружения.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Final, Literal

from shared.models import (
    HISTORY_LIMIT,
    ChatMessage,
    ChatSession,
    ChatSettings,
    ModelInfo,
    derive_title,
)

DEFAULT_MODEL: Final[str] = "openai/gpt-3.5-turbo"

Theme = Literal["dark", "light"]


@dataclass(frozen=True)
class AppState:
    api_key: str = ""
    current_model: str = DEFAULT_MODEL
    chat_history: tuple[ChatSession, ...] = ()
    current_chat_id: str | None = None
    messages: tuple[ChatMessage, ...] = ()
    total_tokens: int = 0
    settings: ChatSettings = field(default_factory=ChatSettings)
    available_models: tuple[ModelInfo, ...] = ()
    theme: Theme = "dark"

    def find_session(self, chat_id: str | None) -> ChatSession | None:
        if chat_id is None:
            return None
        for session in self.chat_history:
            if session.id == chat_id:
                return session
        return None


def _fresh_id(now_ms: int, history: Sequence[ChatSession]) -> str:
    taken = {session.id for session in history}
    candidate = now_ms
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def start_new(state: AppState) -> AppState:
    # id is assigned on the first upsert that has messages
    return replace(state, messages=(), current_chat_id=None, total_tokens=0)


def upsert(state: AppState, *, now_ms: int, now_iso: str) -> AppState:
    existing = state.find_session(state.current_chat_id)
    if existing is None and not state.messages:
        return state
    chat_id = state.current_chat_id or _fresh_id(now_ms, state.chat_history)
    title = existing.title if existing is not None else derive_title(state.messages)
    snapshot = ChatSession(
        id=chat_id,
        title=title,
        messages=state.messages,
        timestamp=now_iso,
        model=state.current_model,
    )
    others = tuple(session for session in state.chat_history if session.id != chat_id)
    history = (snapshot, *others)[:HISTORY_LIMIT]
    return replace(state, chat_history=history, current_chat_id=chat_id)


def record_exchange(
    state: AppState,
    user_text: str,
    assistant_text: str,
    model: str,
    *,
    now_ms: int,
    now_iso: str,
    tokens: int = 0,
) -> AppState:
    updated = replace(
        state,
        current_model=model,
        messages=(
            *state.messages,
            ChatMessage(role="user", content=user_text),
            ChatMessage(role="assistant", content=assistant_text),
        ),
        total_tokens=state.total_tokens + tokens,
    )
    return upsert(updated, now_ms=now_ms, now_iso=now_iso)


def remove(state: AppState, chat_id: str) -> AppState:
    history = tuple(session for session in state.chat_history if session.id != chat_id)
    updated = replace(state, chat_history=history)
    if state.current_chat_id == chat_id:
        return start_new(updated)
    return updated


def clear(state: AppState) -> AppState:
    return start_new(replace(state, chat_history=()))


def load(state: AppState, chat_id: str) -> tuple[AppState, ChatSession | None]:
    session = state.find_session(chat_id)
    if session is None:
        return state, None
    updated = replace(
        state,
        current_chat_id=session.id,
        messages=session.messages,
        current_model=session.model or state.current_model,
    )
    return updated, session


def select_model(state: AppState, model_id: str) -> AppState:
    return replace(state, current_model=model_id)


def apply_settings(state: AppState, settings: ChatSettings, api_key: str) -> AppState:
    return replace(state, settings=settings, api_key=api_key)


def set_available_models(state: AppState, models: Sequence[ModelInfo]) -> AppState:
    return replace(state, available_models=tuple(models))


def toggle_theme(state: AppState) -> AppState:
    return replace(state, theme="light" if state.theme == "dark" else "dark")
