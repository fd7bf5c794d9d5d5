from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Final, Literal

JSONPrimitive = str | bytes | int | float | bool | None
JSONValue = JSONPrimitive | Sequence["JSONValue"] | Mapping[str, "JSONValue"]

HISTORY_LIMIT: Final[int] = 50
TITLE_MAX_CHARS: Final[int] = 30
DEFAULT_TITLE: Final[str] = "New Chat"
CHAT_ROLES: Final[set[str]] = {"user", "assistant"}


@dataclass(frozen=True)
class LLMMessage:
    role: Literal["system", "user", "assistant"]
    content: str


@dataclass(frozen=True)
class ChatMessage:
    role: Literal["user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}

    def to_llm(self) -> LLMMessage:
        return LLMMessage(role=self.role, content=self.content)


@dataclass(frozen=True)
class ChatSession:
    """Одна сохранённая беседа: сообщения, заголовок, модель и время."""

    id: str
    title: str
    messages: tuple[ChatMessage, ...]
    timestamp: str
    model: str | None = None

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "id": self.id,
            "title": self.title,
            "messages": [message.to_dict() for message in self.messages],
            "timestamp": self.timestamp,
            "model": self.model,
        }


@dataclass(frozen=True)
class ChatSettings:
    max_tokens: int = 2000
    temperature: float = 0.7
    show_timestamps: bool = True
    sound_enabled: bool = False

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "maxTokens": self.max_tokens,
            "temperature": self.temperature,
            "showTimestamps": self.show_timestamps,
            "soundEnabled": self.sound_enabled,
        }


@dataclass(frozen=True)
class ModelInfo:
    id: str
    name: str | None = None

    @property
    def label(self) -> str:
        return self.name or self.id


def derive_title(messages: Sequence[ChatMessage]) -> str:
    if not messages or not messages[0].content:
        return DEFAULT_TITLE
    return messages[0].content[:TITLE_MAX_CHARS]


def message_from_dict(raw: object) -> ChatMessage | None:
    if not isinstance(raw, dict):
        return None
    role = raw.get("role")
    content = raw.get("content")
    if role not in CHAT_ROLES or not isinstance(content, str):
        return None
    return ChatMessage(role=role, content=content)


def session_from_dict(raw: object) -> ChatSession | None:
    if not isinstance(raw, dict):
        return None
    session_id = raw.get("id")
    if not isinstance(session_id, str) or not session_id:
        return None
    messages_raw = raw.get("messages")
    messages: list[ChatMessage] = []
    if isinstance(messages_raw, list):
        for item in messages_raw:
            message = message_from_dict(item)
            if message is not None:
                messages.append(message)
    title_raw = raw.get("title")
    timestamp_raw = raw.get("timestamp")
    model_raw = raw.get("model")
    return ChatSession(
        id=session_id,
        title=title_raw if isinstance(title_raw, str) and title_raw else derive_title(messages),
        messages=tuple(messages),
        timestamp=timestamp_raw if isinstance(timestamp_raw, str) else "",
        model=model_raw if isinstance(model_raw, str) else None,
    )


def sessions_from_list(raw: object) -> list[ChatSession]:
    if not isinstance(raw, list):
        return []
    sessions: list[ChatSession] = []
    for item in raw:
        session = session_from_dict(item)
        if session is not None:
            sessions.append(session)
    return sessions
