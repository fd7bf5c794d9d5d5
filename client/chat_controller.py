from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

import requests

from client import state as app_state
from client.history_store import HistoryStore
from client.local_storage import LocalStorage
from client.model_catalog import fetch_models
from client.settings_store import ApiKeyMissingError, save_model, save_settings, save_theme
from client.state import AppState
from client.storage_client import ChatStorageClient, StorageResult
from llm.brain_base import Brain
from llm.openrouter_brain import APP_TITLE, OpenRouterBrain
from llm.types import ModelConfig
from shared.models import ChatSession, ChatSettings, JSONValue, LLMMessage, ModelInfo

logger = logging.getLogger("HiTekChat.Client")

NoticeLevel = Literal["info", "success", "warning", "error"]


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str


class CompletionFailedError(RuntimeError):
    """Запрос к API дополнений не удался; обмен сообщениями отброшен."""


class NothingToExportError(ValueError):
    pass


class ChatController:
    """Сценарии клиента: отправка сообщения, настройки, история, экспорт.

    Ошибки, блокирующие действие, поднимаются исключениями. Сбои зеркалирования
    в chat-storage не откатывают локальное состояние и попадают в notices.
    """

    def __init__(
        self,
        history: HistoryStore,
        storage: LocalStorage,
        *,
        brain_factory: Callable[[str], Brain] = OpenRouterBrain,
        storage_client: ChatStorageClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.history = history
        self.storage = storage
        self.storage_client = storage_client
        self.notices: list[Notice] = []
        self.sending = False
        self._brain_factory = brain_factory
        self._clock = clock

    @property
    def state(self) -> AppState:
        return self.history.state

    @property
    def can_send(self) -> bool:
        return bool(self.state.api_key) and not self.sending

    def _notify(self, level: NoticeLevel, message: str) -> None:
        self.notices.append(Notice(level=level, message=message))

    def drain_notices(self) -> list[Notice]:
        notices, self.notices = self.notices, []
        return notices

    def _mirror(self, action: str, call: Callable[[ChatStorageClient], StorageResult]) -> None:
        if self.storage_client is None:
            return
        result = call(self.storage_client)
        if not result.ok:
            logger.warning("Chat storage %s failed: %s", action, result.error)
            self._notify("warning", f"Chat storage sync failed ({action}): {result.error}")

    def send_message(self, text: str) -> ChatSession | None:
        message = text.strip()
        if not message:
            return None
        state = self.state
        if not state.api_key:
            raise ApiKeyMissingError("Please enter your OpenRouter API key to get started")
        if self.sending:
            raise RuntimeError("Предыдущий запрос ещё выполняется.")

        request_messages = [item.to_llm() for item in state.messages]
        request_messages.append(LLMMessage(role="user", content=message))
        config = ModelConfig(
            model=state.current_model,
            temperature=state.settings.temperature,
            max_tokens=state.settings.max_tokens,
        )
        self.sending = True
        try:
            result = self._brain_factory(state.api_key).generate(request_messages, config)
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else "unknown"
            logger.error("Completion API error: %s", exc)
            raise CompletionFailedError(f"API Error: {status}") from exc
        except (requests.RequestException, RuntimeError, ValueError) as exc:
            logger.error("Completion request failed: %s", exc)
            raise CompletionFailedError(str(exc)) from exc
        finally:
            self.sending = False

        session = self.history.record_exchange(
            message,
            result.text,
            state.current_model,
            tokens=result.total_tokens,
        )
        self._mirror("save-chat", lambda client: client.save_chat(session))
        return session

    def start_new_chat(self) -> None:
        self.history.start_new()

    def load_chat(self, chat_id: str) -> ChatSession | None:
        session = self.history.load(chat_id)
        if session is not None and session.model:
            save_model(self.storage, session.model)
        return session

    def delete_chat(self, chat_id: str) -> None:
        self.history.remove(chat_id)
        self._mirror("delete-chat", lambda client: client.delete_chat(chat_id))

    def clear_all(self) -> None:
        self.history.clear()
        self._mirror("clear-history", lambda client: client.clear_history())
        self._notify("success", "All chats cleared")

    def select_model(self, model_id: str) -> None:
        self.history.state = app_state.select_model(self.state, model_id)
        save_model(self.storage, model_id)

    def toggle_theme(self) -> str:
        self.history.state = app_state.toggle_theme(self.state)
        save_theme(self.storage, self.state.theme)
        return self.state.theme

    def save_settings(self, settings: ChatSettings, api_key: str) -> None:
        save_settings(self.storage, settings, api_key)
        self.history.state = app_state.apply_settings(self.state, settings, api_key.strip())
        self._mirror("save-settings", lambda client: client.save_settings(settings))
        self._notify("success", "Settings saved successfully")
        self.refresh_models()

    def refresh_models(self) -> list[ModelInfo]:
        if not self.state.api_key:
            return []
        models = fetch_models(self._brain_factory(self.state.api_key))
        self.history.state = app_state.set_available_models(self.state, models)
        return models

    def build_export(self) -> dict[str, JSONValue]:
        state = self.state
        if not state.messages:
            raise NothingToExportError("No messages to export")
        now = datetime.fromtimestamp(self._clock())
        return {
            "title": f"{APP_TITLE} - {now.strftime('%m/%d/%Y, %I:%M:%S %p')}",
            "model": state.current_model,
            "messages": [message.to_dict() for message in state.messages],
            "timestamp": now.astimezone(timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
        }

    def export_chat(self, directory: Path) -> Path:
        document = self.build_export()
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"0xhitek-chat-{int(self._clock() * 1000)}.json"
        path.write_text(json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8")
        self._notify("success", "Chat exported successfully")
        return path
