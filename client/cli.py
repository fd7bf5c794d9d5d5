from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Final

from client.chat_controller import ChatController, CompletionFailedError, NothingToExportError
from client.history_store import HistoryStore
from client.local_storage import FileLocalStorage
from client.model_catalog import filter_models
from client.settings_store import ApiKeyMissingError, load_state
from client.storage_client import ChatStorageClient
from config.client_config import ClientConfig, resolve_client_config
from shared.models import ChatMessage, ChatSettings

logger = logging.getLogger("HiTekChat.Client")

HELP_TEXT: Final[str] = """Commands:
  /new                     start a new chat
  /history                 list saved chats
  /load <id>               open a saved chat
  /delete <id>             delete a saved chat
  /clear                   delete all saved chats
  /export [dir]            export the current chat as JSON
  /model <id>              select a model
  /models [search]         list available models
  /settings key=value ...  max_tokens, temperature, show_timestamps, sound_enabled
  /apikey <key>            set the OpenRouter API key
  /theme                   toggle dark/light theme
  /help                    show this help
  /quit                    exit
Any other input is sent to the model."""


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value <= 0:
        raise ValueError(f"max_tokens must be a positive integer: {raw}")
    return value


SETTING_PARSERS: Final[dict[str, Callable[[str], object]]] = {
    "max_tokens": _positive_int,
    "temperature": float,
    "show_timestamps": lambda raw: raw.strip().lower() in {"1", "true", "yes", "on"},
    "sound_enabled": lambda raw: raw.strip().lower() in {"1", "true", "yes", "on"},
}

Output = Callable[[str], None]


def render_message(message: ChatMessage, settings: ChatSettings, now: datetime) -> str:
    role = "You" if message.role == "user" else "AI"
    if settings.show_timestamps:
        return f"[{now.strftime('%I:%M %p')}] {role}: {message.content}"
    return f"{role}: {message.content}"


def build_controller(config: ClientConfig) -> ChatController:
    storage = FileLocalStorage(config.local_storage_path)
    history = HistoryStore(storage, state=load_state(storage, env_api_key=config.api_key))
    storage_client = (
        ChatStorageClient(config.storage_url, config.user_id) if config.storage_url else None
    )
    return ChatController(history, storage, storage_client=storage_client)


def _parse_settings(controller: ChatController, args: list[str]) -> ChatSettings:
    changes: dict[str, object] = {}
    for item in args:
        key, sep, raw = item.partition("=")
        parser = SETTING_PARSERS.get(key.strip())
        if not sep or parser is None:
            raise ValueError(f"Unknown setting: {item}")
        changes[key.strip()] = parser(raw)
    return replace(controller.state.settings, **changes)


def _flush_notices(controller: ChatController, out: Output) -> None:
    for notice in controller.drain_notices():
        out(f"[{notice.level}] {notice.message}")


def _send(controller: ChatController, text: str, out: Output) -> None:
    try:
        session = controller.send_message(text)
    except ApiKeyMissingError as exc:
        out(f"[warning] {exc}")
        return
    except CompletionFailedError as exc:
        out(f"[error] Error: {exc}")
        return
    if session is None:
        return
    state = controller.state
    out(render_message(session.messages[-1], state.settings, datetime.now()))
    out(f"(tokens: {state.total_tokens})")
    if state.settings.sound_enabled:
        out("\a")


def handle_command(
    controller: ChatController,
    line: str,
    *,
    out: Output = print,
    ask: Callable[[str], str] = input,
) -> bool:
    """Выполняет одну строку ввода. Возвращает False, если пора выйти."""
    text = line.strip()
    if not text:
        return True
    if not text.startswith("/"):
        _send(controller, text, out)
        _flush_notices(controller, out)
        return True

    command, *args = text.split()
    state = controller.state
    if command in {"/quit", "/exit"}:
        return False
    if command == "/help":
        out(HELP_TEXT)
    elif command == "/new":
        controller.start_new_chat()
        out("Started a new chat.")
    elif command == "/history":
        if not state.chat_history:
            out("No saved chats.")
        for session in state.chat_history:
            marker = "*" if session.id == state.current_chat_id else " "
            out(f"{marker} {session.id}  {session.title}...  {session.timestamp[:10]}")
    elif command == "/load" and args:
        session = controller.load_chat(args[0])
        if session is not None:
            now = datetime.now()
            for message in session.messages:
                out(render_message(message, controller.state.settings, now))
    elif command == "/delete" and args:
        controller.delete_chat(args[0])
        out(f"Deleted {args[0]}.")
    elif command == "/clear":
        answer = ask("Are you sure you want to clear all chat history? [y/N] ")
        if answer.strip().lower() in {"y", "yes"}:
            controller.clear_all()
    elif command == "/export":
        try:
            path = controller.export_chat(Path(args[0]) if args else Path.cwd())
        except NothingToExportError as exc:
            out(f"[warning] {exc}")
        else:
            out(f"Exported to {path}")
    elif command == "/model" and args:
        controller.select_model(args[0])
        out(f"Model: {args[0]}")
    elif command == "/models":
        models = state.available_models or tuple(controller.refresh_models())
        for model in filter_models(models, " ".join(args)):
            marker = "*" if model.id == state.current_model else " "
            out(f"{marker} {model.id}  {model.label}")
    elif command == "/settings":
        if not args:
            for key, value in state.settings.to_dict().items():
                out(f"{key}: {value}")
        else:
            try:
                controller.save_settings(_parse_settings(controller, args), state.api_key)
            except (ApiKeyMissingError, ValueError) as exc:
                out(f"[error] {exc}")
    elif command == "/apikey" and args:
        try:
            controller.save_settings(state.settings, args[0])
        except ApiKeyMissingError as exc:
            out(f"[error] {exc}")
    elif command == "/theme":
        out(f"Theme: {controller.toggle_theme()}")
    else:
        out(f"Unknown command: {text}. Type /help.")
    _flush_notices(controller, out)
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hitekchat", description="0xHiTek terminal chat")
    parser.add_argument("--data-dir", help="directory for local chat storage")
    parser.add_argument("--storage-url", help="chat-storage endpoint to mirror history to")
    parser.add_argument("--user-id", help="user id for the chat-storage service")
    parser.add_argument("--verbose", action="store_true", help="enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = resolve_client_config(
        data_dir=args.data_dir,
        storage_url=args.storage_url,
        user_id=args.user_id,
    )
    controller = build_controller(config)
    if controller.state.api_key:
        controller.refresh_models()
    else:
        print("[warning] Please enter your OpenRouter API key to get started (/apikey <key>)")
    print(f"Model: {controller.state.current_model}. Type /help for commands.")
    while True:
        try:
            line = input("> ")
        except (EOFError, KeyboardInterrupt):
            print()
            return 0
        if not handle_command(controller, line):
            return 0


if __name__ == "__main__":
    sys.exit(main())
