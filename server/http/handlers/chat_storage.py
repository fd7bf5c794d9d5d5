from __future__ import annotations

import json
import logging
from typing import Final

from aiohttp import web

from server.chat_storage import DEFAULT_USER_ID, ChatStorageService
from server.http.common.responses import empty_response, error_response, success_response
from shared.models import JSONValue
from shared.sanitize import sanitize_record

logger = logging.getLogger("HiTekChat.HttpAPI")

SUPPORTED_METHODS: Final[set[str]] = {"GET", "POST", "DELETE"}


class InvalidRequestError(ValueError):
    pass


def _resolve_user_id(request: web.Request) -> str:
    user_id = request.query.get("userId") or ""
    if user_id:
        return user_id
    if request.app["require_user_id"]:
        raise InvalidRequestError("userId is required")
    # callers without userId share one bucket
    return DEFAULT_USER_ID


async def _read_body(request: web.Request) -> dict[str, JSONValue]:
    raw = await request.text()
    body = json.loads(raw)
    if not isinstance(body, dict):
        raise ValueError("Тело запроса должно быть JSON-объектом.")
    return body


async def _dispatch(request: web.Request) -> web.Response | None:
    service: ChatStorageService = request.app["chat_storage"]
    user_id = _resolve_user_id(request)
    action = request.query.get("action")

    if request.method == "GET":
        if action == "history":
            return success_response(data=await service.get_history(user_id))
        if action == "settings":
            return success_response(data=await service.get_settings(user_id))
        return None

    if request.method == "POST":
        body = await _read_body(request)
        logger.debug("POST %s for %s: %s", action, user_id, sanitize_record(body))
        if action == "save-chat":
            return success_response(data=await service.save_chat(user_id, body))
        if action == "save-settings":
            await service.save_settings(user_id, body)
            return success_response(message="Settings saved")
        return None

    if action == "clear-history":
        await service.clear_history(user_id)
        return success_response(message="History cleared")
    if action == "delete-chat":
        await service.delete_chat(user_id, request.query.get("chatId"))
        return success_response(message="Chat deleted")
    return None


async def handle_chat_storage(request: web.Request) -> web.Response:
    if request.method == "OPTIONS":
        return empty_response()
    if request.method not in SUPPORTED_METHODS:
        return error_response(status=405, error="Method not allowed")
    try:
        response = await _dispatch(request)
    except InvalidRequestError as exc:
        return error_response(status=400, error="Invalid request", message=str(exc))
    except Exception as exc:  # noqa: BLE001
        logger.exception("Chat storage error: %s", exc)
        return error_response(status=500, error="Internal server error", message=str(exc))
    if response is None:
        return error_response(status=400, error="Invalid action")
    return response
