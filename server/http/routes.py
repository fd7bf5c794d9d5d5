from __future__ import annotations

from typing import Final

from aiohttp import web

CHAT_STORAGE_PATH: Final[str] = "/api/chat-storage"


def register_routes(app: web.Application) -> None:
    from server.http.handlers import chat_storage

    app.router.add_get("/", handle_status)
    app.router.add_route("*", CHAT_STORAGE_PATH, chat_storage.handle_chat_storage)


async def handle_status(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok", "endpoint": CHAT_STORAGE_PATH})
