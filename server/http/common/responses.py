from __future__ import annotations

from typing import Final

from aiohttp import web

from shared.models import JSONValue

CORS_HEADERS: Final[dict[str, str]] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
}


def json_response(payload: dict[str, JSONValue], *, status: int = 200) -> web.Response:
    return web.json_response(payload, status=status, headers=CORS_HEADERS)


def empty_response(*, status: int = 200) -> web.Response:
    return web.Response(
        status=status,
        headers={**CORS_HEADERS, "Content-Type": "application/json"},
    )


def success_response(
    *,
    data: JSONValue = None,
    message: str | None = None,
) -> web.Response:
    payload: dict[str, JSONValue] = {"success": True}
    if message is not None:
        payload["message"] = message
    else:
        payload["data"] = data
    return json_response(payload)


def error_response(*, status: int, error: str, message: str | None = None) -> web.Response:
    payload: dict[str, JSONValue] = {"error": error}
    if message is not None:
        payload["message"] = message
    return json_response(payload, status=status)
