from __future__ import annotations

import asyncio

from aiohttp.test_utils import TestClient, TestServer

from config.storage_config import StorageConfig
from server.blob_store import InMemoryBlobStore
from server.http.app import create_app
from server.http.routes import CHAT_STORAGE_PATH

PATH = CHAT_STORAGE_PATH


async def _create_client(*, require_user_id: bool = False) -> TestClient:
    app = create_app(
        store=InMemoryBlobStore("chat-data"),
        storage_config=StorageConfig(backend="memory", require_user_id=require_user_id),
        max_request_bytes=1_000_000,
    )
    server = TestServer(app)
    client = TestClient(server)
    await client.start_server()
    return client


def test_save_chat_then_history() -> None:
    async def run() -> None:
        client = await _create_client()
        try:
            resp = await client.post(
                PATH,
                params={"userId": "u1", "action": "save-chat"},
                json={
                    "title": "Hi",
                    "messages": [{"role": "user", "content": "Hi"}],
                    "model": "m1",
                },
            )
            assert resp.status == 200
            payload = await resp.json()
            assert payload["success"] is True
            saved = payload["data"]
            assert isinstance(saved["id"], str) and saved["id"]
            assert saved["title"] == "Hi"
            assert len(saved["messages"]) == 1
            assert saved["model"] == "m1"
            assert saved["timestamp"].endswith("Z")
            assert resp.headers["Access-Control-Allow-Origin"] == "*"

            resp = await client.get(PATH, params={"userId": "u1", "action": "history"})
            assert resp.status == 200
            payload = await resp.json()
            assert payload == {"success": True, "data": [saved]}
        finally:
            await client.close()

    asyncio.run(run())


def test_save_chat_defaults_and_newest_first() -> None:
    async def run() -> None:
        client = await _create_client()
        try:
            resp = await client.post(PATH, params={"userId": "u1", "action": "save-chat"}, json={})
            first = (await resp.json())["data"]
            assert first["title"] == "New Chat"
            assert first["messages"] == []
            assert first["id"].isdigit()

            await client.post(
                PATH,
                params={"userId": "u1", "action": "save-chat"},
                json={"id": "second", "title": "Second"},
            )
            resp = await client.get(PATH, params={"userId": "u1", "action": "history"})
            history = (await resp.json())["data"]
            assert [chat["id"] for chat in history] == ["second", first["id"]]
        finally:
            await client.close()

    asyncio.run(run())


def test_resaving_same_id_keeps_single_entry() -> None:
    async def run() -> None:
        client = await _create_client()
        try:
            for title in ("One", "Other", "One again"):
                chat_id = "b" if title == "Other" else "a"
                await client.post(
                    PATH,
                    params={"userId": "u1", "action": "save-chat"},
                    json={"id": chat_id, "title": title},
                )
            resp = await client.get(PATH, params={"userId": "u1", "action": "history"})
            history = (await resp.json())["data"]
            assert [chat["id"] for chat in history] == ["a", "b"]
            assert history[0]["title"] == "One again"
        finally:
            await client.close()

    asyncio.run(run())


def test_history_capped_at_fifty() -> None:
    async def run() -> None:
        client = await _create_client()
        try:
            for index in range(52):
                await client.post(
                    PATH,
                    params={"userId": "u1", "action": "save-chat"},
                    json={"id": str(index), "title": f"chat {index}"},
                )
            resp = await client.get(PATH, params={"userId": "u1", "action": "history"})
            history = (await resp.json())["data"]
            assert len(history) == 50
            assert history[0]["id"] == "51"
            assert history[-1]["id"] == "2"
        finally:
            await client.close()

    asyncio.run(run())


def test_delete_unknown_chat_and_clear() -> None:
    async def run() -> None:
        client = await _create_client()
        try:
            resp = await client.delete(
                PATH, params={"userId": "u1", "action": "delete-chat", "chatId": "x"}
            )
            assert resp.status == 200
            assert await resp.json() == {"success": True, "message": "Chat deleted"}

            await client.post(
                PATH, params={"userId": "u1", "action": "save-chat"}, json={"id": "1"}
            )
            await client.post(
                PATH, params={"userId": "u1", "action": "save-chat"}, json={"id": "2"}
            )
            await client.delete(
                PATH, params={"userId": "u1", "action": "delete-chat", "chatId": "x"}
            )
            resp = await client.get(PATH, params={"userId": "u1", "action": "history"})
            assert [chat["id"] for chat in (await resp.json())["data"]] == ["2", "1"]

            await client.delete(
                PATH, params={"userId": "u1", "action": "delete-chat", "chatId": "2"}
            )
            resp = await client.get(PATH, params={"userId": "u1", "action": "history"})
            assert [chat["id"] for chat in (await resp.json())["data"]] == ["1"]

            resp = await client.delete(PATH, params={"userId": "u1", "action": "clear-history"})
            assert await resp.json() == {"success": True, "message": "History cleared"}
            resp = await client.get(PATH, params={"userId": "u1", "action": "history"})
            assert await resp.json() == {"success": True, "data": []}
        finally:
            await client.close()

    asyncio.run(run())


def test_settings_roundtrip_and_default() -> None:
    async def run() -> None:
        client = await _create_client()
        try:
            resp = await client.get(PATH, params={"userId": "u2", "action": "settings"})
            assert await resp.json() == {"success": True, "data": {}}

            settings = {"maxTokens": 1000, "temperature": 0.3, "showTimestamps": False}
            resp = await client.post(
                PATH, params={"userId": "u2", "action": "save-settings"}, json=settings
            )
            assert await resp.json() == {"success": True, "message": "Settings saved"}

            resp = await client.get(PATH, params={"userId": "u2", "action": "settings"})
            assert await resp.json() == {"success": True, "data": settings}
        finally:
            await client.close()

    asyncio.run(run())


def test_users_are_isolated_and_anonymous_shares_bucket() -> None:
    async def run() -> None:
        client = await _create_client()
        try:
            await client.post(PATH, params={"userId": "u1", "action": "save-chat"}, json={"id": "1"})
            await client.post(PATH, params={"action": "save-chat"}, json={"id": "anon"})

            resp = await client.get(PATH, params={"userId": "u3", "action": "history"})
            assert (await resp.json())["data"] == []

            resp = await client.get(PATH, params={"action": "history"})
            assert [chat["id"] for chat in (await resp.json())["data"]] == ["anon"]

            resp = await client.get(PATH, params={"userId": "anonymous", "action": "history"})
            assert [chat["id"] for chat in (await resp.json())["data"]] == ["anon"]
        finally:
            await client.close()

    asyncio.run(run())


def test_required_user_id_rejects_missing() -> None:
    async def run() -> None:
        client = await _create_client(require_user_id=True)
        try:
            resp = await client.get(PATH, params={"action": "history"})
            assert resp.status == 400
            payload = await resp.json()
            assert payload["error"] == "Invalid request"
        finally:
            await client.close()

    asyncio.run(run())


def test_options_preflight() -> None:
    async def run() -> None:
        client = await _create_client()
        try:
            resp = await client.options(PATH)
            assert resp.status == 200
            assert await resp.text() == ""
            assert resp.headers["Access-Control-Allow-Origin"] == "*"
            assert "DELETE" in resp.headers["Access-Control-Allow-Methods"]
        finally:
            await client.close()

    asyncio.run(run())


def test_unsupported_method_and_invalid_action() -> None:
    async def run() -> None:
        client = await _create_client()
        try:
            resp = await client.put(PATH, params={"userId": "u1", "action": "history"})
            assert resp.status == 405
            assert await resp.json() == {"error": "Method not allowed"}

            resp = await client.get(PATH, params={"userId": "u1", "action": "bogus"})
            assert resp.status == 400
            assert await resp.json() == {"error": "Invalid action"}

            resp = await client.get(PATH, params={"userId": "u1", "action": "save-chat"})
            assert resp.status == 400

            resp = await client.delete(PATH, params={"userId": "u1"})
            assert resp.status == 400
        finally:
            await client.close()

    asyncio.run(run())


def test_malformed_json_body_returns_500() -> None:
    async def run() -> None:
        client = await _create_client()
        try:
            resp = await client.post(
                PATH,
                params={"userId": "u1", "action": "save-chat"},
                data="{not json",
                headers={"Content-Type": "application/json"},
            )
            assert resp.status == 500
            payload = await resp.json()
            assert payload["error"] == "Internal server error"
            assert payload["message"]
        finally:
            await client.close()

    asyncio.run(run())


def test_status_endpoint() -> None:
    async def run() -> None:
        client = await _create_client()
        try:
            resp = await client.get("/")
            assert resp.status == 200
            assert (await resp.json())["endpoint"] == PATH
        finally:
            await client.close()

    asyncio.run(run())
