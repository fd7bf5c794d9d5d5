from __future__ import annotations

import sqlite3
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "OPENROUTER_API_KEY",
        "HITEK_HTTP_HOST",
        "HITEK_HTTP_PORT",
        "HITEK_HTTP_MAX_REQUEST_BYTES",
        "HITEK_STORAGE_BACKEND",
        "HITEK_STORAGE_NAME",
        "HITEK_STORAGE_DB_PATH",
        "HITEK_REQUIRE_USER_ID",
        "HITEK_DATA_DIR",
        "HITEK_STORAGE_URL",
        "HITEK_USER_ID",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _close_sqlite_connections(monkeypatch: pytest.MonkeyPatch) -> None:
    connections: list[sqlite3.Connection] = []
    original_connect = sqlite3.connect

    def _connect(*args: object, **kwargs: object) -> sqlite3.Connection:
        conn = original_connect(*args, **kwargs)
        connections.append(conn)
        return conn

    monkeypatch.setattr(sqlite3, "connect", _connect)

    yield

    for conn in connections:
        conn.close()
