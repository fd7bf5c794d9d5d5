from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Protocol

from config.storage_config import StorageConfig


class BlobStore(Protocol):
    name: str

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryBlobStore:
    def __init__(self, name: str) -> None:
        self.name = name
        self._blobs: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._blobs.get(key)

    def set(self, key: str, value: str) -> None:
        self._blobs[key] = value

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)


class SQLiteBlobStore:
    """Блобы одного логического хранилища в общей SQLite-базе."""

    def __init__(self, db_path: Path, name: str) -> None:
        self._db_path = db_path
        self.name = name
        self._initialize_schema()

    def get(self, key: str) -> str | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM blobs WHERE store = ? AND key = ?",
                (self.name, key),
            ).fetchone()
        if row is None:
            return None
        return str(row["value"])

    def set(self, key: str, value: str) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO blobs (store, key, value)
                VALUES (?, ?, ?)
                ON CONFLICT(store, key)
                DO UPDATE SET value=excluded.value
                """,
                (self.name, key, value),
            )
            conn.commit()

    def delete(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM blobs WHERE store = ? AND key = ?", (self.name, key))
            conn.commit()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _initialize_schema(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS blobs (
                    store TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    PRIMARY KEY (store, key)
                )
                """,
            )
            conn.commit()


def get_store(config: StorageConfig) -> BlobStore:
    if config.backend == "memory":
        return InMemoryBlobStore(config.store_name)
    return SQLiteBlobStore(config.db_path, config.store_name)
