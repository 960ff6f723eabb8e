from __future__ import annotations

import base64
import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from portfolio_app.core.config import AppConfig

LOGGER = logging.getLogger(__name__)


class StorageFault(RuntimeError):
    """Raised when the durable medium cannot be read or written."""


class StorageReadError(StorageFault):
    """Raised when a stored document cannot be read from the backend."""


class StorageWriteError(StorageFault):
    """Raised when a document cannot be written to the backend."""


class StorageQuotaExceededError(StorageWriteError):
    """Raised when a write would push the backend past its byte quota."""


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...

    def close(self) -> None:
        ...


def _size_of(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


_BYTES_TAG = "__bytes__"


def _encode_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {_BYTES_TAG: base64.b64encode(bytes(value)).decode("ascii")}
    raise TypeError(f"Object of type {type(value).__name__} cannot be stored as JSON")


def _decode_object(document: dict[str, Any]) -> Any:
    if len(document) == 1 and isinstance(document.get(_BYTES_TAG), str):
        return base64.b64decode(document[_BYTES_TAG])
    return document


class MemoryKeyValueStore:
    """Dict-backed store with an optional byte quota, like browser local storage."""

    def __init__(self, *, quota_bytes: int = 0, initial: dict[str, str] | None = None) -> None:
        self._quota_bytes = max(0, int(quota_bytes))
        self._lock = threading.Lock()
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            if self._quota_bytes:
                used = sum(_size_of(k, v) for k, v in self._items.items() if k != key)
                if used + _size_of(key, value) > self._quota_bytes:
                    raise StorageQuotaExceededError(
                        f"Storage quota of {self._quota_bytes} bytes exceeded while writing '{key}'."
                    )
            self._items[key] = value

    def remove_item(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._items)

    def close(self) -> None:
        return None


class SqliteKeyValueStore:
    """Single-table key-value store in a local SQLite file."""

    def __init__(self, db_path: str, *, quota_bytes: int = 0) -> None:
        self.db_path = str(db_path)
        self._quota_bytes = max(0, int(quota_bytes))
        self._lock = threading.Lock()
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.execute(
                """CREATE TABLE IF NOT EXISTS kv_store(
                   key TEXT PRIMARY KEY,
                   value TEXT NOT NULL,
                   updated_at TEXT)"""
            )
            self.conn.commit()
        except sqlite3.Error as exc:
            raise StorageFault(f"Could not open local store at {self.db_path}: {exc}") from exc

    def get_item(self, key: str) -> str | None:
        try:
            with self._lock:
                row = self.conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageReadError(f"Could not read '{key}': {exc}") from exc
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self._lock:
                if self._quota_bytes:
                    row = self.conn.execute(
                        "SELECT coalesce(sum(length(CAST(key AS BLOB)) + length(CAST(value AS BLOB))), 0) "
                        "FROM kv_store WHERE key != ?",
                        (key,),
                    ).fetchone()
                    if int(row[0]) + _size_of(key, value) > self._quota_bytes:
                        raise StorageQuotaExceededError(
                            f"Storage quota of {self._quota_bytes} bytes exceeded while writing '{key}'."
                        )
                self.conn.execute(
                    """INSERT INTO kv_store(key, value, updated_at)
                       VALUES (?, ?, ?)
                       ON CONFLICT(key)
                       DO UPDATE SET value=excluded.value,
                       updated_at=excluded.updated_at""",
                    (key, value, now),
                )
                self.conn.commit()
        except sqlite3.Error as exc:
            raise StorageWriteError(f"Could not write '{key}': {exc}") from exc

    def remove_item(self, key: str) -> None:
        try:
            with self._lock:
                self.conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                self.conn.commit()
        except sqlite3.Error as exc:
            raise StorageWriteError(f"Could not remove '{key}': {exc}") from exc

    def close(self) -> None:
        with self._lock:
            self.conn.close()


def build_key_value_store(config: AppConfig) -> KeyValueStore:
    if config.storage_backend == "memory":
        return MemoryKeyValueStore(quota_bytes=config.storage_quota_bytes)
    if config.storage_backend == "sqlite":
        return SqliteKeyValueStore(config.storage_path, quota_bytes=config.storage_quota_bytes)
    raise RuntimeError(f"Unsupported storage backend: {config.storage_backend}")


class DurableStore:
    """JSON documents over a key-value backend.

    Reads never raise: a missing, unreadable or malformed document yields the
    caller's fallback. Writes replace the whole document under one key and
    store ``bytes`` values as tagged base64 objects; any other non-JSON value
    is refused. A refused value or a backend failure raises StorageWriteError
    after logging; the backend keeps whatever it held before.
    """

    def __init__(self, backend: KeyValueStore) -> None:
        self.backend = backend

    def load(self, key: str, fallback: Any, *, expect: type | tuple[type, ...] | None = list) -> Any:
        try:
            raw = self.backend.get_item(key)
        except Exception:
            LOGGER.warning("Failed to read '%s' from storage; using fallback.", key, exc_info=True)
            return fallback
        if raw is None or raw == "":
            return fallback
        try:
            value = json.loads(raw, object_hook=_decode_object)
        except (TypeError, ValueError):
            LOGGER.warning("Stored document '%s' is not valid JSON; using fallback.", key, exc_info=True)
            return fallback
        if expect is not None and not isinstance(value, expect):
            LOGGER.warning(
                "Stored document '%s' has unexpected type %s; using fallback.",
                key,
                type(value).__name__,
            )
            return fallback
        return value

    def save(self, key: str, value: Any) -> None:
        try:
            payload = json.dumps(value, default=_encode_value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            LOGGER.error("Failed to serialize '%s' for storage.", key, exc_info=True)
            raise StorageWriteError(f"Could not serialize '{key}': {exc}") from exc
        try:
            self.backend.set_item(key, payload)
        except StorageWriteError:
            LOGGER.error("Failed to save '%s' to storage.", key, exc_info=True)
            raise
        except Exception as exc:
            LOGGER.error("Failed to save '%s' to storage.", key, exc_info=True)
            raise StorageWriteError(f"Could not write '{key}': {exc}") from exc
        LOGGER.debug(
            "Saved '%s' to storage.",
            key,
            extra={"event": "storage_save", "storage_key": key, "bytes": len(payload)},
        )

    def remove(self, key: str) -> None:
        try:
            self.backend.remove_item(key)
        except StorageWriteError:
            LOGGER.error("Failed to remove '%s' from storage.", key, exc_info=True)
            raise
        except Exception as exc:
            LOGGER.error("Failed to remove '%s' from storage.", key, exc_info=True)
            raise StorageWriteError(f"Could not remove '{key}': {exc}") from exc

    def close(self) -> None:
        try:
            self.backend.close()
        except Exception:
            LOGGER.warning("Failed to close storage backend cleanly.", exc_info=True)
