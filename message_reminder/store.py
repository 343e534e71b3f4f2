"""Key/value persistence backends for the reminder snapshot."""

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_STORE_KEY = "message-reminders"


class StoreAdapter(ABC):
    """
    Synchronous key/value store holding opaque string blobs.

    Callers overwrite a key wholesale on every write; there are no
    partial updates.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the blob stored under key, or None if absent."""

    @abstractmethod
    def set(self, key: str, blob: str) -> None:
        """Store blob under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Missing keys are ignored."""

    def close(self) -> None:
        """Release backend resources."""


class MemoryStore(StoreAdapter):
    """Dict-backed store. Contents are lost with the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, blob: str) -> None:
        self._data[key] = blob

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(StoreAdapter):
    """
    Store backed by a single JSON document of {key: blob}.

    Writes go to a temp file first and are then renamed over the real
    file, so a crash mid-write never leaves a truncated document.
    """

    def __init__(self, path: str = "~/.local/share/message-reminder/reminders.json"):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read store file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Store file {self.path} does not contain an object, ignoring it")
            return {}
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        temp_file = self.path.with_suffix(".tmp")
        try:
            with open(temp_file, "w") as f:
                json.dump(data, f, indent=2)
            # Atomic rename (POSIX guarantees atomicity)
            temp_file.rename(self.path)
        except OSError:
            if temp_file.exists():
                temp_file.unlink()
            raise

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, blob: str) -> None:
        data = self._read_all()
        data[key] = blob
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


class SqliteStore(StoreAdapter):
    """Store backed by a SQLite key/value table (WAL mode)."""

    def __init__(self, db_path: str = "~/.local/share/message-reminder/reminders.db"):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Persistent connection shared across threads, serialized by the lock
        self._db_conn: Optional[sqlite3.Connection] = None
        self._db_lock = threading.Lock()
        self._init_db()

    def _init_db(self):
        """Initialize SQLite database schema with persistent connection."""
        self._db_conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._db_conn.execute("PRAGMA journal_mode=WAL")
        self._db_conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TIMESTAMP NOT NULL
            )
        """)
        self._db_conn.commit()
        logger.info(f"Reminder store database initialized at {self.db_path} (WAL mode enabled)")

    def _execute(self, query: str, params=()) -> sqlite3.Cursor:
        with self._db_lock:
            cursor = self._db_conn.cursor()
            cursor.execute(query, params)
            self._db_conn.commit()
            return cursor

    def get(self, key: str) -> Optional[str]:
        with self._db_lock:
            cursor = self._db_conn.cursor()
            cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = cursor.fetchone()
        return row[0] if row else None

    def set(self, key: str, blob: str) -> None:
        self._execute("""
            INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
        """, (key, blob, datetime.now().isoformat()))

    def delete(self, key: str) -> None:
        self._execute("DELETE FROM kv_store WHERE key = ?", (key,))

    def close(self) -> None:
        if self._db_conn:
            self._db_conn.close()
            self._db_conn = None


def create_store(config: Optional[dict] = None) -> StoreAdapter:
    """
    Build the store backend named in the ``store`` config section.

    Args:
        config: Full application config dict

    Returns:
        StoreAdapter instance (sqlite when unspecified)
    """
    store_config = (config or {}).get("store", {})
    backend = store_config.get("backend", "sqlite")

    if backend == "memory":
        logger.warning("Using memory store, reminders will not survive a restart")
        return MemoryStore()
    if backend == "json":
        return JsonFileStore(store_config.get("path", "~/.local/share/message-reminder/reminders.json"))
    if backend == "sqlite":
        return SqliteStore(store_config.get("path", "~/.local/share/message-reminder/reminders.db"))

    raise ValueError(f"Unknown store backend: {backend}")
