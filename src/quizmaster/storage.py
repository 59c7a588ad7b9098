"""Key-value backends for the progress store."""

import json
import logging
import sqlite3
from typing import Any, Dict

logger = logging.getLogger(__name__)


class MemoryStore:
    """Dict-backed store. Values are JSON-encoded so they behave like persisted ones."""

    def __init__(self, initial: Dict[str, Any] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.save(key, value)

    def load(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    def save(self, key: str, value: Any):
        self._data[key] = json.dumps(value, ensure_ascii=False)

    def put_raw(self, key: str, raw: str):
        """Store an undecoded value, e.g. to simulate corrupted data."""
        self._data[key] = raw


class SQLiteStore:
    """Persists JSON values in a single SQLite key-value table."""

    def __init__(self, db_path: str = "quizmaster.db"):
        self.db_path = db_path
        self._init_db()

    def _init_db(self):
        conn = sqlite3.connect(self.db_path)
        try:
            c = conn.cursor()
            c.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
            conn.commit()
        except sqlite3.DatabaseError as e:
            logger.error(f"Store DB at {self.db_path} is unusable: {e}")
            return
        finally:
            conn.close()
        logger.info(f"Store DB initialized at {self.db_path}")

    def load(self, key: str, default: Any = None) -> Any:
        """Return the decoded value for ``key``; raises ValueError on undecodable data."""
        conn = sqlite3.connect(self.db_path)
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.DatabaseError as e:
            raise ValueError(f"cannot read '{key}' from {self.db_path}: {e}") from e
        finally:
            conn.close()
        if row is None:
            return default
        return json.loads(row[0])

    def save(self, key: str, value: Any):
        conn = sqlite3.connect(self.db_path)
        try:
            with conn:
                conn.execute(
                    "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                    (key, json.dumps(value, ensure_ascii=False)),
                )
        finally:
            conn.close()

    def put_raw(self, key: str, raw: str):
        conn = sqlite3.connect(self.db_path)
        try:
            with conn:
                conn.execute("INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, raw))
        finally:
            conn.close()
