# renovation_tracker/stores/sqlite_store.py
import sqlite3
from pathlib import Path

from renovation_tracker.stores.base import BaseStore


def _init_db(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS kv (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        """
    )
    conn.commit()


class SQLiteStore(BaseStore):
    """Key-value store backed by a single ``kv`` table in a SQLite file."""

    def __init__(self, path):
        self.path = Path(path)

    def _read(self, key):
        if not self.path.exists():
            return None
        conn = sqlite3.connect(self.path)
        try:
            _init_db(conn)
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        return row[0] if row else None

    def _write(self, key, raw):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path)
        try:
            _init_db(conn)
            conn.execute(
                """
                INSERT INTO kv (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, raw),
            )
            conn.commit()
        finally:
            conn.close()

    def __repr__(self):
        return f"SQLiteStore({str(self.path)!r})"
