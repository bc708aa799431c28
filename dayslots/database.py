from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path

SNAPSHOT_KEY = "time_slots"


class SlotStore:
    """Local sqlite file holding the day's slot snapshot and other settings."""

    def __init__(self, db_file: Path):
        self._db_file = Path(db_file)
        self._db_file.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_schema()

    @property
    def path(self) -> Path:
        return self._db_file

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_file, timeout=30)
        try:
            conn.row_factory = sqlite3.Row
            # Fails here, not at connect time, when the file is not a database.
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
        except sqlite3.Error:
            conn.close()
            raise
        return conn

    @contextmanager
    def _connection(self):
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._lock, self._connection() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS app_settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )
            conn.commit()

    def read_snapshot(self) -> str | None:
        """Serialized slot forest from the last save, or None before the first one."""
        return self.get_setting(SNAPSHOT_KEY)

    def write_snapshot(self, payload: str) -> None:
        self.set_setting(SNAPSHOT_KEY, payload)

    def get_setting(self, key: str, default: str | None = None) -> str | None:
        with self._lock, self._connection() as conn:
            row = conn.execute(
                "SELECT value FROM app_settings WHERE key = ?",
                (key,),
            ).fetchone()
        return default if row is None else str(row["value"])

    def set_setting(self, key: str, value: str) -> None:
        with self._lock, self._connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO app_settings(key, value) VALUES(?, ?)",
                (key, value),
            )
            conn.commit()

    def delete_setting(self, key: str) -> None:
        with self._lock, self._connection() as conn:
            conn.execute("DELETE FROM app_settings WHERE key = ?", (key,))
            conn.commit()
