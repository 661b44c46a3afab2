"""SQLite connection management for the record table."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from threading import Lock
from typing import Dict


class SQLiteManager:
    """Manage SQLite connections with basic schema guarantees."""

    def __init__(self) -> None:
        self._connections: Dict[Path, sqlite3.Connection] = {}
        self._lock = Lock()

    def connect(self, path: Path) -> sqlite3.Connection:
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            if path not in self._connections:
                conn = sqlite3.connect(path, check_same_thread=False)
                conn.row_factory = sqlite3.Row
                self._connections[path] = conn
                self._ensure_schema(conn)
            return self._connections[path]

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS job_records (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL DEFAULT '',
                company_name TEXT NOT NULL DEFAULT '',
                location TEXT NOT NULL DEFAULT '',
                job_url TEXT NOT NULL DEFAULT '',
                pay TEXT NOT NULL DEFAULT '',
                contract_type TEXT NOT NULL DEFAULT '',
                source TEXT NOT NULL DEFAULT '',
                composite_match TEXT NOT NULL DEFAULT '',
                rationale TEXT NOT NULL DEFAULT '',
                generated_at TEXT NOT NULL DEFAULT ''
            )
            """
        )
        conn.commit()

    def close(self, path: Path) -> None:
        with self._lock:
            conn = self._connections.pop(path, None)
        if conn is not None:
            conn.close()

    def close_all(self) -> None:
        with self._lock:
            for conn in self._connections.values():
                conn.close()
            self._connections.clear()


__all__ = ["SQLiteManager"]
