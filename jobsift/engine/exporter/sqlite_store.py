"""SQLite table record store."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from ...infra.storage import SQLiteManager
from .base import HEADER, RecordStore

_COLUMNS = ", ".join(HEADER)
_PLACEHOLDERS = ", ".join("?" for _ in HEADER)


class SQLiteRecordStore(RecordStore):
    """Persist rows in an append-only ``job_records`` table."""

    def __init__(self, path: Path, manager: SQLiteManager | None = None) -> None:
        self.path = path
        self.manager = manager or SQLiteManager()
        self.conn = self.manager.connect(path)

    def read_all_rows(self) -> list[list[str]]:
        cursor = self.conn.execute(f"SELECT {_COLUMNS} FROM job_records ORDER BY id")
        return [list(HEADER)] + [[row[column] for column in HEADER] for row in cursor.fetchall()]

    def append_rows(self, rows: Sequence[Sequence[str]]) -> None:
        padded = [
            tuple((list(row) + [""] * len(HEADER))[: len(HEADER)]) for row in rows
        ]
        self.conn.executemany(
            f"INSERT INTO job_records({_COLUMNS}) VALUES ({_PLACEHOLDERS})", padded
        )
        self.conn.commit()

    def close(self) -> None:
        self.manager.close(self.path)


__all__ = ["SQLiteRecordStore"]
