"""CSV file record store."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Sequence

from .base import HEADER, RecordStore


class CsvRecordStore(RecordStore):
    """Append rows to a local CSV file, writing the header on creation."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists() or self.path.stat().st_size == 0:
            with self.path.open("w", encoding="utf-8", newline="") as stream:
                csv.writer(stream).writerow(HEADER)

    def read_all_rows(self) -> list[list[str]]:
        with self.path.open("r", encoding="utf-8", newline="") as stream:
            return [row for row in csv.reader(stream)]

    def append_rows(self, rows: Sequence[Sequence[str]]) -> None:
        with self.path.open("a", encoding="utf-8", newline="") as stream:
            writer = csv.writer(stream)
            for row in rows:
                writer.writerow(list(row))

    def close(self) -> None:
        return


__all__ = ["CsvRecordStore"]
