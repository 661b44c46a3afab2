"""Record store SPI and implementations."""

from pathlib import Path

from ...config import RecordStoreKind
from .base import HEADER, RecordStore, job_to_row
from .csv_store import CsvRecordStore
from .sqlite_store import SQLiteRecordStore


def create_record_store(kind: RecordStoreKind, path: Path) -> RecordStore:
    if kind is RecordStoreKind.CSV:
        return CsvRecordStore(path)
    if kind is RecordStoreKind.SQLITE:
        return SQLiteRecordStore(path)
    raise ValueError(f"Unsupported record store: {kind}")


__all__ = [
    "CsvRecordStore",
    "HEADER",
    "RecordStore",
    "SQLiteRecordStore",
    "create_record_store",
    "job_to_row",
]
