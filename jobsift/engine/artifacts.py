"""Local artifacts kept for audit and replay of a pipeline run."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Iterable

from .models import RankedMatch, RawRecordBatch


def iso_stamp(moment: datetime | None = None) -> str:
    """ISO-8601 basic-format UTC timestamp that is safe inside file names."""

    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.strftime("%Y%m%dT%H%M%S.") + f"{moment.microsecond // 1000:03d}Z"


class ArtifactStore:
    """Write raw scrape output, batch files and ranked snapshots under one root."""

    def __init__(self, base_dir: Path, run_tag: str | None = None) -> None:
        self.base_dir = base_dir
        self.run_tag = run_tag or iso_stamp()
        self.raw_dir = base_dir / "raw"
        self.batches_dir = base_dir / "batches"
        self.debug_dir = base_dir / "debug"
        for directory in (self.raw_dir, self.batches_dir, self.debug_dir):
            directory.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()

    def write_raw_batch(
        self, input_name: str, batch: RawRecordBatch, completed_at: datetime | None = None
    ) -> Path:
        stem = Path(input_name).stem
        path = self.raw_dir / f"{stem}_output_{iso_stamp(completed_at)}.json"
        with self._lock:
            suffix = 1
            while path.exists():
                path = self.raw_dir / f"{stem}_output_{iso_stamp(completed_at)}-{suffix}.json"
                suffix += 1
            path.write_text(
                json.dumps(batch.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8"
            )
        return path

    def write_batch_requests(self, lines: Iterable[dict[str, Any]]) -> Path:
        path = self.batches_dir / f"batch_requests_{self.run_tag}.jsonl"
        with path.open("w", encoding="utf-8") as stream:
            for line in lines:
                stream.write(json.dumps(line, ensure_ascii=False))
                stream.write("\n")
        return path

    def write_batch_output(self, content: str) -> Path:
        path = self.batches_dir / f"batch_output_{self.run_tag}.jsonl"
        path.write_text(content, encoding="utf-8")
        return path

    def write_batch_errors(self, content: str) -> Path:
        path = self.batches_dir / f"batch_errors_{self.run_tag}.jsonl"
        path.write_text(content, encoding="utf-8")
        return path

    def write_ranked_snapshot(self, matches: Iterable[RankedMatch]) -> Path:
        path = self.debug_dir / f"ranked_{self.run_tag}.json"
        payload = [
            {"job": match.job.to_dict(), "result": match.result.to_dict()} for match in matches
        ]
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    @staticmethod
    def load_raw_batch(path: Path) -> RawRecordBatch:
        payload = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"Raw artifact must contain an object: {path}")
        return RawRecordBatch.from_dict(payload)


__all__ = ["ArtifactStore", "iso_stamp"]
