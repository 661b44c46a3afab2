from __future__ import annotations

import json
import re
from datetime import datetime, timezone

from jobsift.engine.artifacts import ArtifactStore, iso_stamp
from jobsift.engine.models import EvaluationResult, RankedMatch, RawRecordBatch, ResultStatus


def test_iso_stamp_is_filename_safe() -> None:
    stamp = iso_stamp(datetime(2024, 3, 9, 7, 5, 1, 123456, tzinfo=timezone.utc))
    assert stamp == "20240309T070501.123Z"
    assert re.fullmatch(r"[0-9T.Z]+", stamp)


def test_raw_batch_round_trip_and_collision_suffix(artifacts: ArtifactStore) -> None:
    moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
    batch = RawRecordBatch("actor", "memo23/apify-ziprecruiter-scraper", [{"Title": "Cook"}])

    first = artifacts.write_raw_batch("actor_austin.json", batch, completed_at=moment)
    second = artifacts.write_raw_batch("actor_austin.json", batch, completed_at=moment)

    assert first.name == "actor_austin_output_20240101T000000.000Z.json"
    assert second != first
    assert ArtifactStore.load_raw_batch(second) == batch


def test_load_raw_batch_accepts_legacy_key(tmp_path) -> None:
    path = tmp_path / "legacy.json"
    path.write_text(
        json.dumps({"actorId": "a", "actorName": "curious_coder/indeed-scraper", "unparsed_jobs": [{"x": 1}]}),
        encoding="utf-8",
    )
    batch = ArtifactStore.load_raw_batch(path)
    assert batch.items == [{"x": 1}]
    assert batch.source_name == "curious_coder/indeed-scraper"


def test_ranked_snapshot_contains_status(artifacts: ArtifactStore, make_job) -> None:
    match = RankedMatch(job=make_job(), result=EvaluationResult(status=ResultStatus.MISSING))
    path = artifacts.write_ranked_snapshot([match])
    [entry] = json.loads(path.read_text(encoding="utf-8"))
    assert entry["job"]["title"] == "Data Engineer"
    assert entry["result"]["status"] == "missing"
    assert entry["result"]["composite_match"] is None
