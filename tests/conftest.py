"""Shared fixtures: temporary project home, job factory and fake collaborators."""

from __future__ import annotations

import json
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Iterable, Sequence

import pytest

from jobsift.config import ConfigLocator, ConfigRepository, SourceConfig
from jobsift.engine import ArtifactStore
from jobsift.engine.models import BatchJob, BatchStatus, Job
from jobsift.errors import ScrapeTaskError

ZIP_ACTOR = "vQO5g45mnm8jwognj"
INDEED_ACTOR = "qA8rz8tR61HdkfTBL"


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("JOBSIFT_HOME", str(tmp_path))
    monkeypatch.delenv("APIFY_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository


@pytest.fixture
def artifacts(tmp_path: Path) -> ArtifactStore:
    return ArtifactStore(tmp_path / "artifacts", run_tag="20240101T000000.000Z")


@pytest.fixture
def make_job() -> Callable[..., Job]:
    def _builder(**overrides: Any) -> Job:
        base: dict[str, Any] = {
            "title": "Data Engineer",
            "company_name": "Acme",
            "location": "Austin, TX",
            "job_url": "https://example.com/jobs/1",
            "pay": "$120K",
            "contract_type": "Full-time",
            "description": "Build pipelines.",
            "source": "ZipRecruiter via Apify https://console.apify.com/actors/x/information/latest/readme",
        }
        base.update(overrides)
        return Job(**base)

    return _builder


@pytest.fixture
def sample_sources() -> list[SourceConfig]:
    return [
        SourceConfig(actor_id=ZIP_ACTOR, name="memo23/apify-ziprecruiter-scraper"),
        SourceConfig(actor_id=INDEED_ACTOR, name="curious_coder/indeed-scraper"),
    ]


def write_input(directory: Path, name: str, payload: dict[str, Any] | None = None) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(json.dumps(payload or {"search": "python"}), encoding="utf-8")
    return path


def zip_item(title: str, company: str, city: str = "Austin, TX") -> dict[str, Any]:
    return {
        "Title": title,
        "OrgName": company,
        "City": city,
        "Href": f"https://www.ziprecruiter.com/jobs/{title.lower().replace(' ', '-')}",
        "FormattedSalaryShort": "$100K",
        "EmploymentType": "Full-time",
        "description": f"{title} at {company}",
    }


class FakeScrapeClient:
    """Return canned items per actor; ``fail_on`` payload markers raise."""

    def __init__(self, items: dict[str, list[Any]] | None = None, fail_on: Sequence[str] = ()) -> None:
        self.items = items or {}
        self.fail_on = set(fail_on)
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._lock = Lock()

    def run_scrape_task(self, actor_id: str, payload: dict[str, Any]) -> list[Any]:
        with self._lock:
            self.calls.append((actor_id, payload))
        if payload.get("marker") in self.fail_on:
            raise ScrapeTaskError(f"run failed for {payload.get('marker')}")
        return list(self.items.get(actor_id, []))


def output_line(custom_id: str, content: str) -> str:
    return json.dumps(
        {
            "id": f"batch_req_{custom_id}",
            "custom_id": custom_id,
            "response": {
                "status_code": 200,
                "body": {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]},
            },
            "error": None,
        }
    )


class FakeBatchClient:
    """Scripted batch platform: returns ``statuses`` in order, then the last one forever."""

    def __init__(
        self,
        statuses: Sequence[BatchStatus],
        output: str | None = None,
        errors: str | None = None,
    ) -> None:
        self.statuses = list(statuses)
        self.output = output
        self.errors = errors
        self.uploaded: list[str] = []
        self.status_calls = 0

    def create_file(self, content: str) -> str:
        self.uploaded.append(content)
        return f"file-in-{len(self.uploaded)}"

    def submit_batch(self, file_id: str) -> str:
        return "batch-1"

    def get_status(self, batch_id: str) -> BatchJob:
        index = min(self.status_calls, len(self.statuses) - 1)
        self.status_calls += 1
        status = self.statuses[index]
        return BatchJob(
            batch_id=batch_id,
            status=status,
            output_file_id="file-out" if status is BatchStatus.COMPLETED and self.output is not None else None,
            error_file_id="file-err" if status is BatchStatus.COMPLETED and self.errors is not None else None,
        )

    def read_file(self, file_id: str) -> str:
        if file_id == "file-out":
            return self.output or ""
        if file_id == "file-err":
            return self.errors or ""
        raise KeyError(file_id)


class FakeClock:
    """Monotonic clock advanced only by the injected sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scrape_client_factory() -> type[FakeScrapeClient]:
    return FakeScrapeClient


@pytest.fixture
def batch_client_factory() -> type[FakeBatchClient]:
    return FakeBatchClient


@pytest.fixture
def input_writer() -> Callable[..., Path]:
    return write_input


@pytest.fixture
def zip_item_builder() -> Callable[..., dict[str, Any]]:
    return zip_item


@pytest.fixture
def output_line_builder() -> Callable[[str, str], str]:
    return output_line
