"""Records passed between pipeline stages."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


@dataclass(frozen=True, slots=True)
class SourceTask:
    """One remote scrape run, built from one input configuration file."""

    task_id: str
    source_config_id: str
    source_name: str
    input_payload: dict[str, Any] = field(hash=False)


@dataclass(slots=True)
class RawRecordBatch:
    """Vendor-specific items produced by one successful scrape task."""

    source_config_id: str
    source_name: str
    items: list[Any]

    def to_dict(self) -> dict[str, Any]:
        return {
            "actorId": self.source_config_id,
            "actorName": self.source_name,
            "items": self.items,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "RawRecordBatch":
        return cls(
            source_config_id=str(payload.get("actorId") or ""),
            source_name=str(payload.get("actorName") or ""),
            items=list(payload.get("items") or payload.get("unparsed_jobs") or []),
        )


@dataclass(frozen=True, slots=True)
class TaskFailure:
    source_id: str
    error_message: str


@dataclass(slots=True)
class FetchOutcome:
    results: list[RawRecordBatch]
    failures: list[TaskFailure]


@dataclass(frozen=True, slots=True)
class Job:
    """A posting projected into the common record shape."""

    title: str = ""
    company_name: str = ""
    location: str = ""
    job_url: str = ""
    pay: str = ""
    contract_type: str = ""
    description: str = ""
    source: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class ResultStatus(str, Enum):
    """How an evaluation result was obtained."""

    PARSED = "parsed"
    UNPARSED = "unparsed"
    MISSING = "missing"


@dataclass(slots=True)
class EvaluationResult:
    employer_fit: float | None = None
    candidate_fit: float | None = None
    composite_match: int | None = None
    rationale: str = ""
    generated_at: datetime | None = None
    status: ResultStatus = ResultStatus.MISSING

    def to_dict(self) -> dict[str, Any]:
        return {
            "employer_fit": self.employer_fit,
            "candidate_fit": self.candidate_fit,
            "composite_match": self.composite_match,
            "rationale": self.rationale,
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
            "status": self.status.value,
        }


class BatchStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {BatchStatus.COMPLETED, BatchStatus.FAILED, BatchStatus.CANCELLED, BatchStatus.EXPIRED}
)


@dataclass(frozen=True, slots=True)
class BatchJob:
    batch_id: str
    status: BatchStatus
    output_file_id: str | None = None
    error_file_id: str | None = None


@dataclass(frozen=True, slots=True)
class RankedMatch:
    job: Job
    result: EvaluationResult

    @property
    def sort_score(self) -> int:
        return self.result.composite_match or 0


__all__ = [
    "BatchJob",
    "BatchStatus",
    "EvaluationResult",
    "FetchOutcome",
    "Job",
    "RankedMatch",
    "RawRecordBatch",
    "ResultStatus",
    "SourceTask",
    "TaskFailure",
    "TERMINAL_STATUSES",
]
