"""Record store Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Sequence

from ..models import EvaluationResult, Job

HEADER: tuple[str, ...] = (
    "title",
    "company_name",
    "location",
    "job_url",
    "pay",
    "contract_type",
    "source",
    "composite_match",
    "rationale",
    "generated_at",
)


def _format_score(value: int | float | None) -> str:
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _format_time(value: datetime | None) -> str:
    return value.isoformat() if value else ""


def job_to_row(job: Job, result: EvaluationResult | None) -> list[str]:
    """Render one row in :data:`HEADER` column order."""

    result = result or EvaluationResult()
    return [
        job.title,
        job.company_name,
        job.location,
        job.job_url,
        job.pay,
        job.contract_type,
        job.source,
        _format_score(result.composite_match),
        result.rationale,
        _format_time(result.generated_at),
    ]


class RecordStore(ABC):
    """Flat, append-only store of previously seen postings."""

    @abstractmethod
    def read_all_rows(self) -> list[list[str]]:
        """Return all rows, header first."""

    @abstractmethod
    def append_rows(self, rows: Sequence[Sequence[str]]) -> None:
        """Append rows after the existing content."""

    @abstractmethod
    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["HEADER", "RecordStore", "job_to_row"]
