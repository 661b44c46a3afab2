"""Composite-key deduplication against previously written rows."""

from __future__ import annotations

from typing import Iterable, Sequence

from ..logging_conf import get_logger
from .models import Job
from .normalize import normalize


def composite_key(title: str | None, company_name: str | None, location: str | None) -> str:
    return f"{normalize(title)}_{normalize(company_name)}_{normalize(location)}"


def row_key(row: Sequence[str]) -> str:
    """Key for a stored row whose first three columns are title, company, location."""

    cells = list(row[:3]) + [""] * (3 - len(row[:3]))
    return composite_key(*(cell or "" for cell in cells))


def job_key(job: Job) -> str:
    return composite_key(job.title, job.company_name, job.location)


def build_existing_index(existing_rows: Iterable[Sequence[str]]) -> frozenset[str]:
    return frozenset(row_key(row) for row in existing_rows)


def filter_new(existing_rows: Iterable[Sequence[str]], candidates: Iterable[Job]) -> list[Job]:
    """Return candidates whose composite key is absent from ``existing_rows``.

    Within the candidate batch the last record sharing a key wins, placed at
    the position where that key was first seen.
    """

    logger = get_logger("dedup")
    existing = build_existing_index(existing_rows)
    latest: dict[str, Job] = {}
    for job in candidates:
        latest[job_key(job)] = job
    unique = [job for key, job in latest.items() if key not in existing]
    logger.info(
        "dedup_complete",
        candidates=len(latest),
        existing=len(existing),
        new=len(unique),
    )
    return unique


__all__ = ["build_existing_index", "composite_key", "filter_new", "job_key", "row_key"]
