"""Bulk inference job driver: build, submit, poll with backoff, collect."""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from enum import Enum
from threading import Event
from typing import Callable, Protocol, Sequence

from ...config import EvaluationConfig
from ...config.loader import RESUME_PLACEHOLDER
from ...errors import BatchCancelledError, BatchJobError, BatchTimeoutError, ConfigurationError
from ...logging_conf import get_logger
from ..artifacts import ArtifactStore
from ..models import BatchJob, BatchStatus, EvaluationResult, Job, ResultStatus
from .backoff import PollBackoff
from .prompts import build_request_line
from .response import DEFAULT_STRATEGIES, ParseStrategy, correlation_id, map_results


class InferenceBatchClient(Protocol):
    def create_file(self, content: str) -> str: ...

    def submit_batch(self, file_id: str) -> str: ...

    def get_status(self, batch_id: str) -> BatchJob: ...

    def read_file(self, file_id: str) -> str: ...


class EvaluatorState(str, Enum):
    BUILDING = "building"
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


_FAILURE_STATES = {
    BatchStatus.FAILED: EvaluatorState.FAILED,
    BatchStatus.CANCELLED: EvaluatorState.CANCELLED,
    BatchStatus.EXPIRED: EvaluatorState.EXPIRED,
}


class BatchEvaluator:
    """Score jobs against a candidate through one remote batch job.

    ``clock`` and ``sleep`` are injectable so polling can be simulated;
    setting ``cancel_event`` aborts the poll loop at the next sleep.
    """

    def __init__(
        self,
        client: InferenceBatchClient,
        artifacts: ArtifactStore,
        config: EvaluationConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], object] | None = None,
        now: Callable[[], datetime] | None = None,
        cancel_event: Event | None = None,
        strategies: Sequence[ParseStrategy] = DEFAULT_STRATEGIES,
    ) -> None:
        self.client = client
        self.artifacts = artifacts
        self.config = config or EvaluationConfig()
        self.backoff = PollBackoff(
            initial=self.config.poll_initial_interval,
            multiplier=self.config.poll_multiplier,
            maximum=self.config.poll_max_interval,
        )
        self.deadline_seconds = self.config.deadline_seconds
        self.cancel_event = cancel_event or Event()
        self._clock = clock
        self._sleep = sleep or self.cancel_event.wait
        self._now = now or (lambda: datetime.now(timezone.utc))
        self.strategies = tuple(strategies)
        self.state = EvaluatorState.BUILDING
        self.batch_id: str | None = None
        self._submitted_at: float | None = None
        self.logger = get_logger("evaluator")

    # ------------------------------------------------------------------
    def evaluate(self, jobs: Sequence[Job], candidate_summary: str) -> list[EvaluationResult]:
        """Return exactly one result per job, in input order."""

        if not candidate_summary or RESUME_PLACEHOLDER in candidate_summary:
            raise ConfigurationError("Candidate summary is empty")
        if not jobs:
            return []
        content = self.build(jobs, candidate_summary)
        batch_id = self.submit(content)
        job = self.poll(batch_id)
        return self.collect(job, len(jobs))

    def build(self, jobs: Sequence[Job], candidate_summary: str) -> str:
        self.state = EvaluatorState.BUILDING
        lines = [
            build_request_line(correlation_id(index), job, candidate_summary, self.config.model)
            for index, job in enumerate(jobs)
        ]
        path = self.artifacts.write_batch_requests(lines)
        self.logger.info("batch_requests_built", requests=len(lines), path=str(path))
        return "".join(json.dumps(line, ensure_ascii=False) + "\n" for line in lines)

    def submit(self, content: str) -> str:
        file_id = self.client.create_file(content)
        batch_id = self.client.submit_batch(file_id)
        self.batch_id = batch_id
        self._submitted_at = self._clock()
        self.state = EvaluatorState.SUBMITTED
        self.logger.info("batch_submitted", batch_id=batch_id, input_file_id=file_id)
        return batch_id

    def poll(self, batch_id: str) -> BatchJob:
        """Poll until a terminal status; raise on failure, deadline or cancellation."""

        self.state = EvaluatorState.POLLING
        started = self._submitted_at if self._submitted_at is not None else self._clock()
        interval = self.backoff.initial
        polls = 0
        while True:
            elapsed = self._clock() - started
            if elapsed > self.deadline_seconds:
                self.logger.error("batch_deadline_exceeded", batch_id=batch_id, elapsed=elapsed)
                raise BatchTimeoutError(batch_id, self.deadline_seconds)
            job = self.client.get_status(batch_id)
            polls += 1
            self.logger.debug("batch_polled", batch_id=batch_id, status=job.status.value, polls=polls)
            if job.status is BatchStatus.COMPLETED:
                self.state = EvaluatorState.COMPLETED
                self.logger.info("batch_completed", batch_id=batch_id, polls=polls)
                return job
            if job.status in _FAILURE_STATES:
                self.state = _FAILURE_STATES[job.status]
                self.logger.error("batch_terminal_failure", batch_id=batch_id, status=job.status.value)
                raise BatchJobError(batch_id, job.status.value)
            self._sleep(interval)
            if self.cancel_event.is_set():
                self.logger.warning("batch_polling_cancelled", batch_id=batch_id)
                raise BatchCancelledError(batch_id)
            interval = self.backoff.next_interval(interval)

    def collect(self, job: BatchJob, count: int) -> list[EvaluationResult]:
        if job.error_file_id:
            errors = self.client.read_file(job.error_file_id)
            path = self.artifacts.write_batch_errors(errors)
            self.logger.warning(
                "batch_partial_errors",
                batch_id=job.batch_id,
                error_file_id=job.error_file_id,
                path=str(path),
            )
        if job.output_file_id:
            content = self.client.read_file(job.output_file_id)
            path = self.artifacts.write_batch_output(content)
            self.logger.info("batch_output_saved", batch_id=job.batch_id, path=str(path))
        else:
            self.logger.warning("batch_output_missing", batch_id=job.batch_id)
            content = ""
        results = map_results(content, count, self._now(), self.strategies)
        missing = [
            correlation_id(index)
            for index, result in enumerate(results)
            if result.status is ResultStatus.MISSING
        ]
        if missing:
            self.logger.warning(
                "batch_results_missing", batch_id=job.batch_id, missing=len(missing), ids=missing[:20]
            )
        return results


__all__ = ["BatchEvaluator", "EvaluatorState", "InferenceBatchClient"]
