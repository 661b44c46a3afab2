"""OpenAI Batch API adapter for the batch evaluator."""

from __future__ import annotations

from typing import Any

import structlog
from openai import OpenAI

from ..engine.models import BatchJob, BatchStatus

BATCH_ENDPOINT = "/v1/chat/completions"

_STATUS_MAP = {
    "validating": BatchStatus.QUEUED,
    "queued": BatchStatus.QUEUED,
    "in_progress": BatchStatus.IN_PROGRESS,
    "finalizing": BatchStatus.IN_PROGRESS,
    "cancelling": BatchStatus.IN_PROGRESS,
    "completed": BatchStatus.COMPLETED,
    "failed": BatchStatus.FAILED,
    "cancelled": BatchStatus.CANCELLED,
    "expired": BatchStatus.EXPIRED,
}


def map_status(value: str) -> BatchStatus:
    try:
        return _STATUS_MAP[value]
    except KeyError as exc:
        raise ValueError(f"Unknown batch status: {value}") from exc


class OpenAIBatchClient:
    """Thin wrapper over the ``files`` and ``batches`` resources."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        completion_window: str = "24h",
        client: Any | None = None,
    ) -> None:
        self._client = client or OpenAI(api_key=api_key)
        self.completion_window = completion_window
        self.logger = structlog.get_logger("jobsift").bind(component="openai_batch")

    def close(self) -> None:
        self._client.close()

    def create_file(self, content: str) -> str:
        uploaded = self._client.files.create(
            file=("batch_requests.jsonl", content.encode("utf-8")),
            purpose="batch",
        )
        self.logger.debug("batch_file_uploaded", file_id=uploaded.id, size=len(content))
        return uploaded.id

    def submit_batch(self, file_id: str) -> str:
        batch = self._client.batches.create(
            input_file_id=file_id,
            endpoint=BATCH_ENDPOINT,
            completion_window=self.completion_window,
        )
        return batch.id

    def get_status(self, batch_id: str) -> BatchJob:
        batch = self._client.batches.retrieve(batch_id)
        return BatchJob(
            batch_id=batch.id,
            status=map_status(batch.status),
            output_file_id=batch.output_file_id,
            error_file_id=batch.error_file_id,
        )

    def read_file(self, file_id: str) -> str:
        return self._client.files.content(file_id).text


__all__ = ["BATCH_ENDPOINT", "OpenAIBatchClient", "map_status"]
