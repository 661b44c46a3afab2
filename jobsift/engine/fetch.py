"""Bounded-concurrency execution of independent scrape tasks."""

from __future__ import annotations

import json
import re
from concurrent.futures import Future, wait
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import Any, Iterable, Protocol, Sequence

from ..config import SourceConfig
from ..errors import ConfigurationError
from ..logging_conf import get_logger
from .artifacts import ArtifactStore
from .models import FetchOutcome, RawRecordBatch, SourceTask, TaskFailure
from .thread_pool import ThreadPoolManager

DEFAULT_CONCURRENCY = 7


class ScrapeClient(Protocol):
    def run_scrape_task(self, actor_id: str, payload: dict[str, Any]) -> list[Any]:
        """Run one scrape and return its raw items."""


class TaskProgress(Protocol):
    def start(self, total: int) -> None: ...

    def advance(self, *, success: bool, label: str | None = None) -> None: ...

    def close(self) -> None: ...


def discover_tasks(inputs_dir: Path, sources: Iterable[SourceConfig]) -> list[SourceTask]:
    """Build one task per ``<actor_id>_*.json`` input file of each source."""

    logger = get_logger("fetch")
    if not inputs_dir.exists():
        logger.warning("inputs_dir_missing", path=str(inputs_dir))
        return []
    tasks: list[SourceTask] = []
    files = sorted(path for path in inputs_dir.iterdir() if path.is_file())
    for source in sources:
        pattern = re.compile(rf"^{re.escape(source.actor_id)}_.*\.json$")
        for path in files:
            if not pattern.match(path.name):
                continue
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                raise ConfigurationError(f"Unreadable input file {path}: {exc}") from exc
            if not isinstance(payload, dict):
                raise ConfigurationError(f"Input file must contain a JSON object: {path}")
            tasks.append(
                SourceTask(
                    task_id=path.name,
                    source_config_id=source.actor_id,
                    source_name=source.name,
                    input_payload=payload,
                )
            )
    if not tasks:
        logger.warning("no_input_files", path=str(inputs_dir))
    return tasks


class FetchOrchestrator:
    """Run scrape tasks on a fixed-size pool, isolating per-task failures."""

    def __init__(
        self,
        scrape_client: ScrapeClient,
        artifacts: ArtifactStore,
        thread_pool: ThreadPoolManager | None = None,
        concurrency_limit: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if concurrency_limit < 1:
            raise ValueError("concurrency_limit must be >= 1")
        self.scrape_client = scrape_client
        self.artifacts = artifacts
        self.thread_pool = thread_pool or ThreadPoolManager(concurrency_limit)
        self.concurrency_limit = concurrency_limit
        self.logger = get_logger("fetch")
        self._failure_lock = Lock()

    def run_all(
        self, tasks: Sequence[SourceTask], progress: TaskProgress | None = None
    ) -> FetchOutcome:
        """Return once every task has settled; failed tasks contribute nothing."""

        failures: list[TaskFailure] = []
        if not tasks:
            return FetchOutcome(results=[], failures=failures)
        self.logger.info(
            "fetch_started", tasks=len(tasks), concurrency=self.concurrency_limit
        )
        if progress is not None:
            progress.start(len(tasks))
        executor = self.thread_pool.get("fetch", max_workers=self.concurrency_limit)
        futures: list[Future[RawRecordBatch | None]] = []
        try:
            for task in tasks:
                futures.append(executor.submit(self._run_task, task, failures, progress))
            wait(futures)
        finally:
            if progress is not None:
                progress.close()
            self.thread_pool.release("fetch")
        results = [batch for batch in (future.result() for future in futures) if batch is not None]
        self.logger.info("fetch_complete", succeeded=len(results), failed=len(failures))
        return FetchOutcome(results=results, failures=failures)

    def _run_task(
        self,
        task: SourceTask,
        failures: list[TaskFailure],
        progress: TaskProgress | None = None,
    ) -> RawRecordBatch | None:
        batch = self._execute(task, failures)
        if progress is not None:
            try:
                progress.advance(success=batch is not None, label=task.task_id)
            except Exception as exc:
                self.logger.warning("progress_update_failed", task=task.task_id, error=str(exc))
        return batch

    def _execute(self, task: SourceTask, failures: list[TaskFailure]) -> RawRecordBatch | None:
        try:
            self.logger.info(
                "scrape_task_started", task=task.task_id, actor=task.source_name
            )
            items = self.scrape_client.run_scrape_task(task.source_config_id, task.input_payload)
            batch = RawRecordBatch(
                source_config_id=task.source_config_id,
                source_name=task.source_name,
                items=list(items),
            )
            path = self.artifacts.write_raw_batch(
                task.task_id, batch, completed_at=datetime.now(timezone.utc)
            )
            self.logger.info(
                "scrape_task_succeeded", task=task.task_id, items=len(batch.items), path=str(path)
            )
            return batch
        except Exception as exc:  # noqa: BLE001
            self.logger.error("scrape_task_failed", task=task.task_id, error=str(exc))
            with self._failure_lock:
                failures.append(TaskFailure(source_id=task.task_id, error_message=str(exc)))
            return None


__all__ = ["DEFAULT_CONCURRENCY", "FetchOrchestrator", "ScrapeClient", "discover_tasks"]
