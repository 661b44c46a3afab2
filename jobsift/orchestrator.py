"""Pipeline driver wiring fetch, parse, dedup, evaluation and record writes."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Sequence

from .config import ConfigRepository, Credentials, GlobalConfig
from .engine import ArtifactStore, FetchOrchestrator, ParserRegistry, default_registry, discover_tasks, filter_new
from .engine.evaluator import BatchEvaluator
from .engine.exporter import RecordStore, create_record_store, job_to_row
from .engine.fetch import ScrapeClient, TaskProgress
from .engine.models import EvaluationResult, Job, RankedMatch, RawRecordBatch, TaskFailure
from .errors import ConfigurationError
from .infra import ApifyScrapeClient, OpenAIBatchClient
from .logging_conf import get_logger


@dataclass(slots=True)
class PipelineSummary:
    """Counters reported after a pipeline run."""

    tasks: int = 0
    fetched_batches: int = 0
    failed_tasks: int = 0
    parsed_jobs: int = 0
    new_jobs: int = 0
    evaluated: int = 0
    written: int = 0
    failures: list[TaskFailure] = field(default_factory=list)
    new: list[Job] = field(default_factory=list)
    ranked: list[RankedMatch] = field(default_factory=list)

    def counters(self) -> dict[str, int]:
        return {
            "tasks": self.tasks,
            "fetched_batches": self.fetched_batches,
            "failed_tasks": self.failed_tasks,
            "parsed_jobs": self.parsed_jobs,
            "new_jobs": self.new_jobs,
            "evaluated": self.evaluated,
            "written": self.written,
        }


def rank_matches(jobs: Sequence[Job], results: Sequence[EvaluationResult]) -> list[RankedMatch]:
    """Sort job/result pairs by composite score, highest first; ties keep input order."""

    if len(jobs) != len(results):
        raise ValueError("Each job needs exactly one evaluation result")
    pairs = [RankedMatch(job=job, result=result) for job, result in zip(jobs, results)]
    return sorted(pairs, key=lambda match: match.sort_score, reverse=True)


def chunked(rows: Sequence[list[str]], size: int) -> Iterable[Sequence[list[str]]]:
    for start in range(0, len(rows), size):
        yield rows[start : start + size]


class Pipeline:
    """Run one end-to-end pass. Collaborators are injected so each can be faked."""

    def __init__(
        self,
        config: GlobalConfig,
        *,
        inputs_dir: Path,
        artifacts: ArtifactStore,
        record_store: RecordStore,
        scrape_client: ScrapeClient | None = None,
        evaluator: BatchEvaluator | None = None,
        candidate_summary: str | None = None,
        registry: ParserRegistry | None = None,
        progress: TaskProgress | None = None,
        sleep: Callable[[float], object] = time.sleep,
    ) -> None:
        self.config = config
        self.inputs_dir = inputs_dir
        self.artifacts = artifacts
        self.record_store = record_store
        self.scrape_client = scrape_client
        self.evaluator = evaluator
        self.candidate_summary = candidate_summary
        self.registry = registry or default_registry()
        self.progress = progress
        self._sleep = sleep
        self.logger = get_logger("pipeline")

    # ------------------------------------------------------------------
    def run(self, replay: Sequence[Path] | None = None, dry_run: bool = False) -> PipelineSummary:
        summary = PipelineSummary()
        self.logger.info("pipeline_started", replay=bool(replay), dry_run=dry_run)
        try:
            batches = self._load_replay(replay, summary) if replay else self._fetch(summary)
            aliases = {source.name: source.parser_key for source in self.config.sources}
            jobs = self.registry.parse_batches(batches, aliases=aliases)
            summary.parsed_jobs = len(jobs)

            rows = self.record_store.read_all_rows()
            new_jobs = filter_new(rows[1:], jobs)
            summary.new_jobs = len(new_jobs)
            summary.new = list(new_jobs)
            if not new_jobs:
                self.logger.info("no_new_jobs", parsed=len(jobs))
                return summary
            if dry_run:
                self.logger.info("dry_run_complete", new_jobs=len(new_jobs))
                return summary

            evaluator, candidate_summary = self._require_evaluation()
            results = evaluator.evaluate(new_jobs, candidate_summary)
            summary.evaluated = len(results)
            ranked = rank_matches(new_jobs, results)
            summary.ranked = ranked
            snapshot = self.artifacts.write_ranked_snapshot(ranked)
            self.logger.info("ranked_snapshot_saved", path=str(snapshot), matches=len(ranked))

            summary.written = self._write_rows([job_to_row(m.job, m.result) for m in ranked])
        except Exception as exc:
            self.logger.error("pipeline_failed", error=str(exc), error_type=type(exc).__name__)
            raise
        finally:
            self.close()
        self.logger.info("pipeline_complete", **summary.counters())
        return summary

    def close(self) -> None:
        """Release the record store and any network clients."""

        self.record_store.close()
        clients = [self.scrape_client, self.evaluator.client if self.evaluator else None]
        for client in clients:
            close = getattr(client, "close", None)
            if callable(close):
                close()

    # ------------------------------------------------------------------
    def _fetch(self, summary: PipelineSummary) -> list[RawRecordBatch]:
        tasks = discover_tasks(self.inputs_dir, self.config.enabled_sources)
        summary.tasks = len(tasks)
        if not tasks:
            self.logger.warning("no_scrape_tasks", inputs_dir=str(self.inputs_dir))
            return []
        if self.scrape_client is None:
            raise ConfigurationError("APIFY_API_KEY is not set in the environment variables.")
        orchestrator = FetchOrchestrator(
            self.scrape_client,
            self.artifacts,
            concurrency_limit=self.config.fetch_concurrency,
        )
        outcome = orchestrator.run_all(tasks, progress=self.progress)
        summary.fetched_batches = len(outcome.results)
        summary.failed_tasks = len(outcome.failures)
        summary.failures = list(outcome.failures)
        return outcome.results

    def _load_replay(self, paths: Sequence[Path], summary: PipelineSummary) -> list[RawRecordBatch]:
        batches: list[RawRecordBatch] = []
        for path in paths:
            try:
                batches.append(ArtifactStore.load_raw_batch(path))
            except (OSError, ValueError, json.JSONDecodeError) as exc:
                raise ConfigurationError(f"Cannot replay {path}: {exc}") from exc
        summary.tasks = len(paths)
        summary.fetched_batches = len(batches)
        self.logger.info("replay_loaded", files=len(paths))
        return batches

    def _require_evaluation(self) -> tuple[BatchEvaluator, str]:
        if self.evaluator is None:
            raise ConfigurationError("OPENAI_API_KEY is not set in the environment variables.")
        if not self.candidate_summary:
            raise ConfigurationError("Candidate summary is empty")
        return self.evaluator, self.candidate_summary

    def _write_rows(self, rows: list[list[str]]) -> int:
        size = self.config.write_chunk_size
        written = 0
        for index, chunk in enumerate(chunked(rows, size)):
            if index:
                self._sleep(self.config.write_chunk_delay)
            self.record_store.append_rows(chunk)
            written += len(chunk)
            self.logger.info("rows_written", chunk=index + 1, rows=len(chunk), total=written)
        return written


def build_pipeline(
    repository: ConfigRepository,
    *,
    concurrency: int | None = None,
    need_scrape: bool = True,
    need_evaluation: bool = True,
    progress: TaskProgress | None = None,
    credentials: Credentials | None = None,
) -> Pipeline:
    """Construct a pipeline with live collaborators from configuration and env."""

    config = repository.load_global_config()
    if concurrency is not None:
        config = config.model_copy(update={"fetch_concurrency": concurrency})
        if config.fetch_concurrency < 1:
            raise ConfigurationError("concurrency must be >= 1")
    credentials = credentials or repository.load_credentials()
    if need_scrape:
        credentials.require("apify_api_key")
    candidate_summary: str | None = None
    if need_evaluation:
        candidate_summary = repository.load_candidate_summary()
        credentials.require("openai_api_key")

    artifacts = ArtifactStore(repository.artifacts_dir())
    scrape_client = ApifyScrapeClient(credentials.apify_api_key) if need_scrape else None
    evaluator = None
    if need_evaluation:
        batch_client = OpenAIBatchClient(
            credentials.openai_api_key,
            completion_window=config.evaluation.completion_window,
        )
        evaluator = BatchEvaluator(batch_client, artifacts, config.evaluation)
    return Pipeline(
        config,
        inputs_dir=repository.inputs_dir(),
        artifacts=artifacts,
        record_store=create_record_store(config.record_store.kind, repository.record_store_path()),
        scrape_client=scrape_client,
        evaluator=evaluator,
        candidate_summary=candidate_summary,
        progress=progress,
    )


__all__ = ["Pipeline", "PipelineSummary", "build_pipeline", "chunked", "rank_matches"]
