from __future__ import annotations

import json

from rich.console import Console
from typer.testing import CliRunner

from jobsift.app import AppState, app
from jobsift.engine.models import BatchJob, BatchStatus
from jobsift.errors import BatchJobError
from jobsift.orchestrator import PipelineSummary

ZIP_ACTOR = "vQO5g45mnm8jwognj"


def _use_repository(monkeypatch, repository) -> None:
    monkeypatch.setattr("jobsift.app.console", Console(width=200))
    monkeypatch.setattr("jobsift.app.build_state", lambda verbose: AppState(repository=repository, verbose=verbose))


def test_tasks_lists_discovered_inputs(monkeypatch, temp_config_repository, input_writer) -> None:
    _use_repository(monkeypatch, temp_config_repository)
    input_writer(temp_config_repository.inputs_dir(), f"{ZIP_ACTOR}_austin.json")

    result = CliRunner().invoke(app, ["tasks"])

    assert result.exit_code == 0, result.stdout
    assert f"{ZIP_ACTOR}_austin.json" in result.stdout
    assert "memo23/apify-ziprecruiter-scraper" in result.stdout


def test_tasks_with_no_inputs(monkeypatch, temp_config_repository) -> None:
    _use_repository(monkeypatch, temp_config_repository)
    result = CliRunner().invoke(app, ["tasks"])
    assert result.exit_code == 0
    assert "No input files" in result.stdout


def test_run_without_candidate_summary_exits_with_configuration_code(monkeypatch, temp_config_repository) -> None:
    _use_repository(monkeypatch, temp_config_repository)
    result = CliRunner().invoke(app, ["run"])
    assert result.exit_code == 2
    assert "Configuration error" in result.stdout


def test_run_dry_run_with_replay_needs_no_credentials(
    monkeypatch, temp_config_repository, tmp_path, zip_item_builder
) -> None:
    _use_repository(monkeypatch, temp_config_repository)
    raw = tmp_path / "raw.json"
    raw.write_text(
        json.dumps(
            {
                "actorId": ZIP_ACTOR,
                "actorName": "memo23/apify-ziprecruiter-scraper",
                "items": [zip_item_builder("Line Cook", "Diner")],
            }
        ),
        encoding="utf-8",
    )

    result = CliRunner().invoke(app, ["run", "--replay", str(raw), "--dry-run"])

    assert result.exit_code == 0, result.stdout
    assert "Line Cook" in result.stdout
    assert "new_jobs" in result.stdout


def test_run_batch_failure_exits_with_one(monkeypatch, temp_config_repository) -> None:
    _use_repository(monkeypatch, temp_config_repository)

    class FailingPipeline:
        def run(self, replay=None, dry_run=False):  # noqa: ANN001
            raise BatchJobError("batch-9", "failed")

    monkeypatch.setattr("jobsift.app.build_pipeline", lambda *args, **kwargs: FailingPipeline())
    result = CliRunner().invoke(app, ["run"])
    assert result.exit_code == 1
    assert "batch-9" in result.stdout


def test_run_prints_summary(monkeypatch, temp_config_repository) -> None:
    _use_repository(monkeypatch, temp_config_repository)
    captured: dict = {}

    class StubPipeline:
        def run(self, replay=None, dry_run=False):  # noqa: ANN001
            return PipelineSummary(tasks=2, fetched_batches=2, parsed_jobs=5, new_jobs=0)

    def _build(repository, **kwargs):  # noqa: ANN001, ANN003
        captured.update(kwargs)
        return StubPipeline()

    monkeypatch.setattr("jobsift.app.build_pipeline", _build)
    result = CliRunner().invoke(app, ["run", "--concurrency", "3"])

    assert result.exit_code == 0, result.stdout
    assert captured["concurrency"] == 3
    assert captured["need_scrape"] is True
    assert "Pipeline summary" in result.stdout
    assert "No new jobs." in result.stdout


def test_fetch_requires_apify_key(monkeypatch, temp_config_repository, input_writer) -> None:
    _use_repository(monkeypatch, temp_config_repository)
    input_writer(temp_config_repository.inputs_dir(), f"{ZIP_ACTOR}_austin.json")
    result = CliRunner().invoke(app, ["fetch"])
    assert result.exit_code == 2
    assert "APIFY_API_KEY" in result.stdout


def test_batch_status_renders_table(monkeypatch, temp_config_repository) -> None:
    _use_repository(monkeypatch, temp_config_repository)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    class StubClient:
        def __init__(self, *args, **kwargs) -> None:  # noqa: ANN002, ANN003
            pass

        def get_status(self, batch_id: str) -> BatchJob:
            return BatchJob(batch_id=batch_id, status=BatchStatus.IN_PROGRESS)

    monkeypatch.setattr("jobsift.app.OpenAIBatchClient", StubClient)
    result = CliRunner().invoke(app, ["batch-status", "batch-42"])

    assert result.exit_code == 0, result.stdout
    assert "batch-42" in result.stdout
    assert "in_progress" in result.stdout


def test_log_commands(monkeypatch, temp_config_repository) -> None:
    _use_repository(monkeypatch, temp_config_repository)
    logs = temp_config_repository.locator.logs_dir
    (logs / "jobsift.log").write_text("line-1\nline-2\nline-3\n", encoding="utf-8")

    listed = CliRunner().invoke(app, ["log", "list"])
    assert listed.exit_code == 0
    assert "jobsift.log" in listed.stdout

    shown = CliRunner().invoke(app, ["log", "show", "--tail", "2"])
    assert shown.exit_code == 0
    assert "line-3" in shown.stdout
    assert "line-1" not in shown.stdout


def test_run_transport_error_exits_with_one(monkeypatch, temp_config_repository) -> None:
    _use_repository(monkeypatch, temp_config_repository)

    class BrokenPipeline:
        def run(self, replay=None, dry_run=False):  # noqa: ANN001
            raise ConnectionError("upload refused")

    monkeypatch.setattr("jobsift.app.build_pipeline", lambda *args, **kwargs: BrokenPipeline())
    result = CliRunner().invoke(app, ["run"])
    assert result.exit_code == 1
    assert "ConnectionError: upload refused" in result.stdout
