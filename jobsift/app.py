"""Typer CLI entrypoint for jobsift."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository
from .engine import ArtifactStore, FetchOrchestrator, discover_tasks
from .engine.models import Job, RankedMatch, SourceTask, TaskFailure
from .errors import BatchJobError, ConfigurationError, JobsiftError
from .infra import ApifyScrapeClient, OpenAIBatchClient
from .logging_conf import available_logs, configure_logging, log_dir, tail_log
from .orchestrator import PipelineSummary, build_pipeline
from .scheduler import APSchedulerAdapter
from .ui import ProgressReporter

app = typer.Typer(
    help="jobsift: scrape job boards, filter seen postings and rank new ones against a candidate.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Log inspection commands",
    no_args_is_help=True,
    rich_markup_mode=None,
)
app.add_typer(log_app, name="log", help="List or tail log files")

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    verbose: bool = False


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    configure_logging(verbose=verbose)
    return AppState(repository=repository, verbose=verbose)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def _fail(message: str, code: int) -> typer.Exit:
    console.print(message, style="red")
    return typer.Exit(code=code)


def _render_summary_table(summary: PipelineSummary) -> Table:
    table = Table(title="Pipeline summary", box=box.SIMPLE_HEAD)
    table.add_column("Counter", style="cyan", no_wrap=True)
    table.add_column("Value", style="green", justify="right")
    for key, value in summary.counters().items():
        table.add_row(key, str(value))
    return table


def _render_failures_table(failures: Sequence[TaskFailure]) -> Table:
    table = Table(title=f"Failed tasks · {len(failures)}", box=box.SIMPLE_HEAD)
    table.add_column("Task", style="red", no_wrap=True)
    table.add_column("Error", overflow="fold")
    for failure in failures:
        table.add_row(failure.source_id, failure.error_message)
    return table


def _render_jobs_table(jobs: Iterable[Job], title: str) -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAD)
    table.add_column("Title", style="cyan", overflow="fold")
    table.add_column("Company", style="magenta")
    table.add_column("Location")
    table.add_column("Source", style="dim", overflow="fold")
    for job in jobs:
        table.add_row(job.title, job.company_name, job.location, job.source.split(" via ")[0])
    return table


def _render_matches_table(matches: Sequence[RankedMatch], limit: int = 10) -> Table:
    table = Table(title=f"Top matches · {min(limit, len(matches))} of {len(matches)}", box=box.SIMPLE_HEAD)
    table.add_column("Score", style="green", justify="right")
    table.add_column("Title", style="cyan", overflow="fold")
    table.add_column("Company", style="magenta")
    table.add_column("Rationale", overflow="fold")
    for match in matches[:limit]:
        score = match.result.composite_match
        table.add_row("-" if score is None else str(score), match.job.title, match.job.company_name, match.result.rationale)
    return table


def _render_tasks_table(tasks: Sequence[SourceTask]) -> Table:
    table = Table(title=f"Scrape tasks · {len(tasks)}", box=box.SIMPLE_HEAD)
    table.add_column("Input file", style="cyan", no_wrap=True)
    table.add_column("Actor", style="magenta")
    table.add_column("Source", style="green")
    for task in tasks:
        table.add_row(task.task_id, task.source_config_id, task.source_name)
    return table


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging", is_flag=True),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("run", help="Run the full pipeline: fetch, parse, dedup, evaluate and write.")
def run(
    ctx: typer.Context,
    replay: Optional[List[Path]] = typer.Option(
        None, "--replay", help="Load saved raw scrape output instead of scraping (repeatable)."
    ),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", min=1, help="Concurrent scrape tasks."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Stop after dedup and list the new jobs."),
) -> None:
    state = _get_state(ctx)
    progress = ProgressReporter(enabled=_progress_default_enabled())
    try:
        pipeline = build_pipeline(
            state.repository,
            concurrency=concurrency,
            need_scrape=not replay,
            need_evaluation=not dry_run,
            progress=progress,
        )
        summary = pipeline.run(replay=replay or None, dry_run=dry_run)
    except ConfigurationError as exc:
        raise _fail(f"Configuration error: {exc}", 2) from exc
    except BatchJobError as exc:
        raise _fail(f"Evaluation failed: {exc}", 1) from exc
    except Exception as exc:
        raise _fail(f"Pipeline failed: {type(exc).__name__}: {exc}", 1) from exc

    console.print(_render_summary_table(summary))
    if summary.failures:
        console.print(_render_failures_table(summary.failures))
    if dry_run and summary.new:
        console.print(_render_jobs_table(summary.new, f"New jobs · {len(summary.new)}"))
    if summary.ranked:
        console.print(_render_matches_table(summary.ranked))
    if not summary.new_jobs:
        console.print("No new jobs.", style="dim")


@app.command("fetch", help="Run the scrape tasks only and save their raw output.")
def fetch(
    ctx: typer.Context,
    concurrency: Optional[int] = typer.Option(None, "--concurrency", min=1, help="Concurrent scrape tasks."),
) -> None:
    state = _get_state(ctx)
    repository = state.repository
    try:
        config = repository.load_global_config()
        tasks = discover_tasks(repository.inputs_dir(), config.enabled_sources)
        if not tasks:
            console.print(f"No input files found in {repository.inputs_dir()}", style="yellow")
            return
        credentials = repository.load_credentials().require("apify_api_key")
    except ConfigurationError as exc:
        raise _fail(f"Configuration error: {exc}", 2) from exc

    artifacts = ArtifactStore(repository.artifacts_dir())
    client = ApifyScrapeClient(credentials.apify_api_key)
    try:
        orchestrator = FetchOrchestrator(
            client, artifacts, concurrency_limit=concurrency or config.fetch_concurrency
        )
        outcome = orchestrator.run_all(tasks, progress=ProgressReporter(enabled=_progress_default_enabled()))
    finally:
        client.close()

    table = Table(title="Fetch summary", box=box.SIMPLE_HEAD)
    table.add_column("Source", style="cyan")
    table.add_column("Items", style="green", justify="right")
    for batch in outcome.results:
        table.add_row(batch.source_name, str(len(batch.items)))
    console.print(table)
    if outcome.failures:
        console.print(_render_failures_table(outcome.failures))
    console.print(f"Raw output saved under {artifacts.raw_dir}", style="dim")


@app.command("tasks", help="List the scrape tasks discovered from input files.")
def tasks(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    repository = state.repository
    try:
        config = repository.load_global_config()
        discovered = discover_tasks(repository.inputs_dir(), config.enabled_sources)
    except ConfigurationError as exc:
        raise _fail(f"Configuration error: {exc}", 2) from exc
    if not discovered:
        console.print(f"No input files found in {repository.inputs_dir()}", style="yellow")
        return
    console.print(_render_tasks_table(discovered))


@app.command("batch-status", help="Show the status of a remote evaluation batch.")
def batch_status(ctx: typer.Context, batch_id: str = typer.Argument(..., help="Remote batch id.")) -> None:
    state = _get_state(ctx)
    try:
        credentials = state.repository.load_credentials().require("openai_api_key")
    except ConfigurationError as exc:
        raise _fail(f"Configuration error: {exc}", 2) from exc
    client = OpenAIBatchClient(credentials.openai_api_key)
    job = client.get_status(batch_id)
    table = Table(title=f"Batch {job.batch_id}", box=box.SIMPLE_HEAD)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("status", job.status.value)
    table.add_row("terminal", "yes" if job.status.is_terminal else "no")
    table.add_row("output_file_id", job.output_file_id or "-")
    table.add_row("error_file_id", job.error_file_id or "-")
    console.print(table)


@app.command("schedule", help="Run the pipeline on a cron schedule (blocks).")
def schedule(
    ctx: typer.Context,
    cron: Optional[str] = typer.Option(None, "--cron", help="Crontab expression; defaults to config."),
) -> None:
    state = _get_state(ctx)
    repository = state.repository
    try:
        expression = cron or repository.load_global_config().schedule_cron
        adapter = APSchedulerAdapter(blocking=True)
        adapter.schedule_pipeline(expression, lambda: _scheduled_run(repository))
    except ConfigurationError as exc:
        raise _fail(f"Configuration error: {exc}", 2) from exc
    console.print(f"Pipeline scheduled with cron '{expression}'. Press Ctrl+C to stop.", style="green")
    try:
        adapter.start()
    except (KeyboardInterrupt, SystemExit):
        adapter.shutdown()


def _scheduled_run(repository: ConfigRepository) -> None:
    logger = configure_logging().bind(component="scheduler")
    try:
        summary = build_pipeline(repository).run()
    except JobsiftError as exc:
        logger.error("scheduled_run_failed", error=str(exc), error_type=type(exc).__name__)
        return
    logger.info("scheduled_run_complete", **summary.counters())


@log_app.command("list", help="List available log files.")
def log_list() -> None:
    logs = list(available_logs())
    if not logs:
        console.print("No log files yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("File", style="green")
    table.add_column("Size", justify="right")
    for path in logs:
        table.add_row(path.name, str(path.stat().st_size))
    console.print(table)


@log_app.command("show", help="Show the most recent log lines.")
def log_show(
    name: str = typer.Option("jobsift", "--name", help="Log name: jobsift or error."),
    tail: int = typer.Option(100, "--tail", min=1, help="Number of lines to show."),
) -> None:
    path = log_dir() / f"{name}.log"
    lines = tail_log(path, tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"{path.name} · last {len(lines)} lines", style="cyan")
    console.print("".join(lines), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
