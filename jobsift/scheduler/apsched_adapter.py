"""APScheduler wrapper running the pipeline on a cron schedule."""

from __future__ import annotations

from typing import Any, Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from ..errors import ConfigurationError
from ..logging_conf import get_logger

PIPELINE_JOB_ID = "pipeline::run"


class APSchedulerAdapter:
    """Manage the periodic pipeline job."""

    def __init__(self, scheduler: Any | None = None, *, blocking: bool = False) -> None:
        if scheduler is None:
            scheduler = BlockingScheduler() if blocking else BackgroundScheduler()
        self.scheduler = scheduler
        self.logger = get_logger("scheduler")
        self.started = False

    def start(self) -> None:
        if not self.started:
            self.started = True
            self.logger.info("apscheduler_started")
            self.scheduler.start()

    def shutdown(self) -> None:
        if self.started:
            self.scheduler.shutdown(wait=False)
            self.started = False
            self.logger.info("apscheduler_stopped")

    def schedule_pipeline(self, cron: str, callback: Callable[[], Any]) -> None:
        trigger = self.build_trigger(cron)
        self.scheduler.add_job(
            callback,
            trigger=trigger,
            id=PIPELINE_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.logger.info("job_scheduled", job_id=PIPELINE_JOB_ID, cron=cron)

    @staticmethod
    def build_trigger(cron: str) -> CronTrigger:
        try:
            return CronTrigger.from_crontab(cron)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid cron expression {cron!r}: {exc}") from exc

    def list_jobs(self) -> list[dict]:
        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append(
                {
                    "id": job.id,
                    "next_run_time": getattr(job, "next_run_time", None),
                    "trigger": str(job.trigger),
                }
            )
        return jobs


__all__ = ["APSchedulerAdapter", "PIPELINE_JOB_ID"]
