"""Scheduling helpers."""

from .apsched_adapter import APSchedulerAdapter, PIPELINE_JOB_ID

__all__ = ["APSchedulerAdapter", "PIPELINE_JOB_ID"]
