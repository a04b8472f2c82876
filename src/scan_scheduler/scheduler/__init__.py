"""Scheduled and manually triggered scan jobs."""

from scan_scheduler.scheduler.jobs import ScanJobs
from scan_scheduler.scheduler.runner import JobRunStatus, JobScheduler, ScheduledJob
from scan_scheduler.scheduler.schedule_config import JobSchedule, load_schedule_config
from scan_scheduler.scheduler.triggers import DailyTrigger, IntervalTrigger, Trigger

__all__ = [
    "DailyTrigger",
    "IntervalTrigger",
    "JobRunStatus",
    "JobSchedule",
    "JobScheduler",
    "ScanJobs",
    "ScheduledJob",
    "Trigger",
    "load_schedule_config",
]
