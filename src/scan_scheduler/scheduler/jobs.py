"""Scan jobs run against ControllerApp."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Callable

from scan_scheduler.config import SchedulerSettings
from scan_scheduler.downstream.repository import ControllerAppRepository
from scan_scheduler.scheduler.runner import JobScheduler, ScheduledJob
from scan_scheduler.scheduler.schedule_config import JobSchedule
from scan_scheduler.scheduler.triggers import DailyTrigger, IntervalTrigger
from scan_scheduler.utils.time import utc_now

logger = logging.getLogger(__name__)

PENDING = "PENDING"
ACTIVE = "ACTIVE"


def _utc_today() -> date:
    return utc_now().date()


class ScanJobs:
    def __init__(
        self,
        repository: ControllerAppRepository,
        scheduler: JobScheduler,
        settings: SchedulerSettings,
        today: Callable[[], date] = _utc_today,
    ) -> None:
        self._repository = repository
        self._scheduler = scheduler
        self._settings = settings
        self._today = today

    async def scheduled_scan_launcher(self) -> None:
        pending_scans = await self._repository.get_scans_by_status(PENDING)
        logger.info("Retrieved pending scans: %s", pending_scans)

    async def daily_scan_cycle_launcher(self) -> None:
        within_days = self._settings.recent_scans_within_days
        to_date = self._today()
        from_date = to_date - timedelta(days=within_days)
        recent_scans = await self._repository.get_recently_completed_scans(
            from_date.isoformat(),
            to_date.isoformat(),
            within_days,
            self._settings.recent_scans_limit,
        )
        logger.info("Retrieved recently completed scans: %s", recent_scans)

    async def monitor_active_scan_cycles(self) -> None:
        active_scans = await self._repository.get_scans_by_status(ACTIVE)
        logger.debug("Active scans: %s", active_scans)

    async def launch_scan_manually(
        self,
        scan_cycle_id: int,
        correlation_id: str | None = None,
    ) -> bool:
        """Launch one scan cycle out of band. Returns False if the launch failed."""

        async def launch() -> None:
            response = await self._repository.launch_scan_cycle(scan_cycle_id)
            logger.info("Scan launched successfully: %s", response)

        return await self._scheduler.invoke(
            f"Manual Scan Launch - Scan Cycle ID: {scan_cycle_id}",
            launch,
            failure_action="MANUAL_SCAN_LAUNCH",
            failure_subject=str(scan_cycle_id),
            correlation_id=correlation_id,
        )

    def default_jobs(self) -> list[ScheduledJob]:
        return [
            ScheduledJob(
                name="scheduled_scan_launcher",
                trigger=IntervalTrigger(seconds=3600),
                func=self.scheduled_scan_launcher,
                failure_action="SCHEDULED_SCAN_LAUNCHER",
            ),
            ScheduledJob(
                name="daily_scan_cycle_launcher",
                trigger=DailyTrigger(hour=2),
                func=self.daily_scan_cycle_launcher,
                failure_action="DAILY_SCAN_LAUNCHER",
            ),
            ScheduledJob(
                name="monitor_active_scan_cycles",
                trigger=IntervalTrigger(seconds=900),
                func=self.monitor_active_scan_cycles,
                log_level=logging.DEBUG,
            ),
        ]

    def register(self, overrides: dict[str, JobSchedule] | None = None) -> list[str]:
        """Add the enabled jobs to the scheduler. Returns their names."""
        overrides = overrides or {}
        jobs = self.default_jobs()

        unknown = set(overrides) - {job.name for job in jobs}
        if unknown:
            raise ValueError(f"Unknown jobs in schedule config: {', '.join(sorted(unknown))}")

        registered: list[str] = []
        for job in jobs:
            override = overrides.get(job.name)
            if override is not None:
                if not override.enabled:
                    logger.info("Job %s disabled by schedule config", job.name)
                    continue
                if override.trigger is not None:
                    job = ScheduledJob(
                        name=job.name,
                        trigger=override.trigger,
                        func=job.func,
                        failure_action=job.failure_action,
                        log_level=job.log_level,
                    )
            self._scheduler.add_job(job)
            registered.append(job.name)
        return registered
