"""
APSchedulerBackend: RuntimeScheduler wrapping APScheduler's AsyncIOScheduler.

Each ScheduledJob becomes one cron job firing at its local time of day.
Overlapping runs are refused by the backend (max_instances=1) and missed
runs are coalesced into one.
"""

import logging
from typing import Dict, List, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from .base import RuntimeScheduler, ScheduledJob

logger = logging.getLogger(__name__)


class APSchedulerBackend(RuntimeScheduler):
    """In-process scheduler backed by APScheduler."""

    def __init__(
        self,
        scheduler: Optional[AsyncIOScheduler] = None,
        misfire_grace_time: int = 300,
    ) -> None:
        self._scheduler = scheduler or AsyncIOScheduler()
        self._misfire_grace_time = misfire_grace_time
        self._jobs: Dict[str, ScheduledJob] = {}

    def schedule(self, job: ScheduledJob) -> None:
        if not job.enabled:
            logger.info("Job '%s' is disabled, skipping", job.name)
            return

        trigger = CronTrigger(
            hour=job.time_of_day.hour,
            minute=job.time_of_day.minute,
            second=job.time_of_day.second,
            timezone=job.timezone,
        )
        self._scheduler.add_job(
            job.callback,
            trigger=trigger,
            id=job.name,
            name=job.name,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
            misfire_grace_time=self._misfire_grace_time,
        )
        self._jobs[job.name] = job
        logger.info("Scheduled daily job '%s' at %s %s", job.name, job.time_label, job.timezone)

    def cancel(self, name: str) -> bool:
        if name not in self._jobs:
            return False
        try:
            self._scheduler.remove_job(name)
        except JobLookupError:
            logger.debug("Job '%s' already removed from APScheduler", name)
        del self._jobs[name]
        logger.info("Cancelled job '%s'", name)
        return True

    def list_jobs(self) -> List[str]:
        return list(self._jobs.keys())

    async def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()

    async def stop(self) -> None:
        for name in list(self._jobs.keys()):
            self.cancel(name)
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        logger.info("All scheduled jobs cancelled")
