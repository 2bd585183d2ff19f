"""
Recurring job scheduler for the reminder pipeline.

Owns the fixed job table (three reminder slots and the notification cleanup),
registers it with a RuntimeScheduler backend and tracks per-job run state.

State machine: UNINITIALIZED -> RUNNING -> STOPPED -> RUNNING ...
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ...core.defaults_loader import get_config_value
from ...domain.errors import InvalidSchedule
from ...models.notification import ReminderSlot
from ...utils.logging import log_job_run
from .. import period
from ..notification_service import NotificationService
from ..reminder_service import ReminderService
from .base import RuntimeScheduler, ScheduledJob, SchedulerState, parse_time_of_day

logger = logging.getLogger(__name__)

DEFAULT_REMINDER_JOBS = [
    {"name": "morning-reminder", "slot": "7am", "time": "07:00"},
    {"name": "afternoon-reminder", "slot": "1pm", "time": "13:00"},
    {"name": "evening-reminder", "slot": "9pm", "time": "21:00"},
]
DEFAULT_CLEANUP_JOB = {"name": "cleanup-notifications", "time": "02:00"}


@dataclass
class JobRunState:
    last_run_at: Optional[datetime] = None
    last_error: Optional[str] = None
    last_result: Any = None
    run_count: int = 0


@dataclass
class JobStatus:
    name: str
    running: bool
    time_of_day: str
    timezone: str
    last_run_at: Optional[datetime]
    last_error: Optional[str]
    run_count: int


class SchedulerService:
    """Fixed-time reminder and cleanup jobs, registered idempotently."""

    def __init__(
        self,
        backend: RuntimeScheduler,
        reminders: ReminderService,
        notifications: NotificationService,
        timezone: str,
        retention_days: int = 30,
    ):
        self.backend = backend
        self.reminders = reminders
        self.notifications = notifications
        self.timezone = timezone
        self.retention_days = retention_days
        self.state = SchedulerState.UNINITIALIZED

        self._actions: Dict[str, Callable[[], Awaitable[Any]]] = {}
        self._jobs: Dict[str, ScheduledJob] = {}
        self._runs: Dict[str, JobRunState] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._load_job_table()

    # -- Job table --

    def _load_job_table(self) -> None:
        for entry in get_config_value("scheduler.reminders", DEFAULT_REMINDER_JOBS) or []:
            try:
                slot = ReminderSlot(str(entry["slot"])).value
            except (KeyError, ValueError) as e:
                raise InvalidSchedule(f"Invalid reminder job entry {entry!r}") from e
            self._add_job(entry.get("name"), entry.get("time"), self._reminder_action(slot))

        cleanup = get_config_value("scheduler.cleanup", DEFAULT_CLEANUP_JOB) or {}
        if cleanup:
            self._add_job(cleanup.get("name"), cleanup.get("time"), self._cleanup)

    def _add_job(self, name: Optional[str], time_of_day: Any, action) -> None:
        if not name:
            raise InvalidSchedule("Scheduled job is missing a name")
        if name in self._jobs:
            raise InvalidSchedule(f"Duplicate job name '{name}'")

        async def fire() -> None:
            await self._run_scheduled(name)

        self._jobs[name] = ScheduledJob(
            name=name,
            callback=fire,
            time_of_day=parse_time_of_day(time_of_day),
            timezone=self.timezone,
        )
        self._actions[name] = action
        self._runs[name] = JobRunState()
        self._locks[name] = asyncio.Lock()

    def _reminder_action(self, slot: str) -> Callable[[], Awaitable[int]]:
        async def remind() -> int:
            return await self.reminders.create_task_reminders(slot)

        return remind

    async def _cleanup(self) -> int:
        return await self.notifications.cleanup_old_notifications(self.retention_days)

    @property
    def job_names(self) -> List[str]:
        return list(self._jobs.keys())

    # -- Lifecycle --

    async def initialize(self) -> None:
        """Register every job and start the backend. No-op if already running."""
        if self.state == SchedulerState.RUNNING:
            logger.info("Scheduler already initialized, skipping")
            return

        for job in self._jobs.values():
            self.backend.schedule(job)
        await self.backend.start()
        self.state = SchedulerState.RUNNING
        logger.info(
            f"Scheduler initialized with {len(self._jobs)} jobs ({self.timezone}): "
            f"{', '.join(f'{j.name}@{j.time_label}' for j in self._jobs.values())}"
        )

    def stop_job(self, name: str) -> bool:
        if name not in self._jobs:
            logger.warning(f"stop_job: unknown job '{name}'")
            return False
        stopped = self.backend.cancel(name)
        if stopped:
            logger.info(f"Stopped job '{name}'")
        return stopped

    async def stop_all(self) -> None:
        """Cancel every job. A later initialize() registers them again."""
        # Flip state first so a job already past its trigger does not start work
        self.state = SchedulerState.STOPPED
        await self.backend.stop()
        logger.info("All scheduled jobs stopped")

    # -- Execution --

    async def _run_scheduled(self, name: str) -> None:
        if self.state != SchedulerState.RUNNING:
            logger.info(f"Scheduler not running, skipping fire of '{name}'")
            return
        await self._execute(name)

    async def _execute(self, name: str) -> Any:
        lock = self._locks[name]
        if lock.locked():
            log_job_run(name, "skipped", {"reason": "previous run still in progress"})
            return None

        async with lock:
            run = self._runs[name]
            run.last_run_at = period.now_local(period.get_zone(self.timezone))
            run.run_count += 1
            started = time.monotonic()
            try:
                result = await self._actions[name]()
            except Exception as e:
                run.last_error = f"{type(e).__name__}: {e}"
                logger.error(f"Job '{name}' failed: {e}", exc_info=True)
                log_job_run(name, "failed", {"error": run.last_error})
                return None
            run.last_error = None
            run.last_result = result
            log_job_run(
                name,
                "ok",
                {"result": result, "duration_ms": int((time.monotonic() - started) * 1000)},
            )
            return result

    async def trigger_job(self, name: str) -> Any:
        """Run a job's action now, outside its schedule."""
        if name not in self._actions:
            raise InvalidSchedule(f"Unknown job '{name}'")
        return await self._execute(name)

    def get_status(self) -> List[JobStatus]:
        registered = set(self.backend.list_jobs())
        statuses = []
        for name, job in self._jobs.items():
            run = self._runs[name]
            statuses.append(
                JobStatus(
                    name=name,
                    running=self.state == SchedulerState.RUNNING and name in registered,
                    time_of_day=job.time_label,
                    timezone=job.timezone,
                    last_run_at=run.last_run_at,
                    last_error=run.last_error,
                    run_count=run.run_count,
                )
            )
        return statuses
