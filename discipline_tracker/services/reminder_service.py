"""
Task reminder generation.

Evaluates each eligible subject's current week, as of a given instant, and
writes one reminder notification per subject that still has something
outstanding. Subjects are processed concurrently under a semaphore, each with
its own deadline; a slow or failing subject is logged and skipped without
affecting the others.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from ..core.defaults_loader import get_config_value, get_message
from ..domain.disciplines import WEEK_SENTINEL, DisciplineCatalog, Weekday
from ..domain.errors import StoreTimeout
from ..domain.repositories import SubjectRepository, WeeklyRecordRepository
from ..models.notification import NotificationType, ReminderSlot
from ..models.value_objects import DisciplineProgress, IncompleteTask
from . import analytics, period
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

DEFAULT_REMINDER = (
    "Hi {first_name}, you have incomplete tasks: {tasks}. "
    "Your current completion rate is {rate}%."
)


@dataclass
class ReminderSummary:
    """What a reminder for one subject would say."""

    subject_id: str
    full_name: str
    incomplete_tasks: List[IncompleteTask]
    completion_rate: int

    @property
    def first_name(self) -> str:
        parts = self.full_name.split()
        return parts[0] if parts else self.full_name


@dataclass
class IncompleteTasksReport:
    has_incomplete: bool
    incomplete_tasks: List[IncompleteTask] = field(default_factory=list)
    message: str = ""


def find_incomplete_tasks(
    disciplines: Iterable[DisciplineProgress],
    catalog: DisciplineCatalog,
    days: Sequence[Weekday],
) -> List[IncompleteTask]:
    """Outstanding requirements in catalog order.

    Daily kinds list each elapsed weekday that is not marked. Weekly kinds are
    only reported, as ``["week"]``, once Sunday is among ``days`` and no
    weekday has been marked. Kinds absent from ``disciplines`` count as all
    unmarked.
    """
    progress = {p.discipline: p for p in disciplines}
    tasks = []
    for kind in catalog:
        entry = progress.get(kind.key) or DisciplineProgress(kind.key)
        if kind.is_weekly:
            if not entry.any_done and Weekday.SUNDAY in days:
                tasks.append(IncompleteTask(kind.key, (WEEK_SENTINEL,)))
        else:
            missing = tuple(day.day_name for day in days if not entry.is_done(day))
            if missing:
                tasks.append(IncompleteTask(kind.key, missing))
    return tasks


def pending_task_count(tasks: Iterable[IncompleteTask]) -> int:
    return sum(task.pending_count for task in tasks)


def describe_task(task: IncompleteTask, catalog: DisciplineCatalog) -> str:
    label = catalog.label_for(task.discipline)
    if task.is_weekly:
        return f"{label} (not completed this week)"
    count = task.pending_count
    return f"{label} ({count} day{'s' if count > 1 else ''} pending)"


def format_reminder(summary: ReminderSummary, catalog: DisciplineCatalog) -> str:
    template = get_message("reminder", DEFAULT_REMINDER)
    return template.format(
        first_name=summary.first_name,
        tasks=", ".join(describe_task(t, catalog) for t in summary.incomplete_tasks),
        rate=summary.completion_rate,
    )


class ReminderService:
    """Scans the eligible population and produces task reminders."""

    def __init__(
        self,
        records: WeeklyRecordRepository,
        subjects: SubjectRepository,
        notifications: NotificationService,
        catalog: DisciplineCatalog,
        tz: tzinfo,
        concurrency: int = 8,
        timeout: float = 10.0,
        dedup: bool = False,
        excluded_roles: Optional[Sequence[str]] = None,
    ):
        self.records = records
        self.subjects = subjects
        self.notifications = notifications
        self.catalog = catalog
        self.tz = tz
        self.concurrency = max(1, concurrency)
        self.timeout = timeout
        self.dedup = dedup
        if excluded_roles is None:
            excluded_roles = get_config_value("reminders.excluded_roles", ["executive"])
        self.excluded_roles = list(excluded_roles or [])

    def _resolve_now(self, now: Optional[datetime]) -> datetime:
        if now is None:
            return period.now_local(self.tz)
        return period.to_local(now, self.tz)

    async def _evaluate(self, subject_id: str, now: datetime) -> Tuple[List[IncompleteTask], int]:
        days = period.weekdays_through_today(now, self.tz)
        record = await self.records.find(subject_id, now)
        disciplines = record.disciplines if record is not None else []
        tasks = find_incomplete_tasks(disciplines, self.catalog, days)
        rate = analytics.daily_progress_rate(disciplines, self.catalog, days)
        return tasks, rate

    async def incomplete_tasks(
        self, subject_id: str, now: Optional[datetime] = None
    ) -> List[IncompleteTask]:
        tasks, _ = await self._evaluate(subject_id, self._resolve_now(now))
        return tasks

    async def get_my_incomplete_tasks(
        self, subject_id: str, now: Optional[datetime] = None
    ) -> IncompleteTasksReport:
        tasks = await self.incomplete_tasks(subject_id, now)
        if not tasks:
            return IncompleteTasksReport(
                has_incomplete=False,
                message=get_message("all_complete", "All tasks completed! Great job!"),
            )
        count = pending_task_count(tasks)
        template = get_message(
            "incomplete_summary", "You have {count} incomplete task{plural}. Keep going!"
        )
        return IncompleteTasksReport(
            has_incomplete=True,
            incomplete_tasks=tasks,
            message=template.format(count=count, plural="s" if count > 1 else ""),
        )

    async def _summarize(self, subject, now: datetime) -> Optional[ReminderSummary]:
        tasks, rate = await self._evaluate(subject.id, now)
        if not tasks:
            return None
        return ReminderSummary(
            subject_id=subject.id,
            full_name=subject.full_name,
            incomplete_tasks=tasks,
            completion_rate=rate,
        )

    async def get_subjects_with_incomplete_tasks(
        self, now: Optional[datetime] = None
    ) -> List[ReminderSummary]:
        now = self._resolve_now(now)
        subjects = await self.subjects.list_eligible(self.excluded_roles)
        summaries = []
        for subject in subjects:
            summary = await self._summarize(subject, now)
            if summary is not None:
                summaries.append(summary)
        return summaries

    async def _remind(self, subject, slot: str, now: datetime) -> bool:
        summary = await self._summarize(subject, now)
        if summary is None:
            return False

        dedup_key = f"{subject.id}:{now.date().isoformat()}:{slot}" if self.dedup else None
        created = await self.notifications.create_notification(
            subject_id=subject.id,
            title=get_config_value("reminders.title", "Task Reminder"),
            message=format_reminder(summary, self.catalog),
            type=NotificationType.TASK_REMINDER.value,
            schedule_slot=slot,
            incomplete_tasks=summary.incomplete_tasks,
            dedup_key=dedup_key,
        )
        return created is not None

    async def create_task_reminders(
        self, slot: Union[ReminderSlot, str], now: Optional[datetime] = None
    ) -> int:
        """Create reminders for every eligible subject with outstanding tasks.

        Returns the number of notifications actually written.
        """
        slot_value = ReminderSlot(slot).value
        now = self._resolve_now(now)
        subjects = await self.subjects.list_eligible(self.excluded_roles)
        semaphore = asyncio.Semaphore(self.concurrency)

        async def process(subject) -> bool:
            async with semaphore:
                task = asyncio.create_task(self._remind(subject, slot_value, now))
                # asyncio.wait rather than wait_for: cancelling an aiosqlite call
                # through wait_for can hang
                done, _ = await asyncio.wait({task}, timeout=self.timeout)
                if task not in done:
                    task.cancel()
                    # Wait for the cancel to land; a write that still completed counts
                    outcome = (await asyncio.gather(task, return_exceptions=True))[0]
                    if outcome is True:
                        return True
                    logger.warning(f"Skipping reminder: {StoreTimeout(subject.id, self.timeout)}")
                    return False
                try:
                    return task.result()
                except Exception as e:
                    logger.error(
                        f"Reminder for subject {subject.id} failed: {e}", exc_info=True
                    )
                    return False

        results = await asyncio.gather(*(process(s) for s in subjects))
        created = sum(1 for ok in results if ok)
        logger.info(
            f"Created {created} task reminder notifications for {slot_value} "
            f"({len(subjects)} subjects scanned)"
        )
        return created
