"""
Discipline service: the subject-facing operations on weekly records.

Wraps the record store with week resolution in the configured zone, input
normalization and the dashboard/streak analytics.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Union

from ..core.defaults_loader import get_limit, get_message
from ..domain.disciplines import DisciplineCatalog
from ..domain.errors import RecordNotFound
from ..domain.repositories import WeeklyRecordRepository
from ..models.value_objects import DisciplineProgress
from ..models.weekly_record import WeeklyRecord
from . import analytics, period

logger = logging.getLogger(__name__)

ProgressInput = Union[DisciplineProgress, Mapping[str, Any]]


@dataclass
class SaveResult:
    record: WeeklyRecord
    message: str


@dataclass
class Reflection:
    subject_id: str
    week_start: datetime
    text: Optional[str]
    submitted_at: Optional[datetime]


def _to_progress(item: ProgressInput) -> DisciplineProgress:
    if isinstance(item, DisciplineProgress):
        return item
    try:
        return DisciplineProgress.from_dict(item)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid discipline entry {item!r}: {e}") from e


class DisciplineService:
    """Week-scoped progress, reflections and dashboard statistics."""

    def __init__(
        self,
        records: WeeklyRecordRepository,
        catalog: DisciplineCatalog,
        tz: tzinfo,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.records = records
        self.catalog = catalog
        self.tz = tz
        self._clock = clock or (lambda: period.now_local(tz))

    def now(self) -> datetime:
        return period.to_local(self._clock(), self.tz)

    # -- Weekly records --

    async def get_or_create_current_week(self, subject_id: str) -> WeeklyRecord:
        return await self.records.get_or_create(subject_id, self.now())

    async def get_week(self, subject_id: str, week_start: datetime) -> WeeklyRecord:
        record = await self.records.find(subject_id, week_start)
        if record is None:
            raise RecordNotFound(subject_id, period.week_start(week_start, self.tz))
        return record

    async def save_progress(
        self,
        subject_id: str,
        updates: Iterable[ProgressInput],
        week_start: Optional[datetime] = None,
    ) -> SaveResult:
        """Merge ``updates`` into the subject's record for the given week.

        Kinds not present in ``updates`` keep their stored days.
        """
        progress = [_to_progress(item) for item in updates]
        target = week_start if week_start is not None else self.now()
        record = await self.records.save(subject_id, target, progress)
        logger.info(
            f"Saved progress for {subject_id} week {record.week_start:%Y-%m-%d}: "
            f"{', '.join(p.discipline for p in progress) or 'no changes'}"
        )
        return SaveResult(
            record=record,
            message=get_message("progress_saved", "Progress saved successfully"),
        )

    async def get_previous_weeks(
        self, subject_id: str, limit: Optional[int] = None
    ) -> List[WeeklyRecord]:
        if limit is None:
            limit = get_limit("previous_weeks_default", 4)
        maximum = get_limit("previous_weeks_max", 52)
        if not 1 <= limit <= maximum:
            raise ValueError(f"limit must be between 1 and {maximum}, got {limit}")
        return await self.records.list_recent(subject_id, limit)

    # -- Analytics --

    async def current_streak(self, subject_id: str) -> int:
        records = await self.records.list_all(subject_id)
        return analytics.current_streak(records, self.now().date())

    async def get_dashboard_stats(self, subject_id: str) -> analytics.DashboardStats:
        record = await self.get_or_create_current_week(subject_id)
        disciplines = record.disciplines
        streak = await self.current_streak(subject_id)
        return analytics.DashboardStats(
            tasks_completed=analytics.total_completed_tasks(disciplines),
            total_tasks=self.catalog.total_tasks,
            required_completed=analytics.required_completed(disciplines, self.catalog),
            total_required=self.catalog.required_total,
            completion_rate=analytics.completion_rate(disciplines, self.catalog),
            current_streak=streak,
            week_start=record.week_start,
            week_end=record.week_end,
            per_discipline_breakdown=analytics.discipline_breakdown(
                disciplines, self.catalog
            ),
        )

    # -- Reflections --

    async def save_reflection(
        self, subject_id: str, text: str, week_start: Optional[datetime] = None
    ) -> WeeklyRecord:
        text = (text or "").strip()
        max_length = get_limit("reflection_max_length", 2000)
        if not text:
            raise ValueError("Reflection must not be empty")
        if len(text) > max_length:
            raise ValueError(f"Reflection exceeds {max_length} characters")

        target = week_start if week_start is not None else self.now()
        submitted_at = period.to_wall_clock(self.now(), self.tz)
        record = await self.records.save_reflection(subject_id, target, text, submitted_at)
        logger.info(f"Reflection saved for {subject_id} week {record.week_start:%Y-%m-%d}")
        return record

    async def get_reflection(
        self, subject_id: str, week_start: Optional[datetime] = None
    ) -> Reflection:
        target = week_start if week_start is not None else self.now()
        record = await self.records.find(subject_id, target)
        if record is None:
            start = period.to_wall_clock(period.week_start(target, self.tz), self.tz)
            return Reflection(subject_id, start, None, None)
        return Reflection(
            subject_id, record.week_start, record.reflection, record.reflection_submitted_at
        )

    async def get_reflections(
        self, subject_ids: Sequence[str], week_start: Optional[datetime] = None
    ) -> List[Reflection]:
        """Submitted reflections for several subjects, newest first. Read-only."""
        target = week_start if week_start is not None else self.now()
        records = await self.records.find_with_reflections(subject_ids, target)
        return [
            Reflection(r.subject_id, r.week_start, r.reflection, r.reflection_submitted_at)
            for r in records
        ]
