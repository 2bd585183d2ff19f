"""
Team analytics: read-only views over many subjects' weekly records.

Who belongs to a team is decided by the caller; these operations only take a
list of subject ids and report on their records.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Callable, List, Optional, Sequence

from ..core.defaults_loader import get_limit
from ..domain.disciplines import DisciplineCatalog
from ..domain.errors import SubjectNotFound
from ..domain.repositories import SubjectRepository, WeeklyRecordRepository
from ..models.value_objects import DisciplineProgress
from . import analytics, period

logger = logging.getLogger(__name__)


@dataclass
class WeeklyProgressRow:
    subject_id: str
    week_start: datetime
    week_end: datetime
    tasks_completed: int
    total_tasks: int
    completion_rate: int
    reflection: Optional[str] = None
    reflection_submitted_at: Optional[datetime] = None
    disciplines: List[DisciplineProgress] = field(default_factory=list)


@dataclass
class TeamSummary:
    total_subjects: int
    subjects_with_progress: int
    subjects_with_reflection: int
    average_completion_rate: int
    week_start: datetime
    week_end: datetime


class TeamService:
    """Per-week team progress, the team summary and one subject's history."""

    def __init__(
        self,
        records: WeeklyRecordRepository,
        subjects: SubjectRepository,
        catalog: DisciplineCatalog,
        tz: tzinfo,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.records = records
        self.subjects = subjects
        self.catalog = catalog
        self.tz = tz
        self._clock = clock or (lambda: period.now_local(tz))

    def _week_bounds(self, week_start: Optional[datetime]):
        target = week_start if week_start is not None else period.to_local(self._clock(), self.tz)
        start = period.to_wall_clock(period.week_start(target, self.tz), self.tz)
        return target, start, period.week_end(start)

    def _row(self, record) -> WeeklyProgressRow:
        disciplines = record.disciplines
        return WeeklyProgressRow(
            subject_id=record.subject_id,
            week_start=record.week_start,
            week_end=record.week_end,
            tasks_completed=analytics.total_completed_tasks(disciplines),
            total_tasks=self.catalog.total_tasks,
            completion_rate=analytics.completion_rate(disciplines, self.catalog),
            reflection=record.reflection or None,
            reflection_submitted_at=record.reflection_submitted_at,
            disciplines=disciplines,
        )

    async def get_team_progress(
        self, subject_ids: Sequence[str], week_start: Optional[datetime] = None
    ) -> List[WeeklyProgressRow]:
        """One row per subject for the week, highest completion rate first.

        Subjects without a record get a zeroed row. Ties keep the order of
        ``subject_ids``.
        """
        if not subject_ids:
            return []
        target, start, end = self._week_bounds(week_start)
        by_subject = {r.subject_id: r for r in await self.records.find_many(subject_ids, target)}

        rows = []
        for subject_id in subject_ids:
            record = by_subject.get(subject_id)
            if record is None:
                rows.append(
                    WeeklyProgressRow(
                        subject_id=subject_id,
                        week_start=start,
                        week_end=end,
                        tasks_completed=0,
                        total_tasks=self.catalog.total_tasks,
                        completion_rate=0,
                    )
                )
            else:
                rows.append(self._row(record))

        rows.sort(key=lambda row: row.completion_rate, reverse=True)
        return rows

    async def get_team_summary(
        self, subject_ids: Sequence[str], week_start: Optional[datetime] = None
    ) -> TeamSummary:
        """Counts and the average completion rate over the records that exist."""
        target, start, end = self._week_bounds(week_start)
        if not subject_ids:
            return TeamSummary(0, 0, 0, 0, start, end)

        records = await self.records.find_many(subject_ids, target)
        with_progress = 0
        with_reflection = 0
        rate_total = 0
        for record in records:
            disciplines = record.disciplines
            if analytics.total_completed_tasks(disciplines) > 0:
                with_progress += 1
            if record.reflection:
                with_reflection += 1
            rate_total += analytics.completion_rate(disciplines, self.catalog)

        # round(rate_total / len(records)) with the same half-up rule as the rates
        average = analytics.rate_percent(rate_total, 100 * len(records))
        logger.debug(
            f"Team summary for {len(subject_ids)} subjects week {start:%Y-%m-%d}: "
            f"{len(records)} records, average {average}%"
        )
        return TeamSummary(
            total_subjects=len(subject_ids),
            subjects_with_progress=with_progress,
            subjects_with_reflection=with_reflection,
            average_completion_rate=average,
            week_start=start,
            week_end=end,
        )

    async def get_subject_history(
        self, subject_id: str, limit: Optional[int] = None
    ) -> List[WeeklyProgressRow]:
        """The subject's most recent weeks with their rates, newest first."""
        if limit is None:
            limit = get_limit("previous_weeks_default", 4)
        maximum = get_limit("previous_weeks_max", 52)
        if not 1 <= limit <= maximum:
            raise ValueError(f"limit must be between 1 and {maximum}, got {limit}")

        if await self.subjects.get(subject_id) is None:
            raise SubjectNotFound(subject_id)
        return [self._row(r) for r in await self.records.list_recent(subject_id, limit)]
