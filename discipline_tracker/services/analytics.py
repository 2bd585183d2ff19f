"""
Completion analytics over weekly discipline records.

Two metrics are kept deliberately separate:

- completion rate: requirement-weighted. Daily kinds count every completed
  weekday (up to 7), weekly kinds count 1 if any weekday is completed. The
  denominator is fixed by the catalog, not by what a record happens to hold.
- total completed tasks: the raw number of ticked checkboxes, regardless of
  cadence.

Nothing here raises on empty or degenerate input; zero kinds or zero records
give zero.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from ..domain.disciplines import DAYS_PER_WEEK, DisciplineCatalog, Weekday
from ..models.value_objects import DisciplineProgress


class HasWeeklyProgress(Protocol):
    week_start: datetime

    @property
    def disciplines(self) -> List[DisciplineProgress]: ...


@dataclass
class DisciplineBreakdown:
    discipline: str
    label: str
    description: str
    is_weekly: bool
    days: Dict[str, bool]
    completed_days: int
    required_days: int


@dataclass
class DashboardStats:
    tasks_completed: int
    total_tasks: int
    required_completed: int
    total_required: int
    completion_rate: int
    current_streak: int
    week_start: Optional[datetime] = None
    week_end: Optional[datetime] = None
    per_discipline_breakdown: List[DisciplineBreakdown] = field(default_factory=list)


def rate_percent(numerator: int, denominator: int) -> int:
    """round(100 * numerator / denominator), half-up, 0 when denominator is 0."""
    if denominator <= 0:
        return 0
    # Integer arithmetic avoids float and banker's rounding at .5
    return (200 * numerator + denominator) // (2 * denominator)


def _by_key(disciplines: Iterable[DisciplineProgress]) -> Dict[str, DisciplineProgress]:
    return {p.discipline: p for p in disciplines}


def required_completed(
    disciplines: Iterable[DisciplineProgress], catalog: DisciplineCatalog
) -> int:
    progress = _by_key(disciplines)
    total = 0
    for kind in catalog:
        entry = progress.get(kind.key)
        if entry is None:
            continue
        if kind.is_weekly:
            total += 1 if entry.any_done else 0
        else:
            total += entry.completed_count
    return total


def completion_rate(
    disciplines: Iterable[DisciplineProgress], catalog: DisciplineCatalog
) -> int:
    return rate_percent(required_completed(disciplines, catalog), catalog.required_total)


def total_completed_tasks(disciplines: Iterable[DisciplineProgress]) -> int:
    return sum(p.completed_count for p in disciplines)


def daily_progress_rate(
    disciplines: Iterable[DisciplineProgress],
    catalog: DisciplineCatalog,
    days: Sequence[Weekday],
) -> int:
    """Share of daily-kind checkboxes ticked among the days elapsed so far."""
    progress = _by_key(disciplines)
    daily = catalog.daily_kinds
    done = 0
    for kind in daily:
        entry = progress.get(kind.key)
        if entry is not None:
            done += sum(1 for day in days if entry.is_done(day))
    return rate_percent(done, len(days) * len(daily))


def discipline_breakdown(
    disciplines: Iterable[DisciplineProgress], catalog: DisciplineCatalog
) -> List[DisciplineBreakdown]:
    """Per-kind view in catalog order, followed by any unconfigured kinds."""
    progress = _by_key(disciplines)
    rows = []
    for kind in catalog:
        entry = progress.pop(kind.key, None) or DisciplineProgress(kind.key)
        rows.append(
            DisciplineBreakdown(
                discipline=kind.key,
                label=kind.label,
                description=kind.description,
                is_weekly=kind.is_weekly,
                days=entry.day_map(),
                completed_days=entry.completed_count,
                required_days=kind.required_days,
            )
        )
    for key, entry in progress.items():
        rows.append(
            DisciplineBreakdown(
                discipline=key,
                label=key,
                description="",
                is_weekly=False,
                days=entry.day_map(),
                completed_days=entry.completed_count,
                required_days=DAYS_PER_WEEK,
            )
        )
    return rows


def build_completion_map(
    records: Iterable[HasWeeklyProgress], today: date
) -> Dict[date, bool]:
    """Calendar date -> whether any discipline was completed that day.

    Dates after ``today`` are left out, so "no entry" means either the week
    was never recorded or the day has not happened yet.
    """
    completion: Dict[date, bool] = {}
    for record in records:
        monday = record.week_start.date()
        disciplines = record.disciplines
        for day in Weekday:
            current = monday + timedelta(days=int(day))
            if current > today:
                continue
            completion[current] = any(p.is_done(day) for p in disciplines)
    return completion


def current_streak(records: Iterable[HasWeeklyProgress], today: date) -> int:
    """Consecutive completed days walking backward from ``today``.

    Missing data for today does not break the streak (the day is still in
    progress); the walk starts from yesterday instead. Anywhere else a missing
    or uncompleted day ends it. The walk is bounded by the finite map.
    """
    completion = build_completion_map(records, today)
    if not completion:
        return 0

    current = today
    if current not in completion:
        current -= timedelta(days=1)

    streak = 0
    while completion.get(current) is True:
        streak += 1
        current -= timedelta(days=1)
    return streak
