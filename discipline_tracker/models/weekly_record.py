"""
Weekly discipline record: one row per (subject, week).
"""

from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import JSON, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin
from .value_objects import DisciplineProgress


class WeeklyRecord(Base, TimestampMixin):
    """
    Per-subject, per-week container of discipline progress flags.

    week_start / week_end are stored as naive wall-clock times in the
    configured timezone (Monday 00:00:00 and Sunday 23:59:59.999).
    """

    __tablename__ = "weekly_records"
    __table_args__ = (
        UniqueConstraint("subject_id", "week_start", name="uq_weekly_record_subject_week"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subject_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    week_start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    week_end: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # List of DisciplineProgress.to_dict() entries, in catalog order
    disciplines_data: Mapped[list] = mapped_column(
        "disciplines", JSON, nullable=False, default=list
    )

    reflection: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reflection_submitted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True
    )

    # Optimistic concurrency: every UPDATE is conditional on this value
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def disciplines(self) -> List[DisciplineProgress]:
        return [DisciplineProgress.from_dict(d) for d in self.disciplines_data or []]

    @disciplines.setter
    def disciplines(self, progress: List[DisciplineProgress]) -> None:
        # Assign a fresh list so the JSON column is flagged dirty
        self.disciplines_data = [p.to_dict() for p in progress]

    def merge_disciplines(self, updates: Iterable[DisciplineProgress]) -> None:
        """Apply incoming progress by discipline key.

        Existing kinds have their days replaced in place, new kinds are
        appended, kinds absent from ``updates`` are left untouched.
        """
        merged = self.disciplines
        positions = {p.discipline: i for i, p in enumerate(merged)}
        for update in updates:
            index = positions.get(update.discipline)
            if index is None:
                positions[update.discipline] = len(merged)
                merged.append(update)
            else:
                merged[index] = update
        self.disciplines = merged

    def get_discipline(self, key: str) -> Optional[DisciplineProgress]:
        for progress in self.disciplines:
            if progress.discipline == key:
                return progress
        return None

    def __repr__(self) -> str:
        return (
            f"<WeeklyRecord(id={self.id}, subject_id={self.subject_id}, "
            f"week_start={self.week_start:%Y-%m-%d})>"
        )
