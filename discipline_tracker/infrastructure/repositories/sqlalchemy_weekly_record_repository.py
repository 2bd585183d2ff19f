"""SQLAlchemy implementation of WeeklyRecordRepository."""

import logging
from datetime import datetime, tzinfo
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from discipline_tracker.domain.disciplines import DisciplineCatalog
from discipline_tracker.domain.errors import RecordConflict
from discipline_tracker.models.value_objects import DisciplineProgress
from discipline_tracker.models.weekly_record import WeeklyRecord
from discipline_tracker.services import period

logger = logging.getLogger(__name__)


class SqlAlchemyWeeklyRecordRepository:
    """Concrete WeeklyRecordRepository backed by SQLAlchemy async sessions.

    Each call opens its own session from the injected factory so that
    independent subjects can be served concurrently.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        catalog: DisciplineCatalog,
        tz: tzinfo,
        retry_attempts: int = 3,
    ) -> None:
        self._session_factory = session_factory
        self._catalog = catalog
        self._tz = tz
        self._retry_attempts = max(1, retry_attempts)

    # -- Helpers --

    def week_key(self, instant: Optional[datetime] = None) -> datetime:
        """Storage key (naive local Monday 00:00) for the week containing ``instant``."""
        return period.to_wall_clock(period.week_start(instant, self._tz), self._tz)

    def _new_record(self, subject_id: str, start: datetime) -> WeeklyRecord:
        record = WeeklyRecord(
            subject_id=subject_id,
            week_start=start,
            week_end=period.week_end(start),
        )
        record.disciplines = [DisciplineProgress(kind.key) for kind in self._catalog]
        return record

    @staticmethod
    async def _select(
        session: AsyncSession, subject_id: str, start: datetime
    ) -> Optional[WeeklyRecord]:
        result = await session.execute(
            select(WeeklyRecord).where(
                WeeklyRecord.subject_id == subject_id,
                WeeklyRecord.week_start == start,
            )
        )
        return result.scalar_one_or_none()

    # -- Reads --

    async def find(self, subject_id: str, week_start: datetime) -> Optional[WeeklyRecord]:
        start = self.week_key(week_start)
        async with self._session_factory() as session:
            return await self._select(session, subject_id, start)

    async def find_many(
        self, subject_ids: Sequence[str], week_start: datetime
    ) -> List[WeeklyRecord]:
        if not subject_ids:
            return []
        start = self.week_key(week_start)
        async with self._session_factory() as session:
            result = await session.execute(
                select(WeeklyRecord)
                .where(
                    WeeklyRecord.subject_id.in_(list(subject_ids)),
                    WeeklyRecord.week_start == start,
                )
                .order_by(WeeklyRecord.subject_id)
            )
            return list(result.scalars().all())

    async def list_recent(self, subject_id: str, limit: int) -> List[WeeklyRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(WeeklyRecord)
                .where(WeeklyRecord.subject_id == subject_id)
                .order_by(WeeklyRecord.week_start.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def list_all(self, subject_id: str) -> List[WeeklyRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(WeeklyRecord)
                .where(WeeklyRecord.subject_id == subject_id)
                .order_by(WeeklyRecord.week_start.desc())
            )
            return list(result.scalars().all())

    async def find_with_reflections(
        self, subject_ids: Sequence[str], week_start: datetime
    ) -> List[WeeklyRecord]:
        if not subject_ids:
            return []
        start = self.week_key(week_start)
        async with self._session_factory() as session:
            result = await session.execute(
                select(WeeklyRecord)
                .where(
                    WeeklyRecord.subject_id.in_(list(subject_ids)),
                    WeeklyRecord.week_start == start,
                    WeeklyRecord.reflection.is_not(None),
                    WeeklyRecord.reflection != "",
                    WeeklyRecord.reflection_submitted_at.is_not(None),
                )
                .order_by(WeeklyRecord.reflection_submitted_at.desc())
            )
            return list(result.scalars().all())

    # -- Writes --

    async def get_or_create(
        self, subject_id: str, reference: Optional[datetime] = None
    ) -> WeeklyRecord:
        start = self.week_key(reference)
        existing = await self.find(subject_id, start)
        if existing is not None:
            return existing

        record = self._new_record(subject_id, start)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(record)
            logger.debug(f"Created weekly record for {subject_id} ({start:%Y-%m-%d})")
            return record
        except IntegrityError:
            # Another writer created the same (subject, week) first
            logger.info(
                f"Weekly record for {subject_id} ({start:%Y-%m-%d}) created concurrently, "
                f"re-reading"
            )
            existing = await self.find(subject_id, start)
            if existing is None:
                raise RecordConflict(subject_id, start, attempts=1)
            return existing

    async def save(
        self,
        subject_id: str,
        week_start: datetime,
        updates: Sequence[DisciplineProgress],
    ) -> WeeklyRecord:
        start = self.week_key(week_start)

        async def merge(record: WeeklyRecord) -> None:
            record.merge_disciplines(updates)

        return await self._upsert(subject_id, start, merge)

    async def save_reflection(
        self,
        subject_id: str,
        week_start: datetime,
        reflection: str,
        submitted_at: datetime,
    ) -> WeeklyRecord:
        start = self.week_key(week_start)

        async def apply(record: WeeklyRecord) -> None:
            record.reflection = reflection
            record.reflection_submitted_at = submitted_at

        return await self._upsert(subject_id, start, apply)

    async def _upsert(self, subject_id: str, start: datetime, mutate) -> WeeklyRecord:
        """Read, mutate and write one record inside a single transaction.

        The UPDATE is conditional on the version column (or the INSERT on the
        unique key), so a concurrent writer makes this attempt fail cleanly
        and it is retried against fresh state.
        """
        for attempt in range(1, self._retry_attempts + 1):
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        record = await self._select(session, subject_id, start)
                        if record is None:
                            record = self._new_record(subject_id, start)
                            session.add(record)
                        await mutate(record)
                return record
            except (IntegrityError, StaleDataError) as e:
                logger.warning(
                    f"Concurrent write on weekly record {subject_id} "
                    f"({start:%Y-%m-%d}), attempt {attempt}/{self._retry_attempts}: "
                    f"{type(e).__name__}"
                )

        raise RecordConflict(subject_id, start, attempts=self._retry_attempts)
