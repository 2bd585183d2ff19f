"""SQLAlchemy implementation of SubjectRepository."""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from discipline_tracker.models.subject import Subject

logger = logging.getLogger(__name__)


class SqlAlchemySubjectRepository:
    """Concrete SubjectRepository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def get(self, subject_id: str) -> Optional[Subject]:
        async with self._session_factory() as session:
            return await session.get(Subject, subject_id)

    async def upsert(self, subject: Subject) -> Subject:
        async with self._session_factory() as session:
            async with session.begin():
                merged = await session.merge(subject)
            return merged

    async def list_eligible(self, excluded_roles: Iterable[str] = ()) -> List[Subject]:
        """Active subjects outside the excluded roles, ordered by id."""
        stmt = select(Subject).where(Subject.is_active.is_(True))
        excluded = list(excluded_roles)
        if excluded:
            stmt = stmt.where(Subject.role.not_in(excluded))
        async with self._session_factory() as session:
            result = await session.execute(stmt.order_by(Subject.id))
            return list(result.scalars().all())
