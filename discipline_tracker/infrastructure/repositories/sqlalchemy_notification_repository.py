"""SQLAlchemy implementation of NotificationRepository."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from discipline_tracker.models.notification import Notification, NotificationStatus

logger = logging.getLogger(__name__)


class SqlAlchemyNotificationRepository:
    """Concrete NotificationRepository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def add(self, notification: Notification) -> Optional[Notification]:
        """Persist a new notification and return it with ID populated."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(notification)
                    await session.flush()
                await session.refresh(notification)
            return notification
        except IntegrityError:
            if notification.dedup_key is None:
                raise
            logger.info(f"Skipping duplicate notification {notification.dedup_key}")
            return None

    async def get(self, notification_id: int, subject_id: str) -> Optional[Notification]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Notification).where(
                    Notification.id == notification_id,
                    Notification.subject_id == subject_id,
                )
            )
            return result.scalar_one_or_none()

    async def list_for_subject(
        self,
        subject_id: str,
        status: Optional[str] = None,
        limit: int = 20,
        skip: int = 0,
    ) -> List[Notification]:
        stmt = select(Notification).where(Notification.subject_id == subject_id)
        if status:
            stmt = stmt.where(Notification.status == status)
        stmt = (
            stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(skip)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def count(
        self,
        subject_id: str,
        status: Optional[str] = None,
        created_since: Optional[datetime] = None,
    ) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.subject_id == subject_id
        )
        if status:
            stmt = stmt.where(Notification.status == status)
        if created_since is not None:
            stmt = stmt.where(Notification.created_at >= created_since)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return result.scalar() or 0

    async def set_status(
        self,
        notification_id: int,
        subject_id: str,
        status: str,
        read_at: Optional[datetime] = None,
    ) -> Optional[Notification]:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    select(Notification).where(
                        Notification.id == notification_id,
                        Notification.subject_id == subject_id,
                    )
                )
                notification = result.scalar_one_or_none()
                if notification is None:
                    return None
                notification.status = status
                if read_at is not None:
                    notification.read_at = read_at
            return notification

    async def mark_all_read(self, subject_id: str, read_at: datetime) -> int:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(Notification)
                    .where(
                        Notification.subject_id == subject_id,
                        Notification.status == NotificationStatus.UNREAD.value,
                    )
                    .values(status=NotificationStatus.READ.value, read_at=read_at)
                )
            return result.rowcount  # type: ignore[attr-defined]

    async def delete(self, notification_id: int, subject_id: str) -> bool:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    delete(Notification).where(
                        Notification.id == notification_id,
                        Notification.subject_id == subject_id,
                    )
                )
            return result.rowcount > 0  # type: ignore[attr-defined]

    async def delete_read_before(self, cutoff: datetime) -> int:
        """Delete read notifications older than cutoff. Returns count."""
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    delete(Notification).where(
                        Notification.status == NotificationStatus.READ.value,
                        Notification.created_at < cutoff,
                    )
                )
            return result.rowcount  # type: ignore[attr-defined]
