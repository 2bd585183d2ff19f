"""
Notification service.

Create, page through and transition notifications for one subject, plus the
retention cleanup run by the scheduler.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Dict, List, Optional, Sequence

from ..core.defaults_loader import get_limit
from ..domain.errors import NotificationNotFound
from ..domain.repositories import NotificationRepository
from ..models.base import utcnow
from ..models.notification import (
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    Notification,
    NotificationStatus,
    NotificationType,
)
from ..models.value_objects import IncompleteTask
from . import period

logger = logging.getLogger(__name__)


@dataclass
class NotificationPage:
    notifications: List[Notification]
    total: int
    unread_count: int


@dataclass
class NotificationStats:
    total: int
    unread: int
    read: int
    today_count: int


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit]


class NotificationService:
    def __init__(self, notifications: NotificationRepository, tz: tzinfo):
        self.notifications = notifications
        self.tz = tz

    async def create_notification(
        self,
        subject_id: str,
        title: str,
        message: str,
        type: str = NotificationType.GENERAL.value,
        schedule_slot: Optional[str] = None,
        incomplete_tasks: Optional[Sequence[IncompleteTask]] = None,
        dedup_key: Optional[str] = None,
    ) -> Optional[Notification]:
        """Persist a notification. Returns None if ``dedup_key`` already exists."""
        notification = Notification(
            subject_id=subject_id,
            title=_truncate(title, TITLE_MAX_LENGTH),
            message=_truncate(message, MESSAGE_MAX_LENGTH),
            type=type,
            status=NotificationStatus.UNREAD.value,
            schedule_slot=schedule_slot,
            incomplete_tasks_data=(
                [t.to_dict() for t in incomplete_tasks] if incomplete_tasks else None
            ),
            dedup_key=dedup_key,
        )
        return await self.notifications.add(notification)

    async def list_notifications(
        self,
        subject_id: str,
        status: Optional[str] = None,
        limit: Optional[int] = None,
        skip: int = 0,
    ) -> NotificationPage:
        if limit is None:
            limit = get_limit("notifications_page_size", 20)
        items = await self.notifications.list_for_subject(subject_id, status, limit, skip)
        total = await self.notifications.count(subject_id, status)
        unread = await self.notifications.count(subject_id, NotificationStatus.UNREAD.value)
        return NotificationPage(notifications=items, total=total, unread_count=unread)

    async def mark_as_read(self, notification_id: int, subject_id: str) -> Notification:
        notification = await self.notifications.set_status(
            notification_id, subject_id, NotificationStatus.READ.value, read_at=utcnow()
        )
        if notification is None:
            raise NotificationNotFound(notification_id, subject_id)
        return notification

    async def mark_all_as_read(self, subject_id: str) -> int:
        count = await self.notifications.mark_all_read(subject_id, utcnow())
        logger.debug(f"Marked {count} notifications read for {subject_id}")
        return count

    async def dismiss(self, notification_id: int, subject_id: str) -> Notification:
        notification = await self.notifications.set_status(
            notification_id, subject_id, NotificationStatus.DISMISSED.value
        )
        if notification is None:
            raise NotificationNotFound(notification_id, subject_id)
        return notification

    async def delete_notification(self, notification_id: int, subject_id: str) -> None:
        if not await self.notifications.delete(notification_id, subject_id):
            raise NotificationNotFound(notification_id, subject_id)

    async def cleanup_old_notifications(self, days: int = 30) -> int:
        """Delete read notifications created more than ``days`` days ago."""
        cutoff = utcnow() - timedelta(days=days)
        deleted = await self.notifications.delete_read_before(cutoff)
        logger.info(f"Notification cleanup: deleted {deleted} read notifications older than {days} days")
        return deleted

    async def get_notification_stats(
        self, subject_id: str, now: Optional[datetime] = None
    ) -> NotificationStats:
        local_now = period.to_local(now, self.tz) if now is not None else period.now_local(self.tz)
        if local_now.tzinfo is None:
            local_now = local_now.replace(tzinfo=self.tz)
        # created_at is naive UTC, so local midnight is converted before comparing
        midnight = datetime.combine(local_now.date(), time.min, tzinfo=local_now.tzinfo)
        since = midnight.astimezone(timezone.utc).replace(tzinfo=None)

        counts: Dict[str, int] = {}
        for status in (None, NotificationStatus.UNREAD.value, NotificationStatus.READ.value):
            counts[status or "total"] = await self.notifications.count(subject_id, status)
        today_count = await self.notifications.count(subject_id, created_since=since)

        return NotificationStats(
            total=counts["total"],
            unread=counts[NotificationStatus.UNREAD.value],
            read=counts[NotificationStatus.READ.value],
            today_count=today_count,
        )
