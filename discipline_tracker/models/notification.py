"""
Notification records produced by the reminder pipeline or created directly.
"""

import enum
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin
from .value_objects import IncompleteTask


class NotificationStatus(str, enum.Enum):
    UNREAD = "unread"
    READ = "read"
    DISMISSED = "dismissed"


class NotificationType(str, enum.Enum):
    TASK_REMINDER = "task_reminder"
    GENERAL = "general"


class ReminderSlot(str, enum.Enum):
    """Fixed daily times that produce task reminders."""

    MORNING = "7am"
    AFTERNOON = "1pm"
    EVENING = "9pm"


TITLE_MAX_LENGTH = 200
MESSAGE_MAX_LENGTH = 1000


class Notification(Base, TimestampMixin):
    """A persisted notice for one subject."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_subject_status_created", "subject_id", "status", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subject_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(TITLE_MAX_LENGTH), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(
        String(32), nullable=False, default=NotificationType.GENERAL.value
    )
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=NotificationStatus.UNREAD.value
    )
    schedule_slot: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    incomplete_tasks_data: Mapped[Optional[list]] = mapped_column(
        "incomplete_tasks", JSON, nullable=True
    )
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # subject:date:slot, only set when reminder dedup is enabled
    dedup_key: Mapped[Optional[str]] = mapped_column(
        String(128), nullable=True, unique=True
    )

    @property
    def incomplete_tasks(self) -> List[IncompleteTask]:
        return [IncompleteTask.from_dict(t) for t in self.incomplete_tasks_data or []]

    @property
    def is_unread(self) -> bool:
        return self.status == NotificationStatus.UNREAD.value

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, subject_id={self.subject_id}, "
            f"type={self.type}, status={self.status})>"
        )
