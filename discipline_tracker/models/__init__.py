from .base import Base, TimestampMixin
from .notification import Notification, NotificationStatus, NotificationType, ReminderSlot
from .subject import Subject, SubjectRole
from .value_objects import DisciplineProgress, IncompleteTask
from .weekly_record import WeeklyRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "WeeklyRecord",
    "Notification",
    "NotificationStatus",
    "NotificationType",
    "ReminderSlot",
    "Subject",
    "SubjectRole",
    "DisciplineProgress",
    "IncompleteTask",
]
