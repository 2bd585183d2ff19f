from .notification_repository import NotificationRepository
from .subject_repository import SubjectRepository
from .weekly_record_repository import WeeklyRecordRepository

__all__ = ["NotificationRepository", "SubjectRepository", "WeeklyRecordRepository"]
