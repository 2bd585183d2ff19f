from .sqlalchemy_notification_repository import SqlAlchemyNotificationRepository
from .sqlalchemy_subject_repository import SqlAlchemySubjectRepository
from .sqlalchemy_weekly_record_repository import SqlAlchemyWeeklyRecordRepository

__all__ = [
    "SqlAlchemyNotificationRepository",
    "SqlAlchemySubjectRepository",
    "SqlAlchemyWeeklyRecordRepository",
]
