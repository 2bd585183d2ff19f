from .apscheduler_backend import APSchedulerBackend
from .base import RuntimeScheduler, ScheduledJob, SchedulerState, parse_time_of_day
from .scheduler_service import JobStatus, SchedulerService

__all__ = [
    "APSchedulerBackend",
    "JobStatus",
    "RuntimeScheduler",
    "ScheduledJob",
    "SchedulerService",
    "SchedulerState",
    "parse_time_of_day",
]
