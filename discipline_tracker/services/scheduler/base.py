"""
Scheduler base types and abstract interface.

ScheduledJob defines what to run and at which local time of day.
RuntimeScheduler is the ABC for in-process backends (e.g. APSchedulerBackend).
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import time
from typing import Any, Callable, Coroutine, List, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ...domain.errors import InvalidSchedule


class SchedulerState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    STOPPED = "stopped"


def parse_time_of_day(value: Union[str, time]) -> time:
    """Parse "HH:MM" or "HH:MM:SS" into a time; raise InvalidSchedule otherwise."""
    if isinstance(value, time):
        return value
    try:
        parts = [int(p) for p in str(value).strip().split(":")]
        if len(parts) not in (2, 3):
            raise ValueError("expected HH:MM or HH:MM:SS")
        return time(*parts)
    except (TypeError, ValueError) as e:
        raise InvalidSchedule(f"Invalid time of day {value!r}: {e}") from e


@dataclass
class ScheduledJob:
    """Describes a job that fires once a day at ``time_of_day`` in ``timezone``."""

    name: str
    callback: Callable[..., Coroutine[Any, Any, Any]]
    time_of_day: time
    timezone: str
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.name:
            raise InvalidSchedule("Job name is required")
        self.time_of_day = parse_time_of_day(self.time_of_day)
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError, TypeError) as e:
            raise InvalidSchedule(
                f"Invalid timezone {self.timezone!r} for job '{self.name}'"
            ) from e

    @property
    def time_label(self) -> str:
        return self.time_of_day.strftime("%H:%M")


class RuntimeScheduler(ABC):
    """ABC for in-process job schedulers."""

    @abstractmethod
    def schedule(self, job: ScheduledJob) -> None:
        """Register a job for execution."""

    @abstractmethod
    def cancel(self, name: str) -> bool:
        """Cancel a scheduled job by name. Returns True if found."""

    @abstractmethod
    def list_jobs(self) -> List[str]:
        """Return names of all registered jobs."""

    @abstractmethod
    async def start(self) -> None:
        """Start the scheduler (if needed beyond registration)."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop the scheduler and cancel all jobs."""
