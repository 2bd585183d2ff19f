"""
Typed domain errors for the discipline tracker.

These replace bare except/return None patterns so callers can distinguish
specific failure modes (missing record vs. write conflict vs. bad job name)
and map each to an appropriate outcome. ``http_status`` is a hint for the
outer API layer; anything that is not NotFound or Conflict surfaces as a
generic internal failure.
"""

from datetime import datetime
from typing import Optional


class DomainError(Exception):
    """Base class for all domain-specific errors."""

    http_status = 500


# ---------------------------------------------------------------------------
# Lookup failures
# ---------------------------------------------------------------------------


class NotFound(DomainError):
    """Requested subject, record or notification does not exist."""

    http_status = 404


class SubjectNotFound(NotFound):
    """No subject exists for the given id."""

    def __init__(self, subject_id: str) -> None:
        self.subject_id = subject_id
        super().__init__(f"Subject {subject_id} not found")


class RecordNotFound(NotFound):
    """No weekly record exists for the given subject and week."""

    def __init__(self, subject_id: str, week_start: Optional[datetime] = None) -> None:
        self.subject_id = subject_id
        self.week_start = week_start
        week = week_start.date().isoformat() if week_start else "any week"
        super().__init__(f"No weekly record for subject {subject_id} ({week})")


class NotificationNotFound(NotFound):
    """Notification does not exist or is not owned by the subject."""

    def __init__(self, notification_id: int, subject_id: str) -> None:
        self.notification_id = notification_id
        self.subject_id = subject_id
        super().__init__(
            f"Notification {notification_id} not found for subject {subject_id}"
        )


# ---------------------------------------------------------------------------
# Write conflicts
# ---------------------------------------------------------------------------


class RecordConflict(DomainError):
    """Concurrent creation or update of the same (subject, week) record."""

    http_status = 409

    def __init__(self, subject_id: str, week_start: datetime, attempts: int) -> None:
        self.subject_id = subject_id
        self.week_start = week_start
        self.attempts = attempts
        super().__init__(
            f"Weekly record for subject {subject_id} "
            f"({week_start.date().isoformat()}) changed concurrently; "
            f"gave up after {attempts} attempt(s)"
        )


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------


class InvalidSchedule(DomainError):
    """Unknown job name, or a malformed time-of-day / timezone at registration."""


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


class StoreTimeout(DomainError):
    """A store call exceeded its deadline. Transient; callers skip and move on."""

    def __init__(self, subject_id: str, timeout: float) -> None:
        self.subject_id = subject_id
        self.timeout = timeout
        super().__init__(
            f"Store call for subject {subject_id} timed out after {timeout:g}s"
        )


class ConfigurationError(DomainError):
    """The discipline catalog or job table could not be built from config.

    Degenerate-but-valid configuration (zero discipline kinds, empty
    population) is not an error and yields zero/empty results instead.
    """
