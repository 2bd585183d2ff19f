"""NotificationRepository protocol defining the notification persistence contract."""

from datetime import datetime
from typing import List, Optional, Protocol, runtime_checkable


@runtime_checkable
class NotificationRepository(Protocol):
    """Repository interface for Notification entities."""

    async def add(self, notification: object) -> Optional[object]:
        """Insert a notification.

        Returns None (and inserts nothing) when the notification carries a
        dedup key that already exists.
        """
        ...

    async def get(self, notification_id: int, subject_id: str) -> Optional[object]:
        """Notification by id, only if owned by ``subject_id``."""
        ...

    async def list_for_subject(
        self,
        subject_id: str,
        status: Optional[str] = None,
        limit: int = 20,
        skip: int = 0,
    ) -> List[object]:
        """A page of the subject's notifications, newest first."""
        ...

    async def count(
        self,
        subject_id: str,
        status: Optional[str] = None,
        created_since: Optional[datetime] = None,
    ) -> int:
        """Count the subject's notifications matching the optional filters."""
        ...

    async def set_status(
        self,
        notification_id: int,
        subject_id: str,
        status: str,
        read_at: Optional[datetime] = None,
    ) -> Optional[object]:
        """Transition one notification's status; None if not found."""
        ...

    async def mark_all_read(self, subject_id: str, read_at: datetime) -> int:
        """Mark every unread notification of the subject as read."""
        ...

    async def delete(self, notification_id: int, subject_id: str) -> bool:
        """Delete one owned notification. Returns True if a row was removed."""
        ...

    async def delete_read_before(self, cutoff: datetime) -> int:
        """Bulk-delete read notifications created before ``cutoff``."""
        ...
