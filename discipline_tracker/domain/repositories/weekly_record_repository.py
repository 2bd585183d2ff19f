"""WeeklyRecordRepository protocol defining the discipline record store contract."""

from datetime import datetime
from typing import List, Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class WeeklyRecordRepository(Protocol):
    """Repository interface for per-(subject, week) discipline records."""

    async def get_or_create(
        self, subject_id: str, reference: Optional[datetime] = None
    ) -> object:
        """Return the record for the week containing ``reference`` (default: now).

        A missing record is created with zeroed entries for every configured
        discipline kind.
        """
        ...

    async def find(self, subject_id: str, week_start: datetime) -> Optional[object]:
        """Look up the record for the week containing ``week_start``, or None."""
        ...

    async def find_many(
        self, subject_ids: Sequence[str], week_start: datetime
    ) -> List[object]:
        """Records for several subjects in the same week (missing ones omitted)."""
        ...

    async def save(
        self, subject_id: str, week_start: datetime, updates: Sequence[object]
    ) -> object:
        """Upsert by (subject, week), merging ``updates`` by discipline key.

        The read, merge and write happen in one conditional write; concurrent
        writers are retried and, if retries run out, RecordConflict is raised.
        """
        ...

    async def save_reflection(
        self,
        subject_id: str,
        week_start: datetime,
        reflection: str,
        submitted_at: datetime,
    ) -> object:
        """Set the week's reflection text and submission time."""
        ...

    async def list_recent(self, subject_id: str, limit: int) -> List[object]:
        """Most recent records first, at most ``limit``."""
        ...

    async def list_all(self, subject_id: str) -> List[object]:
        """Every record for the subject, most recent first."""
        ...

    async def find_with_reflections(
        self, subject_ids: Sequence[str], week_start: datetime
    ) -> List[object]:
        """Records in the given week with a submitted reflection, newest first."""
        ...
