"""SubjectRepository protocol defining the subject lookup contract."""

from typing import Iterable, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class SubjectRepository(Protocol):
    """Repository interface for the tracked population."""

    async def get(self, subject_id: str) -> Optional[object]:
        """Look up a subject by id, or None."""
        ...

    async def upsert(self, subject: object) -> object:
        """Insert or update a subject by id."""
        ...

    async def list_eligible(self, excluded_roles: Iterable[str] = ()) -> List[object]:
        """Active subjects whose role is not excluded, ordered by id."""
        ...
