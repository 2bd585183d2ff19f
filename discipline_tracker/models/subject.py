"""
Subjects: the individuals whose disciplines are tracked.

Identity and credentials live elsewhere; this table only carries what the
reminder pipeline needs to select and address its population.
"""

import enum

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class SubjectRole(str, enum.Enum):
    WORKER = "worker"
    EXECUTIVE = "executive"


class Subject(Base, TimestampMixin):
    __tablename__ = "subjects"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    full_name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    role: Mapped[str] = mapped_column(
        String(32), nullable=False, default=SubjectRole.WORKER.value
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @property
    def first_name(self) -> str:
        parts = self.full_name.split()
        return parts[0] if parts else self.full_name

    def __repr__(self) -> str:
        return f"<Subject(id={self.id}, role={self.role}, active={self.is_active})>"
