"""Domain value objects for weekly discipline progress."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

from ..domain.disciplines import DAYS_PER_WEEK, WEEK_SENTINEL, Weekday

_FULL_WEEK = (1 << DAYS_PER_WEEK) - 1

DayLike = Union[Weekday, int, str]


def _as_weekday(day: DayLike) -> Weekday:
    if isinstance(day, str):
        return Weekday.from_name(day)
    return Weekday(day)


class DisciplineProgress:
    """One discipline's completion flags for a week.

    The seven weekday flags are held as a bitset indexed by ``Weekday``
    (bit 0 = Monday ... bit 6 = Sunday).
    """

    __slots__ = ("_discipline", "_days")

    def __init__(self, discipline: str, days: int = 0) -> None:
        if not discipline:
            raise ValueError("discipline key must be non-empty")
        if not isinstance(days, int) or days < 0 or days > _FULL_WEEK:
            raise ValueError(f"days bitset out of range: {days!r}")
        object.__setattr__(self, "_discipline", discipline)
        object.__setattr__(self, "_days", days)

    # --- Constructors ---

    @classmethod
    def from_days(cls, discipline: str, days: Iterable[DayLike]) -> "DisciplineProgress":
        mask = 0
        for day in days:
            mask |= 1 << _as_weekday(day)
        return cls(discipline, mask)

    @classmethod
    def from_flags(cls, discipline: str, flags: Iterable[bool]) -> "DisciplineProgress":
        flags = list(flags)
        if len(flags) != DAYS_PER_WEEK:
            raise ValueError(f"expected {DAYS_PER_WEEK} flags, got {len(flags)}")
        return cls.from_days(discipline, [i for i, done in enumerate(flags) if done])

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DisciplineProgress":
        """Accept the stored form ``{"discipline", "days": <bitset>}`` or the
        per-weekday form ``{"discipline", "monday": bool, ...}``."""
        discipline = data["discipline"]
        days = data.get("days")
        if isinstance(days, int):
            return cls(discipline, days)
        if isinstance(days, (list, tuple)):
            return cls.from_days(discipline, days)
        return cls.from_days(
            discipline, [d for d in Weekday if data.get(d.day_name) is True]
        )

    # --- Read-only properties ---

    @property
    def discipline(self) -> str:
        return self._discipline

    @property
    def days(self) -> int:
        return self._days

    @property
    def flags(self) -> Tuple[bool, ...]:
        return tuple(self.is_done(d) for d in Weekday)

    @property
    def completed_days(self) -> List[Weekday]:
        return [d for d in Weekday if self.is_done(d)]

    @property
    def completed_count(self) -> int:
        return bin(self._days).count("1")

    @property
    def any_done(self) -> bool:
        return self._days != 0

    def is_done(self, day: DayLike) -> bool:
        return bool(self._days & (1 << _as_weekday(day)))

    # --- Derivation ---

    def with_day(self, day: DayLike, done: bool = True) -> "DisciplineProgress":
        bit = 1 << _as_weekday(day)
        return DisciplineProgress(
            self._discipline, self._days | bit if done else self._days & ~bit
        )

    # --- Serialization ---

    def to_dict(self) -> Dict[str, Any]:
        return {"discipline": self._discipline, "days": self._days}

    def day_map(self) -> Dict[str, bool]:
        return {d.day_name: self.is_done(d) for d in Weekday}

    # --- Immutability ---

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable; cannot set {name!r}")

    # --- Equality and hashing ---

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DisciplineProgress):
            return NotImplemented
        return self._discipline == other._discipline and self._days == other._days

    def __hash__(self) -> int:
        return hash((self._discipline, self._days))

    def __repr__(self) -> str:
        done = ",".join(d.day_name[:3] for d in self.completed_days) or "-"
        return f"DisciplineProgress({self._discipline!r}, days={done})"


@dataclass(frozen=True)
class IncompleteTask:
    """A discipline with unmet requirements as of an evaluation instant."""

    discipline: str
    missing_days: Tuple[str, ...]

    @property
    def is_weekly(self) -> bool:
        return self.missing_days == (WEEK_SENTINEL,)

    @property
    def pending_count(self) -> int:
        return 1 if self.is_weekly else len(self.missing_days)

    def to_dict(self) -> Dict[str, Any]:
        return {"discipline": self.discipline, "missing_days": list(self.missing_days)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "IncompleteTask":
        return cls(data["discipline"], tuple(data.get("missing_days") or ()))
