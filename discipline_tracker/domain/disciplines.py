"""
Discipline kinds and the weekday index they are tracked against.

The catalog is static configuration (see config/defaults.yaml), not data
stored per record. Daily kinds are required on all seven weekdays, weekly
kinds on at least one.
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from .errors import ConfigurationError

# Marker used in place of weekday names for an unmet weekly kind
WEEK_SENTINEL = "week"

DAYS_PER_WEEK = 7


class Weekday(enum.IntEnum):
    """Monday-first weekday index, matching ``date.weekday()``."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def day_name(self) -> str:
        return self.name.lower()

    @classmethod
    def from_name(cls, name: str) -> "Weekday":
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown weekday: {name!r}") from None


class Cadence(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


@dataclass(frozen=True)
class DisciplineKind:
    key: str
    label: str
    cadence: Cadence
    description: str = ""

    @property
    def is_weekly(self) -> bool:
        return self.cadence is Cadence.WEEKLY

    @property
    def required_days(self) -> int:
        """Contribution of this kind to the required-completion denominator."""
        return 1 if self.is_weekly else DAYS_PER_WEEK


class DisciplineCatalog:
    """Ordered, immutable set of configured discipline kinds."""

    def __init__(self, kinds: Iterable[DisciplineKind]) -> None:
        ordered: Dict[str, DisciplineKind] = {}
        for kind in kinds:
            if kind.key in ordered:
                raise ConfigurationError(f"Duplicate discipline key: {kind.key!r}")
            ordered[kind.key] = kind
        self._kinds: Tuple[DisciplineKind, ...] = tuple(ordered.values())
        self._by_key = ordered

    def __iter__(self) -> Iterator[DisciplineKind]:
        return iter(self._kinds)

    def __len__(self) -> int:
        return len(self._kinds)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def get(self, key: str) -> Optional[DisciplineKind]:
        return self._by_key.get(key)

    @property
    def keys(self) -> List[str]:
        return [k.key for k in self._kinds]

    @property
    def daily_kinds(self) -> List[DisciplineKind]:
        return [k for k in self._kinds if k.cadence is Cadence.DAILY]

    @property
    def weekly_kinds(self) -> List[DisciplineKind]:
        return [k for k in self._kinds if k.cadence is Cadence.WEEKLY]

    @property
    def required_total(self) -> int:
        """7 per daily kind plus 1 per weekly kind (16 for the default catalog)."""
        return sum(k.required_days for k in self._kinds)

    @property
    def total_tasks(self) -> int:
        """Raw checkbox count for a week (28 for the default catalog)."""
        return DAYS_PER_WEEK * len(self._kinds)

    def label_for(self, key: str) -> str:
        kind = self._by_key.get(key)
        return kind.label if kind else key

    @classmethod
    def from_config(cls, entries: Optional[List[Dict[str, Any]]]) -> "DisciplineCatalog":
        """Build a catalog from the ``disciplines`` list in YAML config."""
        kinds = []
        for entry in entries or []:
            try:
                key = str(entry["key"])
                cadence = Cadence(str(entry.get("cadence", "daily")).lower())
            except (KeyError, TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid discipline entry {entry!r}: {e}") from e
            kinds.append(
                DisciplineKind(
                    key=key,
                    label=str(entry.get("label") or key.replace("_", " ").title()),
                    cadence=cadence,
                    description=str(entry.get("description") or ""),
                )
            )
        return cls(kinds)


def load_catalog() -> DisciplineCatalog:
    """Catalog from the merged YAML configuration."""
    from ..core.defaults_loader import get_config_value

    return DisciplineCatalog.from_config(get_config_value("disciplines", []))
