"""
Data model (IncidentRecord + categorical enums)
===============================================

Each row of the NYPD shooting CSV is converted into an `IncidentRecord`.
We keep it immutable (`frozen=True`) so that:
- records cannot be accidentally modified after loading, and
- every analysis filters and groups the same untouched rows.

Calendar fields (year, month, weekday, ...) are computed once when the record
is built. They depend only on `occurred_at`, and use fixed English name tables
so the output never depends on the machine locale.

Categorical fields keep the raw strings from the feed (including sentinels
like "UNKNOWN" or ""). Interpretation happens through the enums below, which
each have a single `parse` (and, for `Sex`, a single `encode`). Tables that
show categories use `canonical`, so "Bronx" and "BRONX" are one group.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

# Monday-first, matches datetime.weekday()
WEEKDAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
)

_SENTINELS = frozenset({"", "UNKNOWN", "(NULL)", "NULL", "U", "NAN"})


def _clean(raw) -> str:
    if raw is None:
        return ""
    return str(raw).strip().upper()


class Sex(Enum):
    MALE = "M"
    FEMALE = "F"

    @classmethod
    def parse(cls, raw) -> Optional["Sex"]:
        """Return the member for "M"/"F", None for anything else."""
        v = _clean(raw)
        for m in cls:
            if m.value == v:
                return m
        return None

    def encode(self) -> int:
        """Regression encoding: F -> 1, M -> 0."""
        return 1 if self is Sex.FEMALE else 0


class AgeGroup(Enum):
    UNDER_18 = "<18"
    AGE_18_24 = "18-24"
    AGE_25_44 = "25-44"
    AGE_45_64 = "45-64"
    AGE_65_PLUS = "65+"

    @classmethod
    def parse(cls, raw) -> Optional["AgeGroup"]:
        v = _clean(raw)
        for m in cls:
            if m.value == v:
                return m
        return None


class Borough(Enum):
    BRONX = "BRONX"
    BROOKLYN = "BROOKLYN"
    MANHATTAN = "MANHATTAN"
    QUEENS = "QUEENS"
    STATEN_ISLAND = "STATEN ISLAND"

    @classmethod
    def parse(cls, raw) -> Optional["Borough"]:
        v = _clean(raw)
        for m in cls:
            if m.value == v:
                return m
        return None


class Race:
    """Race is open-ended in the feed, so there is no fixed member list."""

    @staticmethod
    def parse(raw) -> Optional[str]:
        v = _clean(raw)
        if v in _SENTINELS:
            return None
        return v


def encode_flag(flag: bool) -> int:
    """Boolean encoding used for the murder flag: True -> 1, False -> 0."""
    return 1 if flag else 0


def canonical(parse: Callable[[object], object], raw) -> str:
    """Canonical spelling of a categorical cell.

    The parsed value when `parse` recognises it, otherwise the trimmed,
    upper-cased raw text. Sentinels therefore stay as their own group.
    """
    v = parse(raw)
    if v is None:
        return _clean(raw)
    return v.value if isinstance(v, Enum) else v


@dataclass(frozen=True)
class Demographics:
    """Raw demographic strings for one side (perpetrator or victim)."""
    age_group: str
    sex: str
    race: str

    def is_known(self) -> bool:
        """True when sex, race and age group all parse to a known value."""
        return (
            Sex.parse(self.sex) is not None
            and Race.parse(self.race) is not None
            and AgeGroup.parse(self.age_group) is not None
        )


@dataclass(frozen=True)
class IncidentRecord:
    """Immutable record for one row of the shooting feed.

    `incident_id` is not unique per row: an incident with several victims
    appears once per victim.
    """
    incident_id: str
    occurred_at: datetime
    borough: str
    perpetrator: Demographics
    victim: Demographics
    is_statistical_murder: bool
    precinct: Optional[int] = None
    location_desc: str = ""

    year: int = field(init=False)
    month: int = field(init=False)
    month_name: str = field(init=False)
    week_of_year: int = field(init=False)
    weekday: int = field(init=False)
    weekday_name: str = field(init=False)
    hour_of_day: int = field(init=False)

    def __post_init__(self) -> None:
        ts = self.occurred_at
        # frozen dataclass: derived fields are set once here
        object.__setattr__(self, "year", ts.year)
        object.__setattr__(self, "month", ts.month)
        object.__setattr__(self, "month_name", MONTH_NAMES[ts.month - 1])
        object.__setattr__(self, "week_of_year", ts.isocalendar()[1])
        object.__setattr__(self, "weekday", ts.weekday())
        object.__setattr__(self, "weekday_name", WEEKDAY_NAMES[ts.weekday()])
        object.__setattr__(self, "hour_of_day", ts.hour)
