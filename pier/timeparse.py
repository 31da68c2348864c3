"""
Date / time parsing
===================

Both source feeds write dates as month/day/year:

- NYPD incidents: `01/27/2006` (4-digit year), times as `10:30:00`
- JHU time series column headers: `1/22/20` (2-digit year)

The year width decides the format, so `1/22/20` can never be read as year 20.
Anything that does not match raises `MalformedTimestamp`.
"""

from __future__ import annotations
from datetime import date, datetime, time
import re

from .errors import MalformedTimestamp

_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")
_TIME_RE = re.compile(r"^\d{1,2}:\d{2}:\d{2}$")


def parse_date(text: str) -> date:
    """Parse `m/d/yyyy` or `m/d/yy` into a date."""
    s = str(text).strip()
    m = _DATE_RE.match(s)
    if not m:
        raise MalformedTimestamp(s, "expected month/day/year")
    fmt = "%m/%d/%Y" if len(m.group(3)) == 4 else "%m/%d/%y"
    try:
        return datetime.strptime(s, fmt).date()
    except ValueError as e:
        raise MalformedTimestamp(s, str(e)) from e


def parse_time(text: str) -> time:
    """Parse `HH:MM:SS` into a time."""
    s = str(text).strip()
    if not _TIME_RE.match(s):
        raise MalformedTimestamp(s, "expected hour:minute:second")
    try:
        return datetime.strptime(s, "%H:%M:%S").time()
    except ValueError as e:
        raise MalformedTimestamp(s, str(e)) from e


def parse_occurrence(date_text: str, time_text: str) -> datetime:
    """Combine a date cell and a time cell into one timestamp."""
    return datetime.combine(parse_date(date_text), parse_time(time_text))


def is_date_label(text: str) -> bool:
    try:
        parse_date(text)
    except MalformedTimestamp:
        return False
    return True
