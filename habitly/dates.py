"""Date helpers — week/month periods and ISO date handling.

Every filter on entry dates goes through DateRange. Weeks start on Sunday.
The only clock access is today(); everything else is a pure function of
its arguments.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta

_ISO_DATE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")

DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def today() -> date:
    """Host-local calendar date."""
    return datetime.now().date()


def parse_iso_date(value: str | None) -> date | None:
    """Parse a strict yyyy-MM-dd string. Returns None for anything else."""
    if not value or not isinstance(value, str):
        return None
    if not _ISO_DATE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def format_date(value: date) -> str:
    return value.isoformat()


def week_start(d: date) -> date:
    """Most recent Sunday on or before d."""
    # date.weekday(): Monday=0 .. Sunday=6
    return d - timedelta(days=(d.weekday() + 1) % 7)


def month_bounds(d: date) -> tuple[date, date]:
    """First and last calendar day of d's month."""
    days_in_month = calendar.monthrange(d.year, d.month)[1]
    return d.replace(day=1), d.replace(day=days_in_month)


def days_between(a: date, b: date) -> int:
    """Signed calendar-day difference b - a."""
    return (b - a).days


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar days."""
    start: date
    end: date

    @classmethod
    def week_of(cls, d: date) -> "DateRange":
        start = week_start(d)
        return cls(start, start + timedelta(days=6))

    @classmethod
    def month_of(cls, d: date) -> "DateRange":
        first, last = month_bounds(d)
        return cls(first, last)

    def contains(self, d: date) -> bool:
        return self.start <= d <= self.end

    def days(self) -> list[date]:
        if self.end < self.start:
            return []
        return [self.start + timedelta(days=i) for i in range(days_between(self.start, self.end) + 1)]

    def __len__(self) -> int:
        return max(days_between(self.start, self.end) + 1, 0)

    def __str__(self) -> str:
        return f"{format_date(self.start)} to {format_date(self.end)}"
