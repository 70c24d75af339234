"""Regional calendar helpers (fixed UTC+05:30, no daylight saving).

Every "what day is it" decision in the pipeline goes through here so that the
answer never depends on the host clock's own timezone. Instants are converted
by adding the fixed offset; naive datetimes are treated as UTC.
"""
from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from app.config import REGIONAL_CALENDAR

REGIONAL_OFFSET = timedelta(minutes=int(REGIONAL_CALENDAR["offset_minutes"]))
REGIONAL_TZ = timezone(REGIONAL_OFFSET, "IST")

_DATE_PARAM_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class CalendarDate:
    """A date on the regional calendar. ``month`` is 1-indexed."""

    year: int
    month: int
    day: int

    def iso(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    def compact(self) -> str:
        return f"{self.year:04d}{self.month:02d}{self.day:02d}"

    def as_date(self) -> date:
        return date(self.year, self.month, self.day)

    @classmethod
    def from_date(cls, value: date) -> "CalendarDate":
        return cls(value.year, value.month, value.day)


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def to_regional_date(instant: datetime) -> CalendarDate:
    """Calendar date of ``instant`` in the regional timezone."""
    shifted = _as_utc(instant).astimezone(REGIONAL_TZ)
    return CalendarDate(shifted.year, shifted.month, shifted.day)


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def is_last_day_of_month(value: CalendarDate) -> bool:
    return value.day == last_day_of_month(value.year, value.month)


def is_first_of_january(value: CalendarDate) -> bool:
    return value.month == 1 and value.day == 1


def _regional_midnight(year: int, month: int, day: int) -> datetime:
    return datetime.combine(date(year, month, day), time.min, tzinfo=REGIONAL_TZ).astimezone(timezone.utc)


def day_bounds(value: CalendarDate) -> tuple[datetime, datetime]:
    """UTC instants for 00:00:00.000 and 23:59:59.999 of a regional day."""
    start = _regional_midnight(value.year, value.month, value.day)
    end = start + timedelta(days=1) - timedelta(milliseconds=1)
    return start, end


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """Half-open [start, end) UTC range covering a regional calendar month."""
    start = _regional_midnight(year, month, 1)
    next_year, next_month = (year + 1, 1) if month == 12 else (year, month + 1)
    return start, _regional_midnight(next_year, next_month, 1)


def year_bounds(year: int) -> tuple[datetime, datetime]:
    """Half-open [start, end) UTC range covering a regional calendar year."""
    return _regional_midnight(year, 1, 1), _regional_midnight(year + 1, 1, 1)


def parse_date_param(value: Optional[str]) -> Optional[CalendarDate]:
    """Parse a strict ``YYYY-MM-DD`` query value; ``None`` when absent or invalid."""
    if not value or not _DATE_PARAM_RE.match(value):
        return None
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        # Passes the regex but is not a real date, e.g. 9999-99-99
        return None
    return CalendarDate.from_date(parsed)


__all__ = [
    "REGIONAL_OFFSET",
    "REGIONAL_TZ",
    "CalendarDate",
    "to_regional_date",
    "last_day_of_month",
    "is_last_day_of_month",
    "is_first_of_january",
    "day_bounds",
    "month_bounds",
    "year_bounds",
    "parse_date_param",
]
