"""
Calendar date helpers.

Dates travel as "YYYY-MM-DD" strings between the store, the API and the
domain entities. Parsing never goes through a timezone: the string is split
into year/month/day and turned into a plain `date`, so a day is the same day
for every client.
"""
import calendar
import re
from datetime import date, datetime, timedelta
from typing import Iterator

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

SATURDAY = 5
SUNDAY = 6


def parse_calendar_date(value) -> date | None:
    """
    Parse a strict YYYY-MM-DD string into a date.

    A trailing time part ("2024-06-01T10:00:00Z") is cut off before matching.
    Returns None for anything else (wrong shape, impossible day, non-string).

    Example:
        >>> parse_calendar_date("2024-06-01")
        datetime.date(2024, 6, 1)
        >>> parse_calendar_date("2024-02-30") is None
        True
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if len(raw) > 10 and raw[10] == "T":
        raw = raw[:10]
    m = _DATE_RE.match(raw)
    if not m:
        return None
    year, month, day = (int(part) for part in m.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def format_calendar_date(d: date) -> str:
    return d.isoformat()


def format_short(d: date) -> str:
    """dd/MM, used in notification messages."""
    return d.strftime("%d/%m")


def days_between(a: date, b: date) -> int:
    """Whole calendar days from b to a (positive when a is later)."""
    return (a - b).days


def iter_days(start: date, end: date) -> Iterator[date]:
    """Inclusive day iteration; empty when end < start."""
    d = start
    while d <= end:
        yield d
        d += timedelta(days=1)


def span_days(start: date, duration_days: int) -> list[date]:
    return list(iter_days(start, start + timedelta(days=duration_days - 1)))


def weekend_partner(d: date) -> date | None:
    """The other weekend day for a Saturday or a Sunday, else None."""
    wd = d.weekday()
    if wd == SATURDAY:
        return d + timedelta(days=1)
    if wd == SUNDAY:
        return d - timedelta(days=1)
    return None


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(d: date, n: int) -> date:
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    last = last_day_of_month(year, month)
    day = min(d.day, last)
    return date(year, month, day)


def add_years(d: date, n: int) -> date:
    # Feb 29 -> Feb 28 in non-leap target years
    return add_months(d, 12 * n)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    return date(year, month, 1), date(year, month, last_day_of_month(year, month))


def next_month(d: date) -> date:
    """First day of the month after d."""
    return add_months(d.replace(day=1), 1)
