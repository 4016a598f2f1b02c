from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Optional


def now() -> datetime:
    """Server-side 'now' on the local wall clock (naive, second precision kept)."""
    return datetime.now()


def today() -> date:
    return now().date()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string into a local naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is taken as local time
    - "...Z" or "...+/-HH:MM" is converted to local time and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


def parse_business_date(value) -> date:
    """
    Business dates are date-granular. Accepts "YYYY-MM-DD", a full ISO
    datetime (its date part is used), a date/datetime, or None for today.
    """
    if value is None or value == "":
        return today()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError("date must be a string in YYYY-MM-DD format")
    s = value.strip()
    if not s:
        return today()
    if len(s) == 10:
        return date.fromisoformat(s)
    parsed = parse_iso_datetime(s)
    if parsed is None:
        raise ValueError("date must be in YYYY-MM-DD format")
    return parsed.date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[start, end) of a calendar day."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def add_months(dt: datetime, months: int) -> datetime:
    """Calendar month arithmetic; day of month clamped to the target month's length."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Serializes a naive local datetime to ISO-8601 without microseconds."""
    if dt is None:
        return None
    return dt.replace(microsecond=0).isoformat()
