from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from typing import Iterator

from ..core.enums import WEEKDAY_NAMES
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string (or an ISO datetime prefix) into date."""
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {value}") from exc


def parse_hhmm(value: str) -> time:
    try:
        return datetime.strptime(value, "%H:%M").time()
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid time (expected HH:mm): {value}") from exc


def minutes_of_day(value: datetime | time | str) -> int:
    if isinstance(value, str):
        value = parse_hhmm(value)
    return value.hour * 60 + value.minute


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch it.
    """
    return datetime.now()


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, time.max)


def weekday_name(d: date) -> str:
    return WEEKDAY_NAMES[d.weekday()]


def js_weekday(d: date) -> int:
    """Day of week with 0 = Sunday, 6 = Saturday."""
    return (d.weekday() + 1) % 7


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_weekend(d: date) -> bool:
    return d.weekday() >= 5


def minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)
