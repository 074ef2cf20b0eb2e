"""Pure shift rules: lateness, early exit against the shift end and time validation."""

from __future__ import annotations

from datetime import date, datetime, timedelta

from ..common.datetime_utils import minutes_of_day, parse_hhmm, weekday_name
from ..core.exceptions import ValidationError
from .model import Shift


def is_late_check_in(at: datetime, start_time: str, grace_minutes: int) -> bool:
    return minutes_of_day(at) > minutes_of_day(start_time) + int(grace_minutes)


def shift_end_on(shift: Shift, work_date: date) -> datetime:
    """Shift end as a datetime; night shifts finish on the next calendar day."""
    end = datetime.combine(work_date, parse_hhmm(shift.end_time))
    if shift.is_night_shift and minutes_of_day(shift.end_time) <= minutes_of_day(shift.start_time):
        end += timedelta(days=1)
    return end


def is_early_exit_for_shift(at: datetime, work_date: date, shift: Shift) -> bool:
    return at < shift_end_on(shift, work_date) - timedelta(minutes=shift.early_exit_grace_period)


def validate_shift_times(start_time: str, end_time: str, is_night_shift: bool) -> None:
    start = minutes_of_day(start_time)
    end = minutes_of_day(end_time)
    if is_night_shift:
        if start == end:
            raise ValidationError("Night shift start and end time cannot be the same")
    elif end <= start:
        raise ValidationError("End time must be after start time for non-night shifts")


def works_on(shift: Shift, d: date) -> bool:
    return weekday_name(d) in shift.working_days

